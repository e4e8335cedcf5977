"""gridpack data models — Pydantic v2, frozen except the build context."""

from gridpack.models.artifacts import ArchiveFormat, Artifact
from gridpack.models.context import BuildContext
from gridpack.models.manifest import (
    ARTIFACT_TYPE,
    MANIFEST_FILE,
    REQUIREMENTS_EXPORT_FILE,
    BuildManifest,
    ExportOptions,
    InstallOptions,
)
from gridpack.models.project import ProjectDescriptor
from gridpack.models.request import BuildRequest, LayoutMode
from gridpack.models.runtime import (
    INTERPRETER_RELPATH,
    NESTED_RUNTIME_DIRNAME,
    RuntimeInstallation,
    StagedRuntime,
)
from gridpack.models.stages import (
    PIPELINE_STAGE_DEFINITIONS,
    VALID_TRANSITIONS,
    StageDefinition,
    StageState,
)

__all__ = [
    # request
    "BuildRequest",
    "LayoutMode",
    # project
    "ProjectDescriptor",
    # runtime
    "INTERPRETER_RELPATH",
    "NESTED_RUNTIME_DIRNAME",
    "RuntimeInstallation",
    "StagedRuntime",
    # manifest
    "ARTIFACT_TYPE",
    "MANIFEST_FILE",
    "REQUIREMENTS_EXPORT_FILE",
    "BuildManifest",
    "ExportOptions",
    "InstallOptions",
    # artifacts
    "ArchiveFormat",
    "Artifact",
    # stages
    "PIPELINE_STAGE_DEFINITIONS",
    "VALID_TRANSITIONS",
    "StageDefinition",
    "StageState",
    # context
    "BuildContext",
]
