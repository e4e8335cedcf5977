"""Per-build context threaded through every stage."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from gridpack.models.artifacts import Artifact
from gridpack.models.manifest import BuildManifest, ExportOptions, InstallOptions
from gridpack.models.project import ProjectDescriptor
from gridpack.models.request import BuildRequest
from gridpack.models.runtime import RuntimeInstallation, StagedRuntime
from gridpack.models.stages import PIPELINE_STAGE_DEFINITIONS, StageState


class BuildContext(BaseModel):
    """Mutable state of one build.

    Each stage reads the products of earlier stages from here and stores
    its own.  Nothing outside the pipeline holds a reference while the
    build runs.
    """

    request: BuildRequest

    project: ProjectDescriptor | None = None
    installation: RuntimeInstallation | None = None
    staged: StagedRuntime | None = None
    export_path: Path | None = None
    export_options: ExportOptions | None = None
    install_options: InstallOptions | None = None
    manifest: BuildManifest | None = None
    manifest_path: Path | None = None
    sanity_output: str | None = None
    artifact: Artifact | None = None

    stage_states: dict[str, StageState] = Field(
        default_factory=lambda: {
            d.stage_id: StageState.NOT_STARTED for d in PIPELINE_STAGE_DEFINITIONS
        }
    )
    stage_results: dict[str, dict[str, Any]] = Field(default_factory=dict)
    output_hashes: dict[str, str] = Field(default_factory=dict)

    def require(self, field: str) -> Any:
        """Return a product of an earlier stage, failing loudly if absent."""
        value = getattr(self, field)
        if value is None:
            raise LookupError(f"build context has no {field!r}; did its stage run?")
        return value
