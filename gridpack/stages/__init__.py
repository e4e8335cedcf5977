"""gridpack pipeline stages, in execution order.

Usage::

    from gridpack.stages import build_stages

    for stage in build_stages(collaborators):
        stage.run_stage(context)
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime

from gridpack.bridge.toolchain import Collaborators
from gridpack.stages.base import (
    BaseStage,
    InvalidTransitionError,
    StageExecutionError,
    StagePrerequisiteError,
)
from gridpack.stages.s0_config import ConfigReaderStage
from gridpack.stages.s1_runtime import RuntimeResolverStage
from gridpack.stages.s2_stage import StagerStage
from gridpack.stages.s3_export import DependencyExporterStage
from gridpack.stages.s4_install import InstallerStage
from gridpack.stages.s5_manifest import MetadataWriterStage
from gridpack.stages.s6_sanity import SanityCheckStage
from gridpack.stages.s7_archive import ArchiverStage

# Ordered list matching the pipeline execution order.
STAGE_ORDER: list[str] = [
    "s0_config",
    "s1_runtime",
    "s2_stage",
    "s3_export",
    "s4_install",
    "s5_manifest",
    "s6_sanity",
    "s7_archive",
]


def build_stages(
    collaborators: Collaborators,
    *,
    clock: Callable[[], datetime] | None = None,
) -> list[BaseStage]:
    """Instantiate every stage, wired to *collaborators*, in order."""
    return [
        ConfigReaderStage(),
        RuntimeResolverStage(collaborators.provisioner),
        StagerStage(),
        DependencyExporterStage(collaborators.exporter),
        InstallerStage(collaborators.installer),
        MetadataWriterStage(collaborators.probe, collaborators.revisions, clock=clock),
        SanityCheckStage(collaborators.probe),
        ArchiverStage(collaborators.archiver),
    ]


__all__ = [
    "STAGE_ORDER",
    "BaseStage",
    "InvalidTransitionError",
    "StageExecutionError",
    "StagePrerequisiteError",
    "build_stages",
    "ConfigReaderStage",
    "RuntimeResolverStage",
    "StagerStage",
    "DependencyExporterStage",
    "InstallerStage",
    "MetadataWriterStage",
    "SanityCheckStage",
    "ArchiverStage",
]
