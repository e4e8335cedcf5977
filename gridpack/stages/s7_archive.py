"""Stage 7 — Archiver.

Folds the whole stage into the requested archive.  The stage directory is
left in place afterwards for inspection.
"""

from __future__ import annotations

import logging
from typing import Any

from gridpack.bridge.protocols import ArchiveWriter
from gridpack.models.context import BuildContext
from gridpack.stages.base import BaseStage

logger = logging.getLogger(__name__)


class ArchiverStage(BaseStage):
    """Stage 7: Archiver — the terminal step."""

    def __init__(self, archiver: ArchiveWriter) -> None:
        self.archiver = archiver

    @property
    def stage_id(self) -> str:
        return "s7_archive"

    @property
    def display_name(self) -> str:
        return "Archiver"

    def execute(self, context: BuildContext) -> dict[str, Any]:
        staged = context.require("staged")
        artifact = self.archiver.write(staged.stage_dir, context.request.output_path)
        context.artifact = artifact
        logger.info("Stage left in place at %s", staged.stage_dir)
        return {
            "archive": str(artifact.path),
            "format": artifact.format.value,
            "sha256": artifact.sha256,
            "size_bytes": artifact.size_bytes,
        }
