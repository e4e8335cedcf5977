"""Stage 5 — Metadata Writer.

Collects build provenance after a successful install and writes
``<stage>/gridpack-manifest.json``.

Everything here is best-effort — a missing lockfile or export hashes to
``None``, a project outside git has no revision — except the exact
runtime version, which is asked of the staged interpreter itself.  If
that interpreter cannot answer, the staged runtime is broken and the
build stops with ``ManifestIncomplete``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from gridpack import __version__
from gridpack.bridge.protocols import InterpreterProbe, RevisionSource
from gridpack.core.errors import ManifestIncomplete
from gridpack.core.hasher import optional_file_sha256
from gridpack.models.context import BuildContext
from gridpack.models.manifest import (
    MANIFEST_FILE,
    TIMESTAMP_FORMAT,
    BuildManifest,
    ExportOptions,
)
from gridpack.models.project import ProjectDescriptor
from gridpack.models.request import BuildRequest
from gridpack.models.runtime import StagedRuntime
from gridpack.stages.base import BaseStage

logger = logging.getLogger(__name__)

VERSION_SNIPPET = "import platform; print(platform.python_version())"


def utc_timestamp(now: datetime | None = None) -> str:
    """``now`` (default: the current time) in the manifest's UTC format."""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)


def query_python_version(staged: StagedRuntime, probe: InterpreterProbe) -> str:
    """Exact version string reported by the staged interpreter."""
    version = probe.run_snippet(staged.interpreter, VERSION_SNIPPET)
    if not version:
        raise ManifestIncomplete(
            "staged interpreter could not report its version", path=staged.interpreter
        )
    return version.splitlines()[-1].strip()


def build_manifest(
    *,
    request: BuildRequest,
    project: ProjectDescriptor,
    staged: StagedRuntime,
    export_path: Path | None,
    export_options: ExportOptions,
    break_system_packages: bool,
    probe: InterpreterProbe,
    revisions: RevisionSource,
    now: datetime | None = None,
) -> BuildManifest:
    """Assemble the manifest from the files currently in the stage."""
    python_full = query_python_version(staged, probe)
    return BuildManifest(
        env_tag=request.env_tag,
        python_full=python_full,
        python_req=project.python_version,
        platform=request.platform_label,
        built_at=utc_timestamp(now),
        git_rev=revisions.revision(project.project_dir),
        uv_lock_sha256=optional_file_sha256(project.lockfile),
        exported_requirements_sha256=optional_file_sha256(export_path),
        flattened_runtime=staged.flattened,
        pip_break_system_packages=break_system_packages,
        uv_export=export_options,
        gridpack_version=__version__,
    )


def write_manifest(manifest: BuildManifest, stage_dir: Path) -> Path:
    path = stage_dir / MANIFEST_FILE
    try:
        path.write_text(manifest.to_json(), encoding="utf-8")
    except OSError as exc:
        raise ManifestIncomplete(f"cannot write manifest: {exc}", path=path) from exc
    return path


class MetadataWriterStage(BaseStage):
    """Stage 5: Metadata Writer — hashes, provenance, manifest file."""

    def __init__(
        self,
        probe: InterpreterProbe,
        revisions: RevisionSource,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.probe = probe
        self.revisions = revisions
        self.clock = clock

    @property
    def stage_id(self) -> str:
        return "s5_manifest"

    @property
    def display_name(self) -> str:
        return "Metadata Writer"

    def execute(self, context: BuildContext) -> dict[str, Any]:
        project = context.require("project")
        staged = context.require("staged")
        install_options = context.require("install_options")
        export_options = context.require("export_options")

        manifest = build_manifest(
            request=context.request,
            project=project,
            staged=staged,
            export_path=context.export_path,
            export_options=export_options,
            break_system_packages=install_options.break_system_packages,
            probe=self.probe,
            revisions=self.revisions,
            now=self.clock() if self.clock else None,
        )
        context.manifest = manifest
        context.manifest_path = write_manifest(manifest, staged.stage_dir)
        logger.info(
            "Manifest written: python %s, lock=%s, git=%s",
            manifest.python_full,
            (manifest.uv_lock_sha256 or "-")[:12],
            (manifest.git_rev or "-")[:12],
        )
        return manifest.model_dump(exclude={"built_at"})
