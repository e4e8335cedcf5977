"""Stage 3 — Dependency Exporter.

Exports the lockfile to a flat, pinned, hash-free requirements file at
``<stage>/requirements-export.txt``.  The export is always frozen: a lock
that is stale relative to ``pyproject.toml`` fails the build instead of
being re-resolved.

After export the file is checked: it must exist and must not name the
project's own package.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any

from gridpack.bridge.protocols import LockExporter
from gridpack.core.errors import ExportFailed
from gridpack.models.context import BuildContext
from gridpack.models.manifest import REQUIREMENTS_EXPORT_FILE, ExportOptions
from gridpack.models.project import ProjectDescriptor
from gridpack.stages.base import BaseStage

logger = logging.getLogger(__name__)

_NAME_RE = re.compile(r"^([A-Za-z0-9](?:[A-Za-z0-9._-]*[A-Za-z0-9])?)")
_EDITABLE_RE = re.compile(r"^(?:-e|--editable)\s+(.+)$")


def canonical_name(name: str) -> str:
    """PEP 503 normalised project name."""
    return re.sub(r"[-_.]+", "-", name).lower()


def requirement_lines(text: str) -> list[str]:
    """Requirement lines of an export, without comments, blanks or continuations."""
    lines: list[str] = []
    for raw in text.splitlines():
        line = raw.split(" #", 1)[0].strip().rstrip("\\").strip()
        if line and not line.startswith("#"):
            lines.append(line)
    return lines


def references_project(line: str, project: ProjectDescriptor) -> bool:
    """Whether requirement *line* installs the project itself."""
    editable = _EDITABLE_RE.match(line)
    if editable:
        target = editable.group(1).strip()
        if target.startswith("file://"):
            target = target[len("file://"):]
        path = Path(target)
        if not path.is_absolute():
            path = project.project_dir / path
        return path.resolve() == project.project_dir.resolve()
    if line.startswith("-"):
        return False
    match = _NAME_RE.match(line)
    return match is not None and canonical_name(match.group(1)) == canonical_name(project.name)


def export_requirements(
    project: ProjectDescriptor,
    stage_dir: Path,
    exporter: LockExporter,
) -> tuple[Path, ExportOptions]:
    """Run the frozen export into *stage_dir* and validate its output."""
    if not project.lockfile.is_file():
        raise ExportFailed("lockfile not found", path=project.lockfile)

    options = ExportOptions(no_emit_package=project.name)
    output = stage_dir / REQUIREMENTS_EXPORT_FILE
    exporter.export(project.project_dir, output, options)

    if not output.is_file():
        raise ExportFailed("export reported success but wrote no file", path=output)

    for line in requirement_lines(output.read_text(encoding="utf-8")):
        if references_project(line, project):
            raise ExportFailed(
                f"export still references the project package {project.name!r}",
                path=output,
                value=line,
            )
    return output, options


class DependencyExporterStage(BaseStage):
    """Stage 3: Dependency Exporter — frozen lock export into the stage."""

    def __init__(self, exporter: LockExporter) -> None:
        self.exporter = exporter

    @property
    def stage_id(self) -> str:
        return "s3_export"

    @property
    def display_name(self) -> str:
        return "Dependency Exporter"

    def execute(self, context: BuildContext) -> dict[str, Any]:
        project = context.require("project")
        staged = context.require("staged")
        output, options = export_requirements(project, staged.stage_dir, self.exporter)
        context.export_path = output
        context.export_options = options

        pinned = requirement_lines(output.read_text(encoding="utf-8"))
        logger.info("Exported %d requirement lines to %s", len(pinned), output.name)
        return {
            "export_file": output.name,
            "requirement_count": len(pinned),
            "options": options.model_dump(),
        }
