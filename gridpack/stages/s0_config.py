"""Stage 0 — Config Reader.

Reads the project's identity before anything touches the filesystem:

    - ``.python-version``: the runtime version to provision.
    - ``pyproject.toml``: ``[project].name``, the package excluded from
      the dependency export.

Only the top-level ``[project]`` table is consulted; a ``name`` key in
``[tool.*]``, ``[project.urls]`` or any other table is never used.
"""

from __future__ import annotations

import logging
import tomllib
from pathlib import Path
from typing import Any

from gridpack.core.errors import EmptyVersion, MissingInput, MissingProjectName
from gridpack.models.context import BuildContext
from gridpack.models.project import (
    LOCK_FILE,
    PROJECT_FILE,
    PYTHON_VERSION_FILE,
    ProjectDescriptor,
)
from gridpack.stages.base import BaseStage

logger = logging.getLogger(__name__)


def read_python_version(path: Path) -> str:
    """First meaningful line of a ``.python-version`` file.

    Blank lines and ``#`` comments are skipped.
    """
    if not path.is_file():
        raise MissingInput("runtime-version file not found", path=path)
    for line in path.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if line and not line.startswith("#"):
            return line
    raise EmptyVersion("runtime-version file is empty", path=path)


def read_project_name(path: Path) -> str:
    """``name`` from the top-level ``[project]`` table of *path*."""
    if not path.is_file():
        raise MissingInput("project file not found", path=path)
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        raise MissingProjectName(f"project file is not valid TOML: {exc}", path=path) from exc

    project = data.get("project")
    if not isinstance(project, dict):
        raise MissingProjectName("no [project] table", path=path)
    name = project.get("name")
    if not isinstance(name, str) or not name.strip():
        raise MissingProjectName("[project] table has no name", path=path)
    return name.strip()


def read_project(project_dir: Path) -> ProjectDescriptor:
    """Build the ``ProjectDescriptor`` for *project_dir*."""
    project_dir = Path(project_dir)
    if not project_dir.is_dir():
        raise MissingInput("project directory not found", path=project_dir)

    version = read_python_version(project_dir / PYTHON_VERSION_FILE)
    name = read_project_name(project_dir / PROJECT_FILE)
    lockfile = project_dir / LOCK_FILE
    if not lockfile.is_file():
        logger.warning("No %s in %s; the frozen export will fail", LOCK_FILE, project_dir)

    return ProjectDescriptor(
        name=name,
        python_version=version,
        project_dir=project_dir,
        lockfile=lockfile,
    )


class ConfigReaderStage(BaseStage):
    """Stage 0: Config Reader — reads the project descriptor."""

    @property
    def stage_id(self) -> str:
        return "s0_config"

    @property
    def display_name(self) -> str:
        return "Config Reader"

    def execute(self, context: BuildContext) -> dict[str, Any]:
        project = read_project(context.request.project_dir)
        context.project = project
        logger.info(
            "Project %s declares Python %s", project.name, project.python_version
        )
        return {
            "project_name": project.name,
            "python_version": project.python_version,
            "lockfile": str(project.lockfile),
        }
