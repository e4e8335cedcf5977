"""Project identity read from the project directory."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict

PYTHON_VERSION_FILE = ".python-version"
PROJECT_FILE = "pyproject.toml"
LOCK_FILE = "uv.lock"


class ProjectDescriptor(BaseModel):
    """Identity of the project being packaged. Read once, read-only."""

    model_config = ConfigDict(frozen=True)

    name: str
    python_version: str
    project_dir: Path
    lockfile: Path
