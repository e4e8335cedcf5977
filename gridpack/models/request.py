"""Build request model — one invocation's parameters, immutable."""

from __future__ import annotations

import platform
import sys
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from gridpack.core.errors import InvalidRequest
from gridpack.core.tokenizer import split_args
from gridpack.models.artifacts import SUPPORTED_SUFFIXES, ArchiveFormat


class LayoutMode(str, Enum):
    """Where the runtime tree lands inside the stage."""

    FLATTENED = "flattened"
    NESTED = "nested"


def default_platform_label() -> str:
    """Host platform label, e.g. ``linux-x86_64``."""
    return f"{sys.platform}-{platform.machine().lower() or 'unknown'}"


class BuildRequest(BaseModel):
    """Parameters of a single build.

    All paths are made absolute on construction so nothing downstream
    depends on the process working directory.
    """

    model_config = ConfigDict(frozen=True)

    project_dir: Path
    stage_dir: Path
    output_path: Path
    layout: LayoutMode = LayoutMode.NESTED
    platform_label: str = Field(default="", validate_default=True)
    env_tag: str = ""
    no_cache: bool = False
    extra_pip_args: str = ""
    force_break_system_packages: bool = False

    @field_validator("project_dir", "stage_dir", "output_path")
    @classmethod
    def _absolute(cls, value: Path) -> Path:
        return Path(value).expanduser().resolve()

    @field_validator("platform_label")
    @classmethod
    def _platform(cls, value: str) -> str:
        return value.strip() or default_platform_label()

    @model_validator(mode="after")
    def _check_paths(self) -> BuildRequest:
        stage, project = self.stage_dir, self.project_dir
        if project == stage or project.is_relative_to(stage):
            raise ValueError(
                f"stage directory {stage} would contain the project directory {project}; "
                "it is wiped at the start of every build"
            )
        if self.output_path.is_relative_to(stage):
            raise ValueError(
                f"output archive {self.output_path} must not be inside the stage {stage}"
            )
        if ArchiveFormat.from_path(self.output_path) is None:
            raise ValueError(
                f"unsupported archive extension for {self.output_path.name}; "
                f"expected one of {', '.join(SUPPORTED_SUFFIXES)}"
            )
        try:
            split_args(self.extra_pip_args)
        except InvalidRequest as exc:
            raise ValueError(str(exc)) from exc
        return self

    @property
    def flattened(self) -> bool:
        return self.layout is LayoutMode.FLATTENED

    def pip_args(self) -> list[str]:
        """Extra installer arguments, tokenized."""
        return split_args(self.extra_pip_args)
