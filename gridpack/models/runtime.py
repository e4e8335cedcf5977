"""Runtime installation and staged-runtime models."""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import BaseModel, ConfigDict

from gridpack.models.request import LayoutMode

# Interpreter location relative to a python-build-standalone install root.
INTERPRETER_RELPATH: Path = (
    Path("python.exe") if os.name == "nt" else Path("bin") / "python3"
)

# Fixed subdirectory holding the runtime in nested layout.
NESTED_RUNTIME_DIRNAME = "python"

EXTERNALLY_MANAGED_MARKER = "EXTERNALLY-MANAGED"


class RuntimeInstallation(BaseModel):
    """A located, provisioner-managed runtime.  Treated as read-only."""

    model_config = ConfigDict(frozen=True)

    root: Path
    interpreter: Path

    @property
    def dirname(self) -> str:
        return self.root.name


class StagedRuntime(BaseModel):
    """The disposable copy of a runtime inside the stage directory."""

    model_config = ConfigDict(frozen=True)

    stage_dir: Path
    root: Path
    interpreter: Path
    layout: LayoutMode

    @property
    def flattened(self) -> bool:
        return self.layout is LayoutMode.FLATTENED

    def externally_managed_markers(self) -> list[Path]:
        """Every ``EXTERNALLY-MANAGED`` marker inherited from the source runtime."""
        lib = self.root / ("Lib" if os.name == "nt" else "lib")
        if not lib.is_dir():
            return []
        # Lib/EXTERNALLY-MANAGED on Windows, lib/python3.X/EXTERNALLY-MANAGED elsewhere
        found = list(lib.glob(EXTERNALLY_MANAGED_MARKER))
        found.extend(lib.glob(f"python*/{EXTERNALLY_MANAGED_MARKER}"))
        return sorted(found)


def staged_runtime_root(stage_dir: Path, layout: LayoutMode) -> Path:
    """Where the runtime tree lives in a stage for *layout*."""
    if layout is LayoutMode.FLATTENED:
        return stage_dir
    return stage_dir / NESTED_RUNTIME_DIRNAME


def interpreter_candidates(stage_dir: Path) -> dict[LayoutMode, Path]:
    """Interpreter path the stage would hold under each layout."""
    return {
        mode: staged_runtime_root(stage_dir, mode) / INTERPRETER_RELPATH
        for mode in LayoutMode
    }
