"""Stage 2 — Stager.

Removes any archive a previous build left at the output path, wipes and
recreates the stage directory, then copies the located runtime
into it:

    - flattened: ``<stage>/<runtime contents>``, interpreter at
      ``<stage>/bin/python3`` (``<stage>/python.exe`` on Windows).
    - nested: ``<stage>/python/<runtime contents>``.

The source installation is only ever read.  The copy is verified, not
assumed: the interpreter must exist at exactly one of the two layout
locations afterwards.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Any

from gridpack.core.errors import InterpreterNotStaged, StageCopyFailed
from gridpack.models.context import BuildContext
from gridpack.models.request import BuildRequest, LayoutMode
from gridpack.models.runtime import (
    INTERPRETER_RELPATH,
    RuntimeInstallation,
    StagedRuntime,
    interpreter_candidates,
    staged_runtime_root,
)
from gridpack.stages.base import BaseStage

logger = logging.getLogger(__name__)


def _overlaps(a: Path, b: Path) -> bool:
    return a == b or a.is_relative_to(b) or b.is_relative_to(a)


def reset_stage_dir(stage_dir: Path) -> None:
    """Delete *stage_dir* if present and recreate it empty."""
    try:
        if stage_dir.is_symlink() or stage_dir.is_file():
            stage_dir.unlink()
        elif stage_dir.exists():
            logger.info("Clearing previous stage %s", stage_dir)
            shutil.rmtree(stage_dir)
        stage_dir.mkdir(parents=True)
    except OSError as exc:
        raise StageCopyFailed(f"cannot reset stage directory: {exc}", path=stage_dir) from exc


def remove_previous_artifact(output_path: Path) -> None:
    """Delete an archive left at *output_path* by an earlier build."""
    if not (output_path.exists() or output_path.is_symlink()):
        return
    if output_path.is_dir() and not output_path.is_symlink():
        raise StageCopyFailed("output path is a directory", path=output_path)
    logger.info("Removing previous archive %s", output_path)
    try:
        output_path.unlink()
    except OSError as exc:
        raise StageCopyFailed(f"cannot remove previous archive: {exc}", path=output_path) from exc


def stage_runtime(
    request: BuildRequest, installation: RuntimeInstallation
) -> StagedRuntime:
    """Copy *installation* into a clean stage per ``request.layout``."""
    stage_dir = request.stage_dir
    source = installation.root.resolve()
    if _overlaps(stage_dir, source):
        raise StageCopyFailed(
            f"stage directory overlaps the source runtime {source}", path=stage_dir
        )

    remove_previous_artifact(request.output_path)
    reset_stage_dir(stage_dir)

    runtime_root = staged_runtime_root(stage_dir, request.layout)
    logger.info("Copying %s -> %s (%s)", source, runtime_root, request.layout.value)
    try:
        shutil.copytree(source, runtime_root, symlinks=True, dirs_exist_ok=True)
    except (OSError, shutil.Error) as exc:
        raise StageCopyFailed(f"runtime copy did not complete: {exc}", path=runtime_root) from exc

    return verify_staged_interpreter(stage_dir, request.layout)


def verify_staged_interpreter(stage_dir: Path, layout: LayoutMode) -> StagedRuntime:
    """Check the stage holds exactly one interpreter, where *layout* puts it."""
    candidates = interpreter_candidates(stage_dir)
    expected = candidates[layout]
    present = [mode for mode, path in candidates.items() if path.is_file()]

    if layout not in present:
        raise InterpreterNotStaged(
            "interpreter executable missing after copy", path=expected
        )
    if len(present) > 1:
        others = [str(candidates[m]) for m in present if m is not layout]
        raise InterpreterNotStaged(
            f"ambiguous stage: interpreter also present at {', '.join(others)}",
            path=expected,
        )
    return StagedRuntime(
        stage_dir=stage_dir,
        root=staged_runtime_root(stage_dir, layout),
        interpreter=expected,
        layout=layout,
    )


class StagerStage(BaseStage):
    """Stage 2: Stager — clean stage plus a private runtime copy."""

    @property
    def stage_id(self) -> str:
        return "s2_stage"

    @property
    def display_name(self) -> str:
        return "Stager"

    def execute(self, context: BuildContext) -> dict[str, Any]:
        installation = context.require("installation")
        staged = stage_runtime(context.request, installation)
        context.staged = staged
        return {
            "stage_dir": str(staged.stage_dir),
            "interpreter": str(staged.interpreter.relative_to(staged.stage_dir)),
            "layout": staged.layout.value,
            "exe": str(INTERPRETER_RELPATH),
        }
