"""Stage 6 — Sanity Check: the staged interpreter must still start."""

from __future__ import annotations

import logging
from typing import Any

from gridpack.bridge.protocols import InterpreterProbe
from gridpack.core.errors import StagedRuntimeBroken
from gridpack.models.context import BuildContext
from gridpack.models.runtime import StagedRuntime
from gridpack.stages.base import BaseStage

logger = logging.getLogger(__name__)

SANITY_SNIPPET = "import sys; print(sys.version)"


def sanity_check(staged: StagedRuntime, probe: InterpreterProbe) -> str:
    """Run the smoke snippet; return what the interpreter printed."""
    output = probe.run_snippet(staged.interpreter, SANITY_SNIPPET)
    if not output:
        raise StagedRuntimeBroken(
            "staged interpreter failed the sanity check", path=staged.interpreter
        )
    return output


class SanityCheckStage(BaseStage):
    """Stage 6: Sanity Check — last check before packaging."""

    def __init__(self, probe: InterpreterProbe) -> None:
        self.probe = probe

    @property
    def stage_id(self) -> str:
        return "s6_sanity"

    @property
    def display_name(self) -> str:
        return "Sanity Check"

    def execute(self, context: BuildContext) -> dict[str, Any]:
        staged = context.require("staged")
        output = sanity_check(staged, self.probe)
        context.sanity_output = output
        logger.info("Staged interpreter OK: %s", output.splitlines()[0])
        return {"version_banner": output.splitlines()[0]}
