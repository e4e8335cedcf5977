"""Build pipeline orchestrator — runs the stages of one build in order.

The pipeline owns a fresh ``BuildContext`` per run and walks the stages
strictly sequentially.  The first failure stops the run: the failing
stage is FAILED, every later stage stays NOT_STARTED, and the
``BuildError`` propagates to the caller with its ``stage_id`` set.
The context of the most recent run stays available on ``context`` so
callers can report stage states after a failure.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from gridpack.bridge.toolchain import Collaborators, Toolchain
from gridpack.config import BuildSettings
from gridpack.models.context import BuildContext
from gridpack.models.request import BuildRequest
from gridpack.models.stages import StageState
from gridpack.stages import BaseStage, build_stages

logger = logging.getLogger(__name__)

StageObserver = Callable[[BaseStage, StageState, BuildContext], None]


class BuildPipeline:
    """Runs the full gridpack build for a ``BuildRequest``.

    Parameters
    ----------
    collaborators:
        External tool implementations used by the stages.
    clock:
        Optional time source for the manifest timestamp.
    observer:
        Called after each stage finishes (PASSED or FAILED).
    """

    def __init__(
        self,
        collaborators: Collaborators,
        *,
        clock: Callable[[], datetime] | None = None,
        observer: StageObserver | None = None,
    ) -> None:
        self.collaborators = collaborators
        self.stages: list[BaseStage] = build_stages(collaborators, clock=clock)
        self.observer = observer
        self.context: BuildContext | None = None

    @classmethod
    def from_settings(
        cls,
        settings: BuildSettings,
        *,
        observer: StageObserver | None = None,
    ) -> BuildPipeline:
        """Pipeline wired to the real tools found via *settings*."""
        toolchain = Toolchain.discover(settings)
        return cls(Collaborators.from_toolchain(toolchain), observer=observer)

    def run(self, request: BuildRequest) -> BuildContext:
        """Execute every stage for *request*; return the finished context."""
        context = BuildContext(request=request)
        self.context = context
        logger.info(
            "Building %s from %s (stage %s)",
            request.output_path,
            request.project_dir,
            request.stage_dir,
        )

        for stage in self.stages:
            try:
                stage.run_stage(context)
            finally:
                self._notify(stage, context)

        logger.info("Build complete: %s", request.output_path)
        return context

    def _notify(self, stage: BaseStage, context: BuildContext) -> None:
        if self.observer is None:
            return
        state = context.stage_states.get(stage.stage_id, StageState.NOT_STARTED)
        self.observer(stage, state, context)
