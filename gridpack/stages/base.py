"""Abstract base stage with an enforced lifecycle.

Every concrete stage inherits from BaseStage and implements only
``execute()``.  The ``run_stage()`` wrapper is **not overridable** — it
enforces the canonical lifecycle ordering:

    validate_prerequisites -> RUNNING -> execute
        -> compute_output_hash -> record -> PASSED

A stage that raises is marked FAILED and the error propagates; nothing
after it runs.
"""

from __future__ import annotations

import abc
import logging
from typing import Any, final

from gridpack.core.errors import BuildError
from gridpack.core.hasher import compute_output_hash
from gridpack.models.context import BuildContext
from gridpack.models.stages import (
    STAGE_DEFINITIONS_BY_ID,
    VALID_TRANSITIONS,
    StageState,
)

logger = logging.getLogger(__name__)


class StagePrerequisiteError(BuildError):
    """Raised when a stage's prerequisites are not satisfied."""


class StageExecutionError(BuildError):
    """Raised when a stage fails with something other than a ``BuildError``."""


class InvalidTransitionError(BuildError):
    """Raised on a stage state change the state model does not allow."""


class BaseStage(abc.ABC):
    """Abstract base for all gridpack pipeline stages.

    Subclasses **must** implement:
        * ``stage_id``     — unique identifier (e.g. ``"s2_stage"``).
        * ``display_name`` — human-readable name for console output.
        * ``execute(context)`` — the stage's core logic; stores its typed
          product on the context and returns a JSON-able summary dict.

    Subclasses **must not** override ``run_stage()``.
    """

    @property
    @abc.abstractmethod
    def stage_id(self) -> str:
        """Unique stage identifier."""
        ...

    @property
    @abc.abstractmethod
    def display_name(self) -> str:
        """Human-readable display name."""
        ...

    @abc.abstractmethod
    def execute(self, context: BuildContext) -> dict[str, Any]:
        """Execute the stage's core logic and return a summary dict."""
        ...

    # ------------------------------------------------------------------
    # Lifecycle — NOT overridable
    # ------------------------------------------------------------------

    @final
    def run_stage(self, context: BuildContext) -> dict[str, Any]:
        """Execute the full stage lifecycle.  **Do not override.**

        Returns the summary dict produced by ``execute()``, augmented with
        an ``_output_hash`` key.
        """
        self.validate_prerequisites(context)
        self._transition(context, StageState.RUNNING)
        logger.info("%s [%s] started", self.display_name, self.stage_id)

        try:
            result = self.execute(context)
        except BuildError as exc:
            exc.stage_id = exc.stage_id or self.stage_id
            self._transition(context, StageState.FAILED)
            logger.error("%s [%s] failed: %s", self.display_name, self.stage_id, exc.describe())
            raise
        except Exception as exc:
            self._transition(context, StageState.FAILED)
            logger.error("%s [%s] crashed: %s", self.display_name, self.stage_id, exc)
            error = StageExecutionError(f"Stage {self.stage_id} failed: {exc}")
            error.stage_id = self.stage_id
            raise error from exc

        output_hash = self._compute_output_hash(result)
        self._record(context, result, output_hash)
        self._transition(context, StageState.PASSED)

        result["_output_hash"] = output_hash
        return result

    # ------------------------------------------------------------------
    # Lifecycle helpers (not overridable)
    # ------------------------------------------------------------------

    @final
    def validate_prerequisites(self, context: BuildContext) -> None:
        """Ensure every prerequisite stage has PASSED."""
        definition = STAGE_DEFINITIONS_BY_ID.get(self.stage_id)
        prerequisites = definition.prerequisites if definition else []

        blocking: list[str] = []
        for prereq_id in prerequisites:
            state = context.stage_states.get(prereq_id, StageState.NOT_STARTED)
            if state is not StageState.PASSED:
                blocking.append(f"{prereq_id} is {state.value}")

        if blocking:
            error = StagePrerequisiteError(
                f"Cannot run {self.stage_id}: prerequisites not met — "
                + "; ".join(blocking)
            )
            error.stage_id = self.stage_id
            raise error

    @final
    def _transition(self, context: BuildContext, new_state: StageState) -> None:
        current = context.stage_states.get(self.stage_id, StageState.NOT_STARTED)
        if new_state not in VALID_TRANSITIONS[current]:
            error = InvalidTransitionError(
                f"{self.stage_id}: {current.value} -> {new_state.value} is not allowed"
            )
            error.stage_id = self.stage_id
            raise error
        context.stage_states[self.stage_id] = new_state

    @final
    def _compute_output_hash(self, result: dict[str, Any]) -> str:
        """SHA-256 of canonical(stage_id + result)."""
        hashable = {k: v for k, v in result.items() if not k.startswith("_")}
        return compute_output_hash(self.stage_id, hashable)

    @final
    def _record(
        self,
        context: BuildContext,
        result: dict[str, Any],
        output_hash: str,
    ) -> None:
        context.stage_results[self.stage_id] = result
        context.output_hashes[self.stage_id] = output_hash
        logger.info(
            "%s [%s] passed — output=%s",
            self.display_name,
            self.stage_id,
            output_hash[:12],
        )

    def __repr__(self) -> str:
        return f"<{type(self).__name__} stage_id={self.stage_id!r}>"
