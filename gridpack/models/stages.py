"""Stage state models — a strictly linear build pipeline."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class StageState(str, Enum):
    """State of each pipeline stage within one build."""

    NOT_STARTED = "not_started"
    RUNNING = "running"
    FAILED = "failed"
    PASSED = "passed"


# Valid state transitions.  PASSED and FAILED are terminal for a build;
# a retry is a new build from a clean stage.
VALID_TRANSITIONS: dict[StageState, set[StageState]] = {
    StageState.NOT_STARTED: {StageState.RUNNING},
    StageState.RUNNING: {StageState.PASSED, StageState.FAILED},
    StageState.PASSED: set(),
    StageState.FAILED: set(),
}


class StageDefinition(BaseModel):
    """Defines a pipeline stage and its prerequisites."""

    model_config = ConfigDict(frozen=True)

    stage_id: str
    display_name: str
    ordinal: int
    prerequisites: list[str] = []


PIPELINE_STAGE_DEFINITIONS: list[StageDefinition] = [
    StageDefinition(stage_id="s0_config", display_name="Config Reader", ordinal=0),
    StageDefinition(
        stage_id="s1_runtime",
        display_name="Runtime Resolver",
        ordinal=1,
        prerequisites=["s0_config"],
    ),
    StageDefinition(
        stage_id="s2_stage",
        display_name="Stager",
        ordinal=2,
        prerequisites=["s1_runtime"],
    ),
    StageDefinition(
        stage_id="s3_export",
        display_name="Dependency Exporter",
        ordinal=3,
        prerequisites=["s2_stage"],
    ),
    StageDefinition(
        stage_id="s4_install",
        display_name="Installer",
        ordinal=4,
        prerequisites=["s3_export"],
    ),
    StageDefinition(
        stage_id="s5_manifest",
        display_name="Metadata Writer",
        ordinal=5,
        prerequisites=["s4_install"],
    ),
    StageDefinition(
        stage_id="s6_sanity",
        display_name="Sanity Check",
        ordinal=6,
        prerequisites=["s5_manifest"],
    ),
    StageDefinition(
        stage_id="s7_archive",
        display_name="Archiver",
        ordinal=7,
        prerequisites=["s6_sanity"],
    ),
]

STAGE_DEFINITIONS_BY_ID: dict[str, StageDefinition] = {
    d.stage_id: d for d in PIPELINE_STAGE_DEFINITIONS
}
