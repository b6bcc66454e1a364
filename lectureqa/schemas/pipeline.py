"""
PipelineContext carries per-invocation state between the 3 stages.

Created once at the start of a run and progressively enriched.  Never
shared between invocations.
"""

from __future__ import annotations

import time
from enum import Enum

from pydantic import BaseModel, Field

from lectureqa.schemas.response import Answer
from lectureqa.schemas.retrieval import Partition, RetrievedPassage
from lectureqa.schemas.routing import RoutingDecision


class PipelineState(str, Enum):
    ROUTING = "routing"
    RETRIEVING = "retrieving"
    SYNTHESIZING = "synthesizing"
    DONE = "done"
    DECLINED = "declined"
    FAILED_RECOVERABLE = "failed_recoverable"
    FAILED_FATAL = "failed_fatal"


TERMINAL_STATES = frozenset({
    PipelineState.DONE,
    PipelineState.DECLINED,
    PipelineState.FAILED_RECOVERABLE,
    PipelineState.FAILED_FATAL,
})

FAILED_STATES = frozenset({
    PipelineState.FAILED_RECOVERABLE,
    PipelineState.FAILED_FATAL,
})


class PipelineContext(BaseModel):
    """Shared context object threaded through all 3 pipeline stages."""

    # ── Input ───────────────────────────────────────────────────────
    raw_question: str

    # ── Stage outputs (populated progressively) ─────────────────────
    state: PipelineState = PipelineState.ROUTING
    routing_decision: RoutingDecision | None = None
    partition: Partition | None = None
    passages: list[RetrievedPassage] = Field(default_factory=list)
    answer: Answer | None = None
    response: str | None = None
    error_kind: str | None = None

    # ── Timing ──────────────────────────────────────────────────────
    start_time: float = Field(default_factory=time.time)
    stage_timings: dict[str, float] = Field(default_factory=dict)

    @property
    def elapsed_seconds(self) -> float:
        return time.time() - self.start_time


class PipelineResult(BaseModel):
    """What the orchestrator hands back to the caller."""
    state: PipelineState
    response: str
    topic: str | None = None
    answer: Answer | None = None
    error_kind: str | None = None
    processing_time_seconds: float = 0.0
    stage_timings: dict[str, float] = Field(default_factory=dict)

    @property
    def failed(self) -> bool:
        return self.state in FAILED_STATES
