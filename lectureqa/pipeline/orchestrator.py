"""
Pipeline Orchestrator: top-level entry point.

Routing -> Retrieving -> Synthesizing -> Done, with a Declined exit
straight from Routing.  Every failure lands in exactly one of
FAILED_RECOVERABLE / FAILED_FATAL and is reported to the caller as the
same generic message; detail stays in the logs.
"""

from __future__ import annotations

import asyncio

from lectureqa.core.errors import (
    RECOVERABLE_ERRORS,
    ConfigurationError,
    PipelineError,
    QueryValidationError,
)
from lectureqa.pipeline.registry import PartitionRegistry
from lectureqa.pipeline.retrieval import SemanticRetriever
from lectureqa.pipeline.router import QueryRouter
from lectureqa.pipeline.synthesis import AnswerSynthesizer
from lectureqa.prompts.decline import DEFAULT_DECLINE_MESSAGE
from lectureqa.schemas.pipeline import PipelineContext, PipelineResult, PipelineState
from lectureqa.utils.logging import get_logger, preview
from lectureqa.utils.timing import Timer

logger = get_logger("lectureqa.pipeline.orchestrator")

GENERIC_FAILURE_MESSAGE = "An internal server error occurred."


class LecturePipeline:
    """Stateless across invocations; safe to share between concurrent requests."""

    def __init__(
        self,
        registry: PartitionRegistry,
        router: QueryRouter,
        retriever: SemanticRetriever,
        synthesizer: AnswerSynthesizer,
        *,
        timeout_seconds: float | None = None,
        default_decline_message: str = DEFAULT_DECLINE_MESSAGE,
    ):
        self.registry = registry
        self.router = router
        self.retriever = retriever
        self.synthesizer = synthesizer
        self.timeout_seconds = timeout_seconds
        self.default_decline_message = default_decline_message

    async def run(self, question: str) -> PipelineResult:
        """
        Execute the full 3-stage pipeline for one question.

        Raises:
            QueryValidationError: empty / whitespace-only question
        """
        if not isinstance(question, str) or not question.strip():
            raise QueryValidationError("Message is required")

        ctx = PipelineContext(raw_question=question.strip())
        logger.info("[PIPELINE] Started | question: %s", preview(ctx.raw_question))

        try:
            if self.timeout_seconds:
                await asyncio.wait_for(self._execute(ctx), timeout=self.timeout_seconds)
            else:
                await self._execute(ctx)
        except ConfigurationError as e:
            self._fail(ctx, PipelineState.FAILED_FATAL, e)
        except RECOVERABLE_ERRORS as e:
            self._fail(ctx, PipelineState.FAILED_RECOVERABLE, e)
        except asyncio.TimeoutError:
            self._fail(
                ctx,
                PipelineState.FAILED_RECOVERABLE,
                None,
                kind="timeout",
                detail=f"timed out after {self.timeout_seconds}s in state {ctx.state.value}",
            )
        except Exception as e:
            logger.exception("[PIPELINE] Unexpected error in %s", ctx.state.value)
            self._fail(ctx, PipelineState.FAILED_RECOVERABLE, None, kind="internal", detail=repr(e))

        logger.info(
            "[PIPELINE] Finished (%.2fs) | state=%s",
            ctx.elapsed_seconds, ctx.state.value,
        )
        return PipelineResult(
            state=ctx.state,
            response=ctx.response or GENERIC_FAILURE_MESSAGE,
            topic=ctx.routing_decision.topic.name if ctx.routing_decision else None,
            answer=ctx.answer,
            error_kind=ctx.error_kind,
            processing_time_seconds=ctx.elapsed_seconds,
            stage_timings=ctx.stage_timings,
        )

    async def _execute(self, ctx: PipelineContext) -> None:
        # ── Stage 1: Routing ────────────────────────────────────────
        ctx.state = PipelineState.ROUTING
        with Timer("routing") as t1:
            decision = await self.router.route(ctx.raw_question)
        ctx.stage_timings["routing"] = t1.elapsed_s
        ctx.routing_decision = decision

        if decision.declined:
            ctx.state = PipelineState.DECLINED
            ctx.response = decision.user_facing_message or self.default_decline_message
            logger.info("[PIPELINE] Declined (%.2fs): out-of-domain question", t1.elapsed_s)
            return

        partition = self.registry.partition_for(decision.topic)
        if partition is None:
            raise ConfigurationError(
                f"Topic {decision.topic.name!r} has no registered partition"
            )
        ctx.partition = partition
        logger.info(
            "[PIPELINE] Stage 1 done (%.2fs) | topic=%s collection=%s",
            t1.elapsed_s, decision.topic.name, partition.collection_name,
        )

        # ── Stage 2: Retrieving ─────────────────────────────────────
        ctx.state = PipelineState.RETRIEVING
        with Timer("retrieval") as t2:
            ctx.passages = await self.retriever.retrieve(partition, ctx.raw_question)
        ctx.stage_timings["retrieval"] = t2.elapsed_s
        logger.info("[PIPELINE] Stage 2 done (%.2fs) | passages=%d", t2.elapsed_s, len(ctx.passages))

        # ── Stage 3: Synthesizing ───────────────────────────────────
        ctx.state = PipelineState.SYNTHESIZING
        with Timer("synthesis") as t3:
            answer = await self.synthesizer.synthesize(ctx.raw_question, ctx.passages)
        ctx.stage_timings["synthesis"] = t3.elapsed_s
        logger.info("[PIPELINE] Stage 3 done (%.2fs) | declined=%s", t3.elapsed_s, answer.declined)

        ctx.answer = answer
        ctx.response = answer.text
        ctx.state = PipelineState.DONE

    def _fail(
        self,
        ctx: PipelineContext,
        state: PipelineState,
        error: PipelineError | None,
        *,
        kind: str | None = None,
        detail: str | None = None,
    ) -> None:
        failed_in = ctx.state.value
        ctx.state = state
        ctx.error_kind = kind or (error.kind if error else None)
        ctx.response = GENERIC_FAILURE_MESSAGE
        ctx.answer = None
        detail = detail or str(error)

        if state is PipelineState.FAILED_FATAL:
            logger.critical(
                "[PIPELINE] FATAL %s error in %s: %s",
                ctx.error_kind, failed_in, detail,
                extra={"alert": "config_error", "error_kind": ctx.error_kind},
            )
        else:
            logger.error(
                "[PIPELINE] %s failure in %s: %s",
                ctx.error_kind, failed_in, detail,
                extra={"error_kind": ctx.error_kind},
            )
