"""
Pipeline Stage 3: Answer synthesis.

1. Decline immediately when there are no passages (no LLM call)
2. Fit passages into the context token budget (rank order)
3. Generate the answer (one LLM call)
4. Validate citations against the supplied passages; strip unknown
   ones and fall back to the not-found statement if none survive
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable

import openai

from lectureqa.core.errors import SynthesisFailure
from lectureqa.prompts.answer_generator import (
    NOT_FOUND_MESSAGE,
    build_answer_prompt,
    build_context_block,
    build_system_prompt,
)
from lectureqa.schemas.response import Answer
from lectureqa.schemas.retrieval import RetrievedPassage
from lectureqa.services.llm import ChatModel, EmptyCompletionError, count_tokens
from lectureqa.utils.citations import filter_citations
from lectureqa.utils.logging import get_logger

logger = get_logger("lectureqa.pipeline.synthesis")


def not_found_answer(passages_used: int = 0) -> Answer:
    return Answer(text=NOT_FOUND_MESSAGE, declined=True, passages_used=passages_used)


def is_not_found_reply(text: str) -> bool:
    normalized = " ".join((text or "").lower().replace("’", "'").split())
    return NOT_FOUND_MESSAGE.lower().rstrip(".") in normalized


def apply_token_budget(
    passages: list[RetrievedPassage],
    budget: int,
    token_counter: Callable[[str], int],
) -> list[RetrievedPassage]:
    """
    Keep passages in rank order while their serialized size fits the
    budget.  The top-ranked passage is always kept.
    """
    if not passages or budget <= 0:
        return passages

    kept: list[RetrievedPassage] = []
    used = 0
    for passage in sorted(passages, key=lambda p: p.relevance_rank):
        cost = token_counter(build_context_block([passage]))
        if kept and used + cost > budget:
            break
        kept.append(passage)
        used += cost

    if len(kept) < len(passages):
        logger.info("[SYNTHESIS] Token budget: %d -> %d passage(s)", len(passages), len(kept))
    return kept


class AnswerSynthesizer:
    """Grounded answer generation with mandatory citations."""

    def __init__(
        self,
        chat_model: ChatModel,
        *,
        model: str,
        temperature: float = 0.2,
        max_tokens: int = 1200,
        context_token_budget: int = 6000,
        token_counter: Callable[[str], int] = count_tokens,
    ):
        self.chat_model = chat_model
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.context_token_budget = context_token_budget
        self.token_counter = token_counter

    async def synthesize(self, question: str, passages: list[RetrievedPassage]) -> Answer:
        if not passages:
            logger.info("[SYNTHESIS] No passages, declining without generation")
            return not_found_answer()

        try:
            context = apply_token_budget(passages, self.context_token_budget, self.token_counter)
        except Exception as e:
            raise SynthesisFailure(f"Token counting failed: {e}") from e

        try:
            raw = await self.chat_model.complete(
                build_system_prompt(context),
                build_answer_prompt(question),
                model=self.model,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
        except EmptyCompletionError as e:
            raise SynthesisFailure("Generator returned no content") from e
        except (openai.OpenAIError, asyncio.TimeoutError) as e:
            raise SynthesisFailure(f"Generation call failed: {e}") from e

        return self.validate(raw, context)

    def validate(self, raw: str, passages: list[RetrievedPassage]) -> Answer:
        """
        Enforce groundedness on the generator's reply.  A reply survives
        only if at least one citation matches a supplied passage; a
        partial answer that also mentions missing information is kept.
        """
        allowed = [p.citation_key for p in passages]
        text, kept, dropped = filter_citations(raw, allowed)
        if dropped:
            logger.warning(
                "[SYNTHESIS] Stripped %d citation(s) not in the passage set: %s",
                len(dropped), [c.token for c in dropped],
            )
        if not kept:
            if is_not_found_reply(raw):
                logger.info("[SYNTHESIS] Generator reported not found")
            else:
                logger.warning("[SYNTHESIS] No valid citation in answer, declining")
            return not_found_answer(len(passages))

        logger.info("[SYNTHESIS] Answer: %d chars, %d citation(s)", len(text), len(kept))
        return Answer(text=text, citations=kept, declined=False, passages_used=len(passages))
