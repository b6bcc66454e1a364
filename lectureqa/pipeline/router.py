"""
Pipeline Stage 1: Query routing.

1. Optional keyword fast path (zero cost, only when unambiguous)
2. Structured topic classification (one LLM call, JSON mode, strict decode)
3. Decline message for out-of-domain questions (separate LLM call)

Tie-break: when a question plausibly spans several topics the classifier
is told to pick the first-registered one; the keyword fast path refuses
to decide and defers to the classifier.
"""

from __future__ import annotations

import asyncio
import re

import openai
from pydantic import ValidationError

from lectureqa.core.errors import RoutingFailure, ServiceUnavailable
from lectureqa.pipeline.registry import PartitionRegistry
from lectureqa.prompts.decline import build_decline_prompt, template_decline_message
from lectureqa.prompts.topic_classifier import build_topic_classifier_prompt
from lectureqa.schemas.routing import (
    NONE_TOPIC,
    NONE_TOPIC_NAME,
    RoutingDecision,
    Topic,
    TopicClassification,
)
from lectureqa.services.llm import ChatModel, EmptyCompletionError
from lectureqa.utils.logging import get_logger, preview

logger = get_logger("lectureqa.pipeline.router")

CLASSIFIER_MAX_TOKENS = 50
DECLINE_MAX_TOKENS = 120


def match_keywords(question: str, topics: list[Topic]) -> list[Topic]:
    """Topics whose keywords occur in the question as whole words."""
    q = question.lower()
    matched = []
    for topic in topics:
        for keyword in topic.keywords:
            kw = keyword.lower().strip()
            if kw and re.search(rf"(?<![a-z0-9_]){re.escape(kw)}(?![a-z0-9_])", q):
                matched.append(topic)
                break
    return matched


class QueryRouter:
    """Classifies a raw question into one registered topic or the sentinel."""

    def __init__(
        self,
        registry: PartitionRegistry,
        chat_model: ChatModel,
        *,
        classifier_model: str,
        decline_model: str | None = None,
        keyword_fast_path: bool = False,
        generate_decline_message: bool = True,
    ):
        self.registry = registry
        self.chat_model = chat_model
        self.classifier_model = classifier_model
        self.decline_model = decline_model or classifier_model
        self.keyword_fast_path = keyword_fast_path
        self.generate_decline_message = generate_decline_message

    async def route(self, question: str) -> RoutingDecision:
        topics = self.registry.topics()

        if self.keyword_fast_path:
            matched = match_keywords(question, topics)
            if len(matched) == 1:
                logger.info("[ROUTER] Keyword route: %s", matched[0].name)
                return RoutingDecision(topic=matched[0], via_keywords=True)
            if len(matched) > 1:
                logger.info(
                    "[ROUTER] Keywords ambiguous (%s), deferring to classifier",
                    [t.name for t in matched],
                )

        topic = await self._classify(question, topics)
        if topic is not None:
            logger.info("[ROUTER] Classified: topic=%s", topic.name)
            return RoutingDecision(topic=topic)

        logger.info("[ROUTER] Out of domain: %s", preview(question))
        message = await self._decline_message(question, topics)
        return RoutingDecision(topic=NONE_TOPIC, user_facing_message=message)

    # ── Classification ──────────────────────────────────────────────

    async def _classify(self, question: str, topics: list[Topic]) -> Topic | None:
        """Return the matched topic, or None for the sentinel."""
        system_prompt, user_prompt = build_topic_classifier_prompt(question, topics)
        try:
            raw = await self.chat_model.complete(
                system_prompt,
                user_prompt,
                model=self.classifier_model,
                temperature=0.0,
                max_tokens=CLASSIFIER_MAX_TOKENS,
                json_mode=True,
            )
        except EmptyCompletionError as e:
            raise RoutingFailure("Classifier returned no content") from e
        except (openai.OpenAIError, asyncio.TimeoutError) as e:
            raise ServiceUnavailable(f"Classifier call failed: {e}") from e

        return self.decode_classification(raw)

    def decode_classification(self, raw: str) -> Topic | None:
        """
        Strictly decode the classifier reply.  Fails closed: anything but
        {"topic": "<registered label or none>"} raises RoutingFailure.
        """
        try:
            parsed = TopicClassification.model_validate_json((raw or "").strip())
        except ValidationError as e:
            logger.warning("[ROUTER] Malformed classifier output: %s", preview(raw or "", 200))
            raise RoutingFailure(f"Malformed classifier output: {e.error_count()} error(s)") from e

        label = parsed.topic.strip().lower()
        if label == NONE_TOPIC_NAME:
            return None

        for topic in self.registry.topics():
            if topic.name.lower() == label:
                return topic
        raise RoutingFailure(f"Classifier returned unknown topic: {parsed.topic!r}")

    # ── Decline message ─────────────────────────────────────────────

    async def _decline_message(self, question: str, topics: list[Topic]) -> str | None:
        """
        Polite decline text.  Non-essential: a failed generation is logged
        and yields None, and the orchestrator substitutes its default.
        """
        if not self.generate_decline_message:
            return template_decline_message(topics)

        system_prompt, user_prompt = build_decline_prompt(question, topics)
        try:
            text = await self.chat_model.complete(
                system_prompt,
                user_prompt,
                model=self.decline_model,
                temperature=0.3,
                max_tokens=DECLINE_MAX_TOKENS,
            )
        except (EmptyCompletionError, openai.OpenAIError, asyncio.TimeoutError) as e:
            logger.warning("[ROUTER] Decline message generation failed: %s", e)
            return None
        return text.strip() or None
