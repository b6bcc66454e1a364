"""
Chat-model service handle and token counting.

The OpenAI client is built explicitly from settings and injected into
each pipeline component.  No module-level client singleton.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from typing import Any

import tiktoken
from openai import AsyncOpenAI

from lectureqa.core.config import Settings
from lectureqa.utils.logging import get_logger

logger = get_logger("lectureqa.services.llm")


class EmptyCompletionError(ValueError):
    """The provider answered without any message content."""


class ChatModel(ABC):
    """Text-in / text-out chat capability used by router and synthesizer."""

    provider_name: str = "base"

    @abstractmethod
    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        model: str,
        temperature: float = 0.0,
        max_tokens: int | None = None,
        json_mode: bool = False,
    ) -> str:
        """
        Send one system + user message pair and return the raw reply text.

        Raises:
            EmptyCompletionError: the reply had no content
            openai.OpenAIError: transport / provider failures, unwrapped
        """
        ...


class OpenAIChatModel(ChatModel):
    """Provider for the OpenAI Chat Completions API."""

    provider_name = "openai_chat"

    def __init__(self, client: AsyncOpenAI):
        self.client = client

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        model: str,
        temperature: float = 0.0,
        max_tokens: int | None = None,
        json_mode: bool = False,
    ) -> str:
        kwargs: dict[str, Any] = {
            "model": model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "temperature": temperature,
        }
        if max_tokens:
            kwargs["max_tokens"] = max_tokens
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        response = await self.client.chat.completions.create(**kwargs)

        if not response.choices:
            raise EmptyCompletionError("Empty response from OpenAI Chat Completions API")
        content = response.choices[0].message.content
        if not content or not content.strip():
            raise EmptyCompletionError("Empty response from OpenAI Chat Completions API")

        usage = getattr(response, "usage", None)
        if usage is not None:
            logger.debug(
                "[LLM] model=%s prompt_tokens=%s completion_tokens=%s",
                model,
                getattr(usage, "prompt_tokens", None),
                getattr(usage, "completion_tokens", None),
            )
        return content


def build_openai_client(settings: Settings) -> AsyncOpenAI:
    """
    Build the shared AsyncOpenAI client.

    max_retries=0: single-attempt semantics per outbound call; the caller
    decides whether to retry the whole invocation.
    """
    return AsyncOpenAI(
        api_key=settings.openai_api_key,
        base_url=settings.openai_base_url,
        timeout=settings.llm_request_timeout_seconds,
        max_retries=0,
    )


# ── Token counting ──────────────────────────────────────────────────
_encoder_lock = threading.Lock()
_encoder: Any | None = None


def _get_encoder() -> Any:
    """Return the cached cl100k_base encoder."""
    global _encoder
    if _encoder is not None:
        return _encoder

    with _encoder_lock:
        if _encoder is None:
            _encoder = tiktoken.get_encoding("cl100k_base")
        return _encoder


def count_tokens(text: str) -> int:
    """Count tokens the way the OpenAI chat models do."""
    return len(_get_encoder().encode(text or ""))
