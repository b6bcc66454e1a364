"""
Embedding services.

The same service (same model) must be used for ingestion and for
query-time retrieval, otherwise distances are meaningless.

Providers:
  - openai:                 OpenAI embeddings API (default text-embedding-3-large)
  - sentence_transformers:  local SentenceTransformer (all-MiniLM-L6-v2)
"""

from __future__ import annotations

import asyncio
import threading
from abc import ABC, abstractmethod
from typing import Any

from openai import AsyncOpenAI

from lectureqa.core.config import Settings
from lectureqa.core.errors import ConfigurationError
from lectureqa.utils.logging import get_logger

logger = get_logger("lectureqa.services.embedding")

DEFAULT_LOCAL_MODEL = "all-MiniLM-L6-v2"


class EmbeddingService(ABC):
    """Maps text to fixed-dimension vectors."""

    model_name: str = ""

    @abstractmethod
    async def embed_documents(self, texts: list[str]) -> list[list[float]]:
        ...

    async def embed_query(self, text: str) -> list[float]:
        vectors = await self.embed_documents([text])
        return vectors[0]


class OpenAIEmbeddingService(EmbeddingService):
    """Embeddings via the OpenAI API."""

    def __init__(self, client: AsyncOpenAI, model_name: str = "text-embedding-3-large"):
        self.client = client
        self.model_name = model_name

    async def embed_documents(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []
        response = await self.client.embeddings.create(model=self.model_name, input=texts)
        ordered = sorted(response.data, key=lambda item: item.index)
        return [list(item.embedding) for item in ordered]


class SentenceTransformerEmbeddingService(EmbeddingService):
    """
    Local embeddings.  The model is loaded on first use and cached on
    the instance; encoding runs in a worker thread so the event loop
    is never blocked.
    """

    def __init__(self, model_name: str = DEFAULT_LOCAL_MODEL):
        self.model_name = model_name
        self._model: Any | None = None
        self._lock = threading.Lock()

    def _get_model(self) -> Any:
        if self._model is None:
            with self._lock:
                if self._model is None:
                    from sentence_transformers import SentenceTransformer

                    self._model = SentenceTransformer(self.model_name)
                    logger.info("SentenceTransformer model loaded: %s", self.model_name)
        return self._model

    def _encode(self, texts: list[str]) -> list[list[float]]:
        model = self._get_model()
        # show_progress_bar=False keeps tqdm off stderr
        return model.encode(texts, show_progress_bar=False).tolist()

    async def embed_documents(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []
        return await asyncio.to_thread(self._encode, texts)


def build_embedding_service(settings: Settings, client: AsyncOpenAI | None = None) -> EmbeddingService:
    """Create the embedding service named by settings.embedding_provider."""
    provider = settings.embedding_provider.lower().strip()
    if provider == "openai":
        if client is None:
            raise ConfigurationError("OpenAI embeddings require an OpenAI client")
        return OpenAIEmbeddingService(client, settings.embedding_model)
    if provider in ("sentence_transformers", "sentence-transformers", "local"):
        model = settings.embedding_model
        if model.startswith("text-embedding-"):
            model = DEFAULT_LOCAL_MODEL
        return SentenceTransformerEmbeddingService(model)
    raise ConfigurationError(f"Unsupported embedding provider: {settings.embedding_provider}")
