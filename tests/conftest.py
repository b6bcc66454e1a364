from __future__ import annotations

import asyncio
import logging
from typing import Any

import pytest

from lectureqa.pipeline.orchestrator import LecturePipeline
from lectureqa.pipeline.registry import PartitionRegistry
from lectureqa.pipeline.retrieval import SemanticRetriever
from lectureqa.pipeline.router import QueryRouter
from lectureqa.pipeline.synthesis import AnswerSynthesizer
from lectureqa.schemas.retrieval import Partition
from lectureqa.schemas.routing import Topic
from lectureqa.services.embedding import EmbeddingService
from lectureqa.services.llm import ChatModel
from lectureqa.utils.logging import ROOT_LOGGER

CLASSIFIER_MODEL = "classifier-model"
DECLINE_MODEL = "decline-model"
ANSWER_MODEL = "answer-model"

NODE_COLLECTION = "ChaiCode-NodeJS"
PYTHON_COLLECTION = "ChaiCode-Python"


class FakeChatModel(ChatModel):
    """Scripted replies per model name; exceptions in the script are raised."""

    def __init__(self, replies: dict[str, list[Any]] | None = None, delay: float = 0.0):
        self.replies = {model: list(items) for model, items in (replies or {}).items()}
        self.delay = delay
        self.calls: list[dict[str, Any]] = []

    def calls_for(self, model: str) -> list[dict[str, Any]]:
        return [c for c in self.calls if c["model"] == model]

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
        self.calls.append({
            "system": system_prompt,
            "user": user_prompt,
            "model": model,
            "temperature": temperature,
            "max_tokens": max_tokens,
            "json_mode": json_mode,
        })
        if self.delay:
            await asyncio.sleep(self.delay)
        script = self.replies.get(model)
        if not script:
            raise AssertionError(f"Unexpected call to {model}")
        reply = script.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


class FakeEmbeddingService(EmbeddingService):
    def __init__(self, error: Exception | None = None):
        self.error = error
        self.texts: list[str] = []

    async def embed_documents(self, texts: list[str]) -> list[list[float]]:
        if self.error:
            raise self.error
        self.texts.extend(texts)
        return [[float(len(t)), 1.0] for t in texts]


class FakeVectorStore:
    """Chroma-shaped results per collection; records every collection touched."""

    def __init__(self, hits: dict[str, list[dict[str, Any]]] | None = None, error: Exception | None = None):
        self.hits = hits or {}
        self.error = error
        self.queried: list[str] = []
        self.upserts: list[dict[str, Any]] = []

    def query(self, collection_name: str, query_embedding: list[float], n_results: int) -> dict[str, Any]:
        self.queried.append(collection_name)
        if self.error:
            raise self.error
        rows = self.hits.get(collection_name, [])[:n_results]
        return {
            "ids": [[f"id-{i}" for i in range(len(rows))]],
            "documents": [[r["text"] for r in rows]],
            "metadatas": [[r.get("metadata", {}) for r in rows]],
            "distances": [[r.get("distance", 0.1) for r in rows]],
        }

    def upsert(self, collection_name, ids, documents, embeddings, metadatas) -> int:
        self.upserts.append({
            "collection": collection_name,
            "ids": list(ids),
            "documents": list(documents),
            "embeddings": list(embeddings),
            "metadatas": list(metadatas),
        })
        return len(ids)


def hit(text: str, lecture: str, start_time: str, distance: float = 0.1) -> dict[str, Any]:
    return {"text": text, "metadata": {"lecture": lecture, "start_time": start_time}, "distance": distance}


@pytest.fixture
def topics() -> list[Topic]:
    return [
        Topic(
            name="nodejs",
            display_name="Node.js",
            description="Node.js runtime, Express and npm.",
            keywords=["nodejs", "node.js", "express", "npm"],
        ),
        Topic(
            name="python",
            display_name="Python",
            description="Python language and its tooling.",
            keywords=["python", "pip", "django"],
        ),
    ]


@pytest.fixture
def registry(topics) -> PartitionRegistry:
    return PartitionRegistry(
        topics,
        [
            Partition(topic="nodejs", collection_name=NODE_COLLECTION),
            Partition(topic="python", collection_name=PYTHON_COLLECTION),
        ],
    )


@pytest.fixture
def make_pipeline(registry):
    """Factory wiring the real stages around fake providers."""

    def _make(
        chat_model: FakeChatModel,
        vector_store: FakeVectorStore,
        *,
        embedding_service: FakeEmbeddingService | None = None,
        pipeline_registry: PartitionRegistry | None = None,
        timeout_seconds: float | None = None,
    ) -> LecturePipeline:
        reg = pipeline_registry or registry
        router = QueryRouter(
            reg,
            chat_model,
            classifier_model=CLASSIFIER_MODEL,
            decline_model=DECLINE_MODEL,
        )
        retriever = SemanticRetriever(embedding_service or FakeEmbeddingService(), vector_store)
        synthesizer = AnswerSynthesizer(
            chat_model,
            model=ANSWER_MODEL,
            token_counter=lambda text: len(text.split()),
        )
        return LecturePipeline(reg, router, retriever, synthesizer, timeout_seconds=timeout_seconds)

    return _make


@pytest.fixture
def app_caplog(caplog):
    """caplog for the lectureqa namespace, which does not propagate to root."""
    logger = logging.getLogger(ROOT_LOGGER)
    logger.addHandler(caplog.handler)
    yield caplog
    logger.removeHandler(caplog.handler)
