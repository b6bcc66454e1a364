"""
Pipeline Stage 2: Retrieval.

1. Embed the question (same model as ingestion)
2. Nearest-neighbour search in the partition's collection only
3. Ranking policy: drop empty / too-distant hits, collapse duplicates,
   re-rank 1..n by ascending distance

NO LLM calls.  Read-only.
"""

from __future__ import annotations

import asyncio
from typing import Any

from lectureqa.core.errors import RetrievalFailure
from lectureqa.schemas.retrieval import Partition, RetrievedPassage
from lectureqa.services.embedding import EmbeddingService
from lectureqa.services.vector_store import VectorStore
from lectureqa.utils.logging import get_logger, preview

logger = get_logger("lectureqa.pipeline.retrieval")

# Metadata keys written by ingestion; fallbacks cover older indexes
SOURCE_LABEL_KEYS = ("lecture", "source")
START_TIME_KEYS = ("start_time", "start")
UNKNOWN = "unknown"


def _first_meta(meta: dict[str, Any], keys: tuple[str, ...]) -> str:
    for key in keys:
        value = meta.get(key)
        if value is not None and str(value).strip():
            return str(value)
    return UNKNOWN


def _column(results: dict[str, Any], key: str) -> list[Any]:
    """First row of a Chroma column-shaped result, or []."""
    column = results.get(key)
    if not column or column[0] is None:
        return []
    return list(column[0])


class SemanticRetriever:
    """Top-k passage search against one partition."""

    def __init__(
        self,
        embedding_service: EmbeddingService,
        vector_store: VectorStore,
        *,
        default_k: int = 5,
        max_distance: float | None = None,
    ):
        if default_k < 1:
            raise ValueError("default_k must be >= 1")
        self.embedding_service = embedding_service
        self.vector_store = vector_store
        self.default_k = default_k
        self.max_distance = max_distance

    async def retrieve(
        self,
        partition: Partition,
        question: str,
        k: int | None = None,
    ) -> list[RetrievedPassage]:
        k = self.default_k if k is None else k
        if k < 1:
            raise ValueError("k must be >= 1")

        try:
            embedding = await self.embedding_service.embed_query(question)
        except Exception as e:
            logger.error("[RETRIEVAL] Embedding failed: %s", e)
            raise RetrievalFailure(f"Embedding failed: {e}") from e

        try:
            results = await asyncio.to_thread(
                self.vector_store.query,
                partition.collection_name,
                embedding,
                k,
            )
        except Exception as e:
            logger.error("[RETRIEVAL] Search in %s failed: %s", partition.collection_name, e)
            raise RetrievalFailure(f"Vector search failed for {partition.collection_name}: {e}") from e

        passages = self.rank_results(results, k)
        logger.info(
            "[RETRIEVAL] %s: %d passage(s) for %s",
            partition.collection_name, len(passages), preview(question),
        )
        return passages

    def rank_results(self, results: dict[str, Any], k: int) -> list[RetrievedPassage]:
        """Apply the passage-ranking policy to a raw Chroma result."""
        documents = _column(results, "documents")
        metadatas = _column(results, "metadatas")
        distances = _column(results, "distances")

        hits: list[tuple[float, int, str, dict[str, Any]]] = []
        for idx, text in enumerate(documents):
            text = (text or "").strip()
            if not text:
                continue
            meta = (metadatas[idx] if idx < len(metadatas) else None) or {}
            distance = float(distances[idx]) if idx < len(distances) and distances[idx] is not None else 0.0
            if self.max_distance is not None and distance > self.max_distance:
                continue
            # idx keeps the store's order stable for equal distances
            hits.append((distance, idx, text, meta))

        hits.sort(key=lambda h: (h[0], h[1]))

        passages: list[RetrievedPassage] = []
        seen: set[tuple[str, str, str]] = set()
        for distance, _, text, meta in hits:
            label = _first_meta(meta, SOURCE_LABEL_KEYS)
            start = _first_meta(meta, START_TIME_KEYS)
            key = (label, start, text)
            if key in seen:
                continue
            seen.add(key)
            passages.append(RetrievedPassage(
                text=text,
                source_label=label,
                start_timestamp=start,
                relevance_rank=len(passages) + 1,
                distance=distance,
            ))
            if len(passages) >= k:
                break
        return passages
