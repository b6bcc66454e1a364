"""
Transcript ingestion into a partition's collection.

Each *.vtt file is one lecture; its file stem is the lecture label that
answers cite.  Passage ids are deterministic (<label>-<index>) so
re-running an ingestion overwrites instead of duplicating.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

from lectureqa.ingestion.vtt import DEFAULT_MAX_CHARS, TranscriptPassage, build_passages, parse_vtt
from lectureqa.schemas.retrieval import Partition
from lectureqa.services.embedding import EmbeddingService
from lectureqa.services.vector_store import VectorStore
from lectureqa.utils.logging import get_logger

logger = get_logger("lectureqa.ingestion")

EMBED_BATCH_SIZE = 64


def passage_ids(passages: list[TranscriptPassage]) -> list[str]:
    return [f"{p.lecture}-{idx:05d}" for idx, p in enumerate(passages, start=1)]


async def ingest_file(
    path: Path,
    partition: Partition,
    embedding_service: EmbeddingService,
    vector_store: VectorStore,
    *,
    max_chars: int = DEFAULT_MAX_CHARS,
) -> int:
    """Parse, embed and upsert one transcript.  Returns the passage count."""
    lecture_label = path.stem
    cues = parse_vtt(path.read_text(encoding="utf-8"))
    passages = build_passages(cues, lecture_label, max_chars=max_chars)
    if not passages:
        logger.warning("No cues found in %s", path.name)
        return 0

    ids = passage_ids(passages)
    stored = 0
    for i in range(0, len(passages), EMBED_BATCH_SIZE):
        batch = passages[i:i + EMBED_BATCH_SIZE]
        embeddings = await embedding_service.embed_documents([p.text for p in batch])
        metadatas = [
            {
                "lecture": p.lecture,
                "start_time": p.start_time,
                "end_time": p.end_time,
                "topic": partition.topic,
                "source_file": path.name,
            }
            for p in batch
        ]
        stored += await asyncio.to_thread(
            vector_store.upsert,
            partition.collection_name,
            ids[i:i + EMBED_BATCH_SIZE],
            [p.text for p in batch],
            embeddings,
            metadatas,
        )

    logger.info("Indexed %s: %d passage(s) -> %s", path.name, stored, partition.collection_name)
    return stored


async def ingest_directory(
    directory: Path,
    partition: Partition,
    embedding_service: EmbeddingService,
    vector_store: VectorStore,
    *,
    max_chars: int = DEFAULT_MAX_CHARS,
) -> dict[str, int]:
    """Index every *.vtt directly in directory (not subdirectories).  Returns {file name: passages stored}."""
    if not directory.is_dir():
        raise FileNotFoundError(f"Transcript directory not found: {directory}")

    counts: dict[str, int] = {}
    for path in sorted(directory.glob("*.vtt")):
        counts[path.name] = await ingest_file(
            path, partition, embedding_service, vector_store, max_chars=max_chars,
        )
    return counts
