import asyncio

import pytest

from conftest import NODE_COLLECTION, FakeEmbeddingService, FakeVectorStore, hit
from lectureqa.core.errors import RetrievalFailure
from lectureqa.pipeline.retrieval import SemanticRetriever
from lectureqa.schemas.retrieval import Partition

NODE_PARTITION = Partition(topic="nodejs", collection_name=NODE_COLLECTION)


def test_retrieve_ranks_by_distance_and_keeps_provenance() -> None:
    store = FakeVectorStore({
        NODE_COLLECTION: [
            hit("Streams let you process data in chunks.", "Streams", "00:04:10", distance=0.4),
            hit("The event loop has several phases.", "Event Loop", "00:12:03", distance=0.1),
        ]
    })
    retriever = SemanticRetriever(FakeEmbeddingService(), store)

    passages = asyncio.run(retriever.retrieve(NODE_PARTITION, "event loop phases?"))

    assert [p.source_label for p in passages] == ["Event Loop", "Streams"]
    assert [p.relevance_rank for p in passages] == [1, 2]
    assert passages[0].start_timestamp == "00:12:03"
    assert store.queried == [NODE_COLLECTION]


def test_retrieve_returns_at_most_k() -> None:
    store = FakeVectorStore({
        NODE_COLLECTION: [hit(f"passage {i}", "L", f"00:00:0{i}", distance=i / 10) for i in range(6)]
    })
    retriever = SemanticRetriever(FakeEmbeddingService(), store, default_k=5)

    assert len(asyncio.run(retriever.retrieve(NODE_PARTITION, "q"))) == 5
    assert len(asyncio.run(retriever.retrieve(NODE_PARTITION, "q", k=2))) == 2


def test_empty_collection_is_not_an_error() -> None:
    retriever = SemanticRetriever(FakeEmbeddingService(), FakeVectorStore())
    assert asyncio.run(retriever.retrieve(NODE_PARTITION, "anything")) == []


def test_k_must_be_positive() -> None:
    retriever = SemanticRetriever(FakeEmbeddingService(), FakeVectorStore())
    with pytest.raises(ValueError):
        asyncio.run(retriever.retrieve(NODE_PARTITION, "q", k=0))
    with pytest.raises(ValueError):
        SemanticRetriever(FakeEmbeddingService(), FakeVectorStore(), default_k=0)


def test_store_error_becomes_retrieval_failure() -> None:
    store = FakeVectorStore(error=RuntimeError("connection refused"))
    retriever = SemanticRetriever(FakeEmbeddingService(), store)

    with pytest.raises(RetrievalFailure):
        asyncio.run(retriever.retrieve(NODE_PARTITION, "q"))


def test_embedding_error_becomes_retrieval_failure() -> None:
    store = FakeVectorStore()
    retriever = SemanticRetriever(FakeEmbeddingService(error=RuntimeError("401")), store)

    with pytest.raises(RetrievalFailure):
        asyncio.run(retriever.retrieve(NODE_PARTITION, "q"))
    assert store.queried == []


def test_rank_results_drops_duplicates_blanks_and_distant_hits() -> None:
    retriever = SemanticRetriever(FakeEmbeddingService(), FakeVectorStore(), max_distance=0.5)
    results = {
        "documents": [["Same text", "Same text", "   ", "Far away", "Other"]],
        "metadatas": [[
            {"lecture": "A", "start_time": "00:01:00"},
            {"lecture": "A", "start_time": "00:01:00"},
            {"lecture": "A", "start_time": "00:02:00"},
            {"lecture": "B", "start_time": "00:03:00"},
            {"lecture": "C", "start_time": "00:04:00"},
        ]],
        "distances": [[0.2, 0.2, 0.1, 0.9, 0.3]],
    }

    passages = retriever.rank_results(results, k=5)

    assert [(p.source_label, p.relevance_rank) for p in passages] == [("A", 1), ("C", 2)]


def test_rank_results_falls_back_on_missing_metadata() -> None:
    retriever = SemanticRetriever(FakeEmbeddingService(), FakeVectorStore())
    results = {
        "documents": [["one", "two"]],
        "metadatas": [[{"source": "Intro", "start": "00:00:05"}, None]],
        "distances": [[0.1, 0.2]],
    }

    first, second = retriever.rank_results(results, k=5)

    assert first.citation_key == ("Intro", "00:00:05")
    assert second.citation_key == ("unknown", "unknown")
