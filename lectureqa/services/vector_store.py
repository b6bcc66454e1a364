"""
ChromaDB operations.

One collection per partition.  Vectors are always supplied by our own
EmbeddingService, so collections are opened without a Chroma-side
embedding function.

The client is either a remote HttpClient (VECTOR_STORE_URL, optional
VECTOR_STORE_API_KEY sent as X-Chroma-Token) or a local
PersistentClient.  All calls here are synchronous; async callers wrap
them in asyncio.to_thread.
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

import chromadb

from lectureqa.core.config import Settings
from lectureqa.utils.logging import get_logger

logger = get_logger("lectureqa.services.vector_store")

QUERY_INCLUDE = ["documents", "metadatas", "distances"]


def _get_persist_directory(settings: Settings) -> str:
    """
    Resolve the directory where local ChromaDB data is stored.
    Defaults to <package>/vector_db/chroma_db.
    """
    if settings.vector_store_persist_directory:
        return settings.vector_store_persist_directory

    base_dir = Path(__file__).resolve().parents[1]
    return str(base_dir / "vector_db" / "chroma_db")


def build_chroma_client(settings: Settings) -> chromadb.ClientAPI:
    """Create the ChromaDB client described by settings."""
    client_settings = chromadb.Settings(anonymized_telemetry=False)

    if settings.vector_store_url:
        parsed = urlparse(settings.vector_store_url)
        ssl = parsed.scheme == "https"
        host = parsed.hostname or "localhost"
        port = parsed.port or (443 if ssl else 8000)
        headers = {}
        if settings.vector_store_api_key:
            headers["X-Chroma-Token"] = settings.vector_store_api_key
        logger.info("ChromaDB remote client: %s:%s (ssl=%s)", host, port, ssl)
        return chromadb.HttpClient(
            host=host,
            port=port,
            ssl=ssl,
            headers=headers,
            settings=client_settings,
        )

    path = _get_persist_directory(settings)
    logger.info("ChromaDB local client: %s", path)
    return chromadb.PersistentClient(path=path, settings=client_settings)


class VectorStore:
    """Thin synchronous wrapper around a ChromaDB client."""

    def __init__(self, client: chromadb.ClientAPI):
        self.client = client
        self._lock = threading.Lock()

    def _get_collection(self, collection_name: str) -> Any:
        return self.client.get_collection(name=collection_name, embedding_function=None)

    def query(
        self,
        collection_name: str,
        query_embedding: list[float],
        n_results: int,
    ) -> dict[str, Any]:
        """
        Nearest-neighbour search in one collection.

        Returns Chroma's column-shaped result ({"ids": [[...]], ...}).
        An empty collection yields empty columns instead of an error.
        Missing collections raise the client's own error.
        """
        collection = self._get_collection(collection_name)
        if collection.count() == 0:
            logger.info("Collection %s is empty", collection_name)
            return {"ids": [[]], "documents": [[]], "metadatas": [[]], "distances": [[]]}

        return collection.query(
            query_embeddings=[query_embedding],
            n_results=n_results,
            include=QUERY_INCLUDE,
        )

    def upsert(
        self,
        collection_name: str,
        ids: list[str],
        documents: list[str],
        embeddings: list[list[float]],
        metadatas: list[dict[str, Any]],
    ) -> int:
        """Insert or overwrite passages; creates the collection on first use."""
        with self._lock:
            collection = self.client.get_or_create_collection(
                name=collection_name,
                metadata={"description": f"Lecture passages for {collection_name}", "hnsw:space": "cosine"},
                embedding_function=None,
            )
        collection.upsert(
            ids=ids,
            documents=documents,
            embeddings=embeddings,
            metadatas=metadatas,
        )
        logger.info("Upserted %d passages into %s", len(ids), collection_name)
        return len(ids)

    def count(self, collection_name: str) -> int:
        return self._get_collection(collection_name).count()
