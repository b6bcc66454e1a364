"""
Schemas for Stage 2 (Retrieval).

Partition is fixed at startup.  RetrievedPassage carries transcript
text plus the provenance (lecture label, start timestamp) that the
synthesizer must cite verbatim.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class Partition(BaseModel):
    """One topic's retrievable collection and how to reach it."""
    topic: str
    collection_name: str
    endpoint: str | None = None
    credential_ref: str | None = None  # settings field holding the secret, never the secret

    class Config:
        frozen = True


class RetrievedPassage(BaseModel):
    """One transcript chunk returned by the retriever, rank 1 = most relevant."""
    text: str
    source_label: str
    start_timestamp: str
    relevance_rank: int = Field(ge=1)
    distance: float | None = None

    @property
    def citation_key(self) -> tuple[str, str]:
        return (self.source_label, self.start_timestamp)
