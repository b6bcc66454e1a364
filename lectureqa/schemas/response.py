"""
Schemas for Stage 3 (Answer Synthesis) output and the API layer.

Answer is the pipeline-internal result.
ChatRequest / ChatResponse / ErrorResponse are the external contract
consumed by the chat client.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


# ── Pipeline-internal answer ────────────────────────────────────────
class Citation(BaseModel):
    lecture: str
    start_time: str

    class Config:
        frozen = True

    @property
    def token(self) -> str:
        return f"[lecture: {self.lecture}, start_time: {self.start_time}]"


class Answer(BaseModel):
    """
    Final synthesized text.  Either grounded (at least one citation
    that matches a supplied passage) or declined (not-found statement,
    no citations).
    """
    text: str
    citations: list[Citation] = Field(default_factory=list)
    declined: bool = False
    passages_used: int = 0


# ── External API schemas ────────────────────────────────────────────
class ChatRequest(BaseModel):
    message: str | None = None


class ChatResponse(BaseModel):
    response: str


class ErrorResponse(BaseModel):
    error: str
