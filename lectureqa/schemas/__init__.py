"""
Pydantic schemas for every pipeline boundary.
Each module covers one pipeline stage or the API contract.
"""

from lectureqa.schemas.routing import (
    NONE_TOPIC,
    NONE_TOPIC_NAME,
    RoutingDecision,
    Topic,
    TopicClassification,
)
from lectureqa.schemas.retrieval import (
    Partition,
    RetrievedPassage,
)
from lectureqa.schemas.response import (
    Answer,
    ChatRequest,
    ChatResponse,
    Citation,
    ErrorResponse,
)
from lectureqa.schemas.pipeline import (
    PipelineContext,
    PipelineResult,
    PipelineState,
)

__all__ = [
    # Routing
    "NONE_TOPIC",
    "NONE_TOPIC_NAME",
    "RoutingDecision",
    "Topic",
    "TopicClassification",
    # Retrieval
    "Partition",
    "RetrievedPassage",
    # Response
    "Answer",
    "ChatRequest",
    "ChatResponse",
    "Citation",
    "ErrorResponse",
    # Pipeline
    "PipelineContext",
    "PipelineResult",
    "PipelineState",
]
