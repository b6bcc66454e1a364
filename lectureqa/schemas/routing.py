"""
Schemas for Stage 1 (Query Routing) output.

Topic is configuration data; RoutingDecision is the single object that
flows from the router into the orchestrator.  TopicClassification is
the strict decode target for the classifier's JSON reply.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, StrictStr


NONE_TOPIC_NAME = "none"


class Topic(BaseModel):
    """A supported subject domain (one lecture track)."""
    name: str
    display_name: str = ""
    description: str = ""
    keywords: list[str] = Field(default_factory=list)

    class Config:
        frozen = True

    @property
    def is_sentinel(self) -> bool:
        return self.name == NONE_TOPIC_NAME

    @property
    def label(self) -> str:
        return self.display_name or self.name


# Sentinel: the query falls outside every supported domain
NONE_TOPIC = Topic(
    name=NONE_TOPIC_NAME,
    display_name="None",
    description="Outside all supported lecture topics.",
)


class RoutingDecision(BaseModel):
    """Produced once per query by the router, consumed by the orchestrator."""
    topic: Topic
    user_facing_message: str | None = None
    via_keywords: bool = False

    @property
    def declined(self) -> bool:
        return self.topic.is_sentinel


class TopicClassification(BaseModel):
    """
    Structured classifier output.  Exactly one key, one string value;
    anything else fails validation.
    """
    topic: StrictStr

    class Config:
        extra = "forbid"
