"""
Health check endpoint for monitoring.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from lectureqa.core.dependencies import get_registry
from lectureqa.pipeline.registry import PartitionRegistry

router = APIRouter(tags=["Health"])


@router.get("/health")
async def health_check(registry: PartitionRegistry = Depends(get_registry)):
    """Basic health check plus the configured topic -> collection map (no network calls)."""
    return {
        "status": "ok",
        "service": "lectureqa",
        "topics": registry.topic_names(),
        "partitions": {p.topic: p.collection_name for p in registry.partitions()},
    }
