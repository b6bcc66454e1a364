"""
Explicit construction of service handles and pipeline components.

Everything is built from Settings and passed down through constructors;
the FastAPI layer reads the finished objects from ``app.state``.  Tests
override ``get_pipeline`` / ``get_registry`` with fakes.
"""

from __future__ import annotations

from fastapi import Request

from lectureqa.core.config import Settings
from lectureqa.pipeline.orchestrator import LecturePipeline
from lectureqa.pipeline.registry import PartitionRegistry
from lectureqa.pipeline.retrieval import SemanticRetriever
from lectureqa.pipeline.router import QueryRouter
from lectureqa.pipeline.synthesis import AnswerSynthesizer
from lectureqa.services.embedding import build_embedding_service
from lectureqa.services.llm import OpenAIChatModel, build_openai_client
from lectureqa.services.vector_store import VectorStore, build_chroma_client


def build_pipeline(settings: Settings) -> LecturePipeline:
    """Wire registry, provider clients and the three stages together."""
    registry = PartitionRegistry.from_settings(settings)

    openai_client = build_openai_client(settings)
    chat_model = OpenAIChatModel(openai_client)
    embedding_service = build_embedding_service(settings, openai_client)
    vector_store = VectorStore(build_chroma_client(settings))

    router = QueryRouter(
        registry,
        chat_model,
        classifier_model=settings.classifier_model,
        decline_model=settings.decline_model,
        keyword_fast_path=settings.router_keyword_fast_path,
        generate_decline_message=settings.router_generate_decline_message,
    )
    retriever = SemanticRetriever(
        embedding_service,
        vector_store,
        default_k=settings.retrieval_top_k,
        max_distance=settings.retrieval_max_distance,
    )
    synthesizer = AnswerSynthesizer(
        chat_model,
        model=settings.answer_model,
        temperature=settings.answer_temperature,
        max_tokens=settings.answer_max_tokens,
        context_token_budget=settings.synthesis_context_token_budget,
    )
    return LecturePipeline(
        registry,
        router,
        retriever,
        synthesizer,
        timeout_seconds=settings.pipeline_timeout_seconds or None,
    )


def get_pipeline(request: Request) -> LecturePipeline:
    return request.app.state.pipeline


def get_registry(request: Request) -> PartitionRegistry:
    return request.app.state.pipeline.registry
