"""
Thin API route for /chat.

No business logic: validates the request, calls the pipeline, and maps
the terminal state onto the response contract.  Internal detail never
reaches the client.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from lectureqa.core.dependencies import get_pipeline
from lectureqa.core.errors import QueryValidationError
from lectureqa.pipeline.orchestrator import GENERIC_FAILURE_MESSAGE, LecturePipeline
from lectureqa.schemas.response import ChatRequest, ChatResponse, ErrorResponse
from lectureqa.utils.logging import get_logger, preview

logger = get_logger("lectureqa.api.chat")

router = APIRouter(tags=["Chat"])

MESSAGE_REQUIRED = "Message is required"


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(error=message).model_dump())


@router.post(
    "/chat",
    response_model=ChatResponse,
    responses={
        400: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def chat(
    request: ChatRequest,
    pipeline: LecturePipeline = Depends(get_pipeline),
):
    """Answer one lecture question (no conversation memory)."""
    message = request.message
    if not message or not message.strip():
        logger.info("[CHAT] Rejected empty message")
        return error_response(status.HTTP_400_BAD_REQUEST, MESSAGE_REQUIRED)

    logger.info("[CHAT] New message: %s", preview(message))

    try:
        result = await pipeline.run(message)
    except QueryValidationError:
        return error_response(status.HTTP_400_BAD_REQUEST, MESSAGE_REQUIRED)
    except Exception as e:
        logger.error("[CHAT] Error: %s", e, exc_info=True)
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, GENERIC_FAILURE_MESSAGE)

    if result.failed:
        logger.info("[CHAT] Pipeline failed | state=%s kind=%s", result.state.value, result.error_kind)
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, GENERIC_FAILURE_MESSAGE)

    logger.info(
        "[CHAT] Done in %.2fs | state=%s topic=%s",
        result.processing_time_seconds, result.state.value, result.topic or "-",
    )
    return ChatResponse(response=result.response)
