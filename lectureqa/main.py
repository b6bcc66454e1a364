from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from lectureqa.api.chat import MESSAGE_REQUIRED, error_response
from lectureqa.api.chat import router as chat_router
from lectureqa.api.health import router as health_router
from lectureqa.core.config import get_settings
from lectureqa.core.dependencies import build_pipeline
from lectureqa.utils.logging import get_logger, setup_logging

settings = get_settings()
setup_logging(settings.log_level)
logger = get_logger("lectureqa.main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting %s...", settings.app_name)
    app.state.pipeline = build_pipeline(settings)
    registry = app.state.pipeline.registry
    logger.info(
        "[OK] Pipeline ready | topics=%s partitions=%s",
        registry.topic_names(),
        {p.topic: p.collection_name for p in registry.partitions()},
    )
    yield
    logger.info("[OK] Shutdown complete")


app = FastAPI(
    title=settings.app_name,
    description="Answers questions about lecture transcripts with cited sources",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies (non-JSON, non-string message) are client errors, same shape as empty input."""
    logger.info("[CHAT] Invalid request body: %s", exc.errors())
    return error_response(status.HTTP_400_BAD_REQUEST, MESSAGE_REQUIRED)


app.include_router(chat_router, prefix="/api")    # /api/chat
app.include_router(health_router, prefix="/api")  # /api/health
