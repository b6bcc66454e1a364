import uvicorn

from lectureqa.core.config import get_settings

if __name__ == "__main__":
    settings = get_settings()
    development = settings.environment == "development"

    uvicorn.run(
        "lectureqa.main:app",
        host=settings.host,
        port=settings.port,
        reload=development,  # Only reload in development
        log_level="info" if development else "warning",
    )
