from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings

from lectureqa.schemas.routing import Topic


DEFAULT_TOPICS: list[Topic] = [
    Topic(
        name="nodejs",
        display_name="Node.js",
        description=(
            "Node.js lectures: the runtime, event loop, modules, npm, Express, "
            "HTTP servers, databases from Node, deployment and scaling of backend services."
        ),
        keywords=["nodejs", "node.js", "express", "npm"],
    ),
    Topic(
        name="python",
        display_name="Python",
        description=(
            "Python lectures: syntax, data types, lists, dictionaries, functions, "
            "classes, modules, virtual environments and the standard library."
        ),
        keywords=["python", "pip", "django", "flask", "venv"],
    ),
]

DEFAULT_PARTITIONS: dict[str, str] = {
    "nodejs": "ChaiCode-NodeJS",
    "python": "ChaiCode-Python",
}


class Settings(BaseSettings):
    app_name: str = "Lecture Q&A Backend"
    environment: str = "development"
    host: str = "127.0.0.1"
    port: int = 8000
    cors_origins: list[str] = ["*"]
    log_level: str = "INFO"

    # OpenAI (classification, decline messages, answers, embeddings)
    openai_api_key: str = ""
    openai_base_url: str | None = None
    classifier_model: str = "gpt-4.1-nano"
    decline_model: str = "gpt-4.1-nano"
    answer_model: str = "gpt-4.1-mini"
    answer_temperature: float = 0.2
    answer_max_tokens: int = 1200
    llm_request_timeout_seconds: float = 30.0

    # Embeddings: "openai" or "sentence_transformers" (local, all-MiniLM-L6-v2)
    embedding_provider: str = "openai"
    embedding_model: str = "text-embedding-3-large"

    # ChromaDB: remote server when vector_store_url is set, local directory otherwise
    vector_store_url: str | None = None
    vector_store_api_key: str | None = None
    vector_store_persist_directory: str | None = None

    # Topic set and topic -> collection mapping (JSON in the environment)
    lectureqa_topics: list[Topic] = Field(default_factory=lambda: list(DEFAULT_TOPICS))
    lectureqa_partitions: dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_PARTITIONS))

    # Routing
    router_keyword_fast_path: bool = False
    router_generate_decline_message: bool = True

    # Retrieval / synthesis tuning
    retrieval_top_k: int = Field(default=5, ge=1)
    retrieval_max_distance: float | None = None
    synthesis_context_token_budget: int = 6000

    # Whole-invocation bound; 0 disables it
    pipeline_timeout_seconds: float = 90.0

    class Config:
        env_file = ".env"
        extra = "ignore"  # Ignore extra environment variables that aren't in the Settings class


@lru_cache()
def get_settings() -> Settings:
    return Settings()
