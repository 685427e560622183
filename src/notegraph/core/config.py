"""
Application Configuration

Centralized settings management using Pydantic BaseSettings.
All values are loaded from environment variables or .env file.
"""

from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings with environment variable binding.

    Storage:
        STORE_BACKEND ("memory" | "postgres"). The POSTGRES_* values are
        only read when the postgres backend is selected.

    Embeddings:
        EMBEDDING_PROVIDER ("ollama" | "openai" | "local" | "mock"),
        EMBEDDING_MODEL, EMBEDDING_DIMENSION, EMBEDDING_TIMEOUT,
        OLLAMA_BASE_URL, OPENAI_API_KEY

    Similarity:
        GRAPH_NEIGHBORS (2), SEARCH_MIN_SIMILARITY (0.5),
        RELATED_MIN_SIMILARITY (0.3)
    """

    PROJECT_NAME: str = "Notegraph"

    # Storage
    STORE_BACKEND: Literal["memory", "postgres"] = "memory"
    POSTGRES_USER: str = "notegraph"
    POSTGRES_PASSWORD: str = "notegraph_password"
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "notegraph_db"

    # Embeddings
    EMBEDDING_PROVIDER: Literal["ollama", "openai", "local", "mock"] = "ollama"
    EMBEDDING_MODEL: str = "nomic-embed-text"
    EMBEDDING_DIMENSION: int = 768
    EMBEDDING_TIMEOUT: float = 30.0
    OLLAMA_BASE_URL: str = "http://localhost:11434"
    OPENAI_API_KEY: str | None = None

    # Similarity and graph
    GRAPH_NEIGHBORS: int = 2
    SEARCH_MIN_SIMILARITY: float = 0.5
    RELATED_MIN_SIMILARITY: float = 0.3

    # Logging
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",  # Silently ignore unknown env vars
    )

    @property
    def DATABASE_URL(self) -> str:
        """Async PostgreSQL connection string using asyncpg driver."""
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )


settings = Settings()
