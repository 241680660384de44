"""Application configuration and settings."""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # Application
    app_name: str = "Vecsearch API"
    app_version: str = "0.1.0"
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = False

    # API
    api_v1_prefix: str = "/api/v1"

    # CORS
    cors_origins: list[str] = ["*"]
    cors_credentials: bool = True
    cors_methods: list[str] = ["*"]
    cors_headers: list[str] = ["*"]

    # Logging
    log_level: str = "INFO"

    # Redis / RediSearch Configuration
    redis_url: str = "redis://localhost:6379/0"
    search_dialect: int = 2

    # Vector index Configuration
    embedding_dimension: int = 1536  # Must match the embedding model output size
    vector_distance_metric: Literal["COSINE", "L2"] = "COSINE"

    # OpenAI Configuration
    openai_api_key: str | None = None
    openai_embedding_model: str = "text-embedding-3-small"
    openai_max_retries: int = 20

    # Ingestion Configuration
    ingestion_max_concurrency: int = 8  # In-flight rows per batch
    sanitize_text: bool = False  # Strip non-word chars from text values (legacy CSV behaviour)
    strict_numeric: bool = False  # Reject malformed numbers instead of coercing to 0
    max_upload_bytes: int = 25 * 1024 * 1024

    # AWS / Object storage Configuration
    aws_region: str = "us-east-1"
    aws_access_key_id: str | None = None
    aws_secret_access_key: str | None = None
    s3_endpoint_url: str | None = None
    file_bucket: str | None = None


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Returns:
        Settings: Application settings instance.
    """
    return Settings()
