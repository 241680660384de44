"""Health check schemas."""

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Health check response schema."""

    status: str = Field(..., description="'healthy', or 'degraded' when Redis is unreachable")
    version: str = Field(..., description="Application version")
    environment: str = Field(..., description="Environment name")
    store: str = Field(..., description="Redis connectivity: 'ok' or 'unavailable'")
    embedding_model_loaded: bool = Field(
        ..., description="Whether the embedding model has been initialized"
    )

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "status": "healthy",
                    "version": "0.1.0",
                    "environment": "development",
                    "store": "ok",
                    "embedding_model_loaded": False,
                }
            ]
        }
    }
