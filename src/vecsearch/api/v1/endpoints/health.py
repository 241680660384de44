"""Health check endpoint."""

from fastapi import APIRouter

from vecsearch.core.exceptions import StoreUnavailable
from vecsearch.core.logging import get_logger
from vecsearch.dependencies import EmbeddingGatewayDep, RedisServiceDep, SettingsDep
from vecsearch.schemas.health import HealthResponse

logger = get_logger(__name__)

router = APIRouter(tags=["health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health Check",
    description="Returns the health status of the API and its Redis connection",
)
async def health_check(
    settings: SettingsDep,
    redis_service: RedisServiceDep,
    embedding_gateway: EmbeddingGatewayDep,
) -> HealthResponse:
    """Check API health and return status.

    Args:
        settings: Injected application settings.
        redis_service: Injected Redis service, pinged on every call.
        embedding_gateway: Injected embedding gateway.

    Returns:
        HealthResponse: Health status information.
    """
    store = "ok"
    try:
        await redis_service.ping()
    except StoreUnavailable as exc:
        logger.warning("Health check could not reach Redis: %s", exc.message)
        store = "unavailable"

    return HealthResponse(
        status="healthy" if store == "ok" else "degraded",
        version=settings.app_version,
        environment=settings.environment,
        store=store,
        embedding_model_loaded=embedding_gateway.loaded,
    )
