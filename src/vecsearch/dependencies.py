"""FastAPI dependency injection utilities."""

from typing import TYPE_CHECKING, Annotated

from fastapi import Depends, Path

from vecsearch.config import Settings, get_settings
from vecsearch.schemas.indexes import INDEX_NAME_PATTERN

if TYPE_CHECKING:
    from vecsearch.services.blob_store import BlobStore
    from vecsearch.services.deletion_service import DeletionSweeper
    from vecsearch.services.embedding_service import EmbeddingGateway
    from vecsearch.services.index_service import IndexService
    from vecsearch.services.ingestion_service import IngestionService
    from vecsearch.services.redis_service import RedisService
    from vecsearch.services.search_service import SearchService

# Common dependencies that can be injected into route handlers
SettingsDep = Annotated[Settings, Depends(get_settings)]
IndexNameDep = Annotated[str, Path(pattern=INDEX_NAME_PATTERN, description="Index name")]


# Module-level cache for RedisService singleton
_redis_service_cache: "RedisService | None" = None


def get_redis_service(settings: Annotated["Settings", Depends(get_settings)]) -> "RedisService":
    """Get or create the shared RedisService (one connection pool per process).

    Returns:
        RedisService instance.
    """
    global _redis_service_cache

    if _redis_service_cache is None:
        from vecsearch.services.redis_service import RedisService

        _redis_service_cache = RedisService(settings)

    return _redis_service_cache


# Module-level cache for EmbeddingGateway singleton
_embedding_gateway_cache: "EmbeddingGateway | None" = None


def get_embedding_gateway(
    settings: Annotated["Settings", Depends(get_settings)],
) -> "EmbeddingGateway":
    """Get the process-wide EmbeddingGateway; the model itself loads lazily.

    Returns:
        EmbeddingGateway instance.
    """
    global _embedding_gateway_cache

    if _embedding_gateway_cache is None:
        from vecsearch.services.embedding_service import EmbeddingGateway

        _embedding_gateway_cache = EmbeddingGateway(settings)

    return _embedding_gateway_cache


# Module-level cache for DeletionSweeper singleton
_deletion_sweeper_cache: "DeletionSweeper | None" = None


def get_deletion_sweeper(
    redis_service: Annotated["RedisService", Depends(get_redis_service)],
) -> "DeletionSweeper":
    """Get the DeletionSweeper that owns background sweeps.

    Returns:
        DeletionSweeper instance.
    """
    global _deletion_sweeper_cache

    if _deletion_sweeper_cache is None:
        from vecsearch.services.deletion_service import DeletionSweeper

        _deletion_sweeper_cache = DeletionSweeper(redis_service)

    return _deletion_sweeper_cache


def get_blob_store(settings: Annotated["Settings", Depends(get_settings)]) -> "BlobStore":
    """Get a BlobStore for archiving uploads.

    Returns:
        BlobStore instance.
    """
    from vecsearch.services.blob_store import BlobStore

    return BlobStore(settings)


def get_index_service(
    settings: Annotated["Settings", Depends(get_settings)],
    redis_service: Annotated["RedisService", Depends(get_redis_service)],
) -> "IndexService":
    """Get an IndexService instance.

    Returns:
        IndexService instance.
    """
    from vecsearch.services.index_service import IndexService

    return IndexService(settings, redis_service)


# Module-level cache for SearchService singleton
_search_service_cache: "SearchService | None" = None


def get_search_service(
    settings: Annotated["Settings", Depends(get_settings)],
    redis_service: Annotated["RedisService", Depends(get_redis_service)],
    embedding_gateway: Annotated["EmbeddingGateway", Depends(get_embedding_gateway)],
    index_service: Annotated["IndexService", Depends(get_index_service)],
) -> "SearchService":
    """Get a SearchService instance.

    Returns:
        SearchService instance.
    """
    global _search_service_cache

    if _search_service_cache is None:
        from vecsearch.repositories.record_repository import RecordRepository
        from vecsearch.services.parent_aggregator import ParentAggregator
        from vecsearch.services.query_compiler import QueryCompiler
        from vecsearch.services.search_service import SearchService

        _search_service_cache = SearchService(
            settings,
            redis_service,
            index_service,
            QueryCompiler(embedding_gateway),
            ParentAggregator(RecordRepository(redis_service)),
        )

    return _search_service_cache


# Module-level cache for IngestionService singleton (owns the concurrency limiter)
_ingestion_service_cache: "IngestionService | None" = None


def get_ingestion_service(
    settings: Annotated["Settings", Depends(get_settings)],
    redis_service: Annotated["RedisService", Depends(get_redis_service)],
    embedding_gateway: Annotated["EmbeddingGateway", Depends(get_embedding_gateway)],
    index_service: Annotated["IndexService", Depends(get_index_service)],
    blob_store: Annotated["BlobStore", Depends(get_blob_store)],
) -> "IngestionService":
    """Get an IngestionService instance.

    Returns:
        IngestionService instance.
    """
    global _ingestion_service_cache

    if _ingestion_service_cache is None:
        from vecsearch.services.ingestion_service import IngestionService

        _ingestion_service_cache = IngestionService(
            settings,
            redis_service,
            embedding_gateway,
            index_service,
            blob_store,
        )

    return _ingestion_service_cache


# Type aliases for dependency injection
RedisServiceDep = Annotated["RedisService", Depends(get_redis_service)]
EmbeddingGatewayDep = Annotated["EmbeddingGateway", Depends(get_embedding_gateway)]
DeletionSweeperDep = Annotated["DeletionSweeper", Depends(get_deletion_sweeper)]
IndexServiceDep = Annotated["IndexService", Depends(get_index_service)]
SearchServiceDep = Annotated["SearchService", Depends(get_search_service)]
IngestionServiceDep = Annotated["IngestionService", Depends(get_ingestion_service)]
