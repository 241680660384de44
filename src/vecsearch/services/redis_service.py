"""Minimal Redis service for managing RediSearch indexes and hash records."""

from __future__ import annotations

from collections.abc import AsyncIterator, Mapping, Sequence
from contextlib import asynccontextmanager
from typing import Any

from redis.asyncio import Redis
from redis.commands.search.field import Field
from redis.commands.search.index_definition import IndexDefinition, IndexType
from redis.commands.search.query import Query
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import ResponseError
from redis.exceptions import TimeoutError as RedisTimeoutError

from vecsearch.adapters.redis_mapper import parse_index_attributes, to_str
from vecsearch.config import Settings
from vecsearch.core.constants import INDEX_NAME_PREFIX
from vecsearch.core.exceptions import (
    IndexMissing,
    QueryCompileFailure,
    SchemaConflict,
    StoreUnavailable,
)
from vecsearch.core.logging import get_logger
from vecsearch.core.models import CompiledQuery, FieldSchema
from vecsearch.services.record_keys import index_key, index_name_from_key

logger = get_logger(__name__)

_UNKNOWN_INDEX_MARKERS = ("unknown index name", "no such index", "unknown index")


def _is_unknown_index(exc: ResponseError) -> bool:
    msg = str(exc).lower()
    return any(marker in msg for marker in _UNKNOWN_INDEX_MARKERS)


@asynccontextmanager
async def _store_errors(operation: str) -> AsyncIterator[None]:
    """Translate connection-level redis errors into StoreUnavailable."""
    try:
        yield
    except (RedisConnectionError, RedisTimeoutError) as exc:
        logger.error("Redis %s failed: %s", operation, exc)
        raise StoreUnavailable(f"Redis {operation} failed: {exc}") from exc


class RedisService:
    """Thin wrapper around the asyncio redis client for indexes and records."""

    def __init__(self, settings: Settings, client: Redis | None = None):
        self.settings = settings
        # Vectors are stored as raw bytes, so responses are decoded per value.
        self.client = client or Redis.from_url(settings.redis_url, decode_responses=False)
        logger.info("RedisService initialized for %s", settings.redis_url)

    async def aclose(self) -> None:
        """Close the client and its connection pool."""
        await self.client.aclose()

    async def ping(self) -> None:
        """Verify the connection, raising StoreUnavailable when Redis is unreachable."""
        async with _store_errors("ping"):
            await self.client.ping()

    async def create_index(
        self,
        index_name: str,
        fields: Sequence[Field],
        *,
        prefix: str,
    ) -> None:
        """Create a HASH index over ``prefix``; raises SchemaConflict if it exists."""
        async with _store_errors("create index"):
            try:
                await self.client.ft(index_key(index_name)).create_index(
                    list(fields),
                    definition=IndexDefinition(prefix=[prefix], index_type=IndexType.HASH),
                )
            except ResponseError as exc:
                if "already exists" in str(exc).lower():
                    logger.warning("Index '%s' exists already, skipped creation", index_name)
                    raise SchemaConflict(f"Index '{index_name}' already exists") from exc
                raise
        logger.info("Created index '%s' over prefix '%s'", index_name, prefix)

    async def alter_index(self, index_name: str, fields: Sequence[Field]) -> None:
        """Add attributes to an existing index."""
        async with _store_errors("alter index"):
            try:
                await self.client.ft(index_key(index_name)).alter_schema_add(list(fields))
            except ResponseError as exc:
                if _is_unknown_index(exc):
                    raise IndexMissing(index_name) from exc
                if "duplicate" in str(exc).lower():
                    raise SchemaConflict(f"Index '{index_name}': {exc}") from exc
                raise
        logger.info("Altered index '%s' (+%d attributes)", index_name, len(fields))

    async def drop_index(self, index_name: str) -> None:
        """Drop the index definition; member records are left in place."""
        async with _store_errors("drop index"):
            try:
                await self.client.ft(index_key(index_name)).dropindex(delete_documents=False)
            except ResponseError as exc:
                if _is_unknown_index(exc):
                    raise IndexMissing(index_name) from exc
                raise
        logger.info("Dropped index '%s'", index_name)

    async def list_indexes(self) -> list[str]:
        """Return logical names of every ``idx:`` index."""
        async with _store_errors("list indexes"):
            raw = await self.client.execute_command("FT._LIST")
        names = [to_str(name) for name in raw or []]
        return sorted(
            index_name_from_key(name) for name in names if name.startswith(INDEX_NAME_PREFIX)
        )

    async def index_fields(self, index_name: str) -> dict[str, FieldSchema]:
        """Fetch the attribute metadata of an index via FT.INFO."""
        async with _store_errors("index info"):
            try:
                info = await self.client.ft(index_key(index_name)).info()
            except ResponseError as exc:
                if _is_unknown_index(exc):
                    raise IndexMissing(index_name) from exc
                raise
        return parse_index_attributes(info)

    async def search(
        self,
        index_name: str,
        compiled: CompiledQuery,
    ) -> list[tuple[str, dict[str, Any]]]:
        """Execute a compiled query and return raw ``(key, fields)`` documents."""
        query = (
            Query(compiled.query_string)
            .dialect(self.settings.search_dialect)
            .paging(0, compiled.limit)
        )
        if compiled.sort_by:
            query = query.sort_by(compiled.sort_by, asc=True)
        if compiled.return_fields:
            query = query.return_fields(*compiled.return_fields)

        logger.debug("FT.SEARCH %s %r", index_key(index_name), compiled.query_string)
        async with _store_errors("search"):
            try:
                result = await self.client.ft(index_key(index_name)).search(
                    query,
                    query_params=compiled.params or None,
                )
            except ResponseError as exc:
                if _is_unknown_index(exc):
                    raise IndexMissing(index_name) from exc
                raise QueryCompileFailure(str(exc)) from exc

        documents: list[tuple[str, dict[str, Any]]] = []
        for doc in result.docs:
            fields = {k: v for k, v in vars(doc).items() if k not in ("id", "payload")}
            documents.append((to_str(doc.id), fields))
        return documents

    async def hset(self, key: str, mapping: Mapping[str, Any]) -> None:
        """Write (or overwrite) hash fields."""
        async with _store_errors("hset"):
            await self.client.hset(key, mapping=dict(mapping))

    async def hget(self, key: str, field: str) -> bytes | None:
        async with _store_errors("hget"):
            return await self.client.hget(key, field)

    async def hgetall(self, key: str) -> dict[bytes, bytes]:
        """Fetch a whole hash; an absent key yields an empty mapping."""
        async with _store_errors("hgetall"):
            return await self.client.hgetall(key)

    async def delete(self, *keys: str) -> int:
        """Delete keys, returning how many existed."""
        if not keys:
            return 0
        async with _store_errors("delete"):
            return await self.client.delete(*keys)

    async def scan_keys(self, pattern: str, *, count: int = 500) -> AsyncIterator[str]:
        """Iterate every key matching ``pattern`` using a SCAN cursor."""
        async with _store_errors("scan"):
            async for key in self.client.scan_iter(match=pattern, count=count):
                yield to_str(key)


__all__ = ["RedisService"]
