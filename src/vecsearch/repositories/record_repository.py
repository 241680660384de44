"""Repository for records and parent documents stored as Redis hashes."""

from __future__ import annotations

import asyncio
from collections.abc import Mapping, Sequence
from typing import Any

from vecsearch.adapters.redis_mapper import hash_to_fields, to_str
from vecsearch.core.constants import K_ITEMS, K_PARENT_UID, LIST_SEPARATOR
from vecsearch.core.logging import get_logger
from vecsearch.core.models import FieldSchema, Record
from vecsearch.services.record_keys import parent_key, record_key
from vecsearch.services.redis_service import RedisService

logger = get_logger(__name__)


def split_ids(value: Any) -> list[str]:
    """Split a comma-joined id list, dropping blanks."""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [str(item).strip() for item in value if str(item).strip()]
    return [part.strip() for part in to_str(value).split(LIST_SEPARATOR) if part.strip()]


class RecordRepository:
    """Encapsulates record and parent-document persistence."""

    def __init__(self, redis_service: RedisService):
        self._redis = redis_service

    async def save_record(self, record: Record) -> None:
        """Persist a record; an existing key is overwritten."""
        await self._redis.hset(record.key, record.values)

    async def get_record(
        self,
        index_name: str,
        uid: str,
        fields: Mapping[str, FieldSchema] | None = None,
    ) -> dict[str, Any] | None:
        """Fetch a record without its vector attributes, or None if absent.

        With the index ``fields`` given, NUMERIC attributes come back as floats.
        """
        raw = await self._redis.hgetall(record_key(index_name, uid))
        if not raw:
            return None
        return hash_to_fields(raw, fields)

    async def get_records(
        self,
        index_name: str,
        uids: Sequence[str],
        fields: Mapping[str, FieldSchema] | None = None,
    ) -> list[dict[str, Any]]:
        """Fetch records concurrently, skipping the ones that do not exist."""
        results = await asyncio.gather(
            *(self.get_record(index_name, uid, fields) for uid in uids)
        )
        found = [record for record in results if record is not None]
        if len(found) < len(uids):
            logger.debug(
                "Skipped %d dangling record references in '%s'",
                len(uids) - len(found),
                index_name,
            )
        return found

    async def save_parent(self, index_name: str, uid: str, items: Sequence[str]) -> None:
        """Persist a parent document referencing chunk uids."""
        await self._redis.hset(
            parent_key(index_name, uid),
            {K_PARENT_UID: uid, K_ITEMS: LIST_SEPARATOR.join(items)},
        )

    async def get_parent_items(self, index_name: str, uid: str) -> list[str] | None:
        """Return the chunk uids of a parent, or None if the parent is absent."""
        raw = await self._redis.hget(parent_key(index_name, uid), K_ITEMS)
        if raw is None:
            return None
        return split_ids(raw)

    async def delete_record(self, index_name: str, uid: str) -> bool:
        """Delete a record; returns whether it existed (absence is not an error)."""
        return await self._redis.delete(record_key(index_name, uid)) > 0
