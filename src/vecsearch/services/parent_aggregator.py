"""Reassemble ranked chunk hits into their parent documents."""

from __future__ import annotations

import asyncio
from collections.abc import Mapping, Sequence

from vecsearch.core.constants import K_CONTENT_PARENT_UIDS
from vecsearch.core.logging import get_logger
from vecsearch.core.models import FieldSchema, ParentView, SearchHit
from vecsearch.repositories.record_repository import RecordRepository, split_ids

logger = get_logger(__name__)


class ParentAggregator:
    """Expands chunk hits that reference parents via ``content_parent_uids``."""

    def __init__(self, repository: RecordRepository):
        self._repository = repository

    async def expand(
        self,
        index_name: str,
        hits: Sequence[SearchHit],
        limit: int,
        fields: Mapping[str, FieldSchema] | None = None,
    ) -> list[ParentView]:
        """Resolve the parents referenced by ``hits``.

        Parents keep the rank of the first hit referencing them; later
        references to the same parent are dropped. Hits without a parent
        reference and parents that no longer exist contribute nothing, and
        dangling chunk ids are skipped.

        Args:
            index_name: Logical index the hits came from.
            hits: Ranked hits.
            limit: Maximum number of parents to return.
            fields: Index schema, so chunk attributes keep their declared types.

        Returns:
            Parent views in hit-rank order, at most ``limit`` of them.
        """
        parent_uids: list[str] = []
        seen: set[str] = set()
        for hit in hits:
            for uid in split_ids(hit.fields.get(K_CONTENT_PARENT_UIDS)):
                if uid not in seen:
                    seen.add(uid)
                    parent_uids.append(uid)

        if not parent_uids:
            logger.debug("No parent references among %d hits", len(hits))
            return []

        views = await asyncio.gather(
            *(self._expand_parent(index_name, uid, fields) for uid in parent_uids)
        )
        resolved = [view for view in views if view is not None]
        logger.info(
            "Expanded %d hits into %d parents (limit=%d)", len(hits), len(resolved), limit
        )
        return resolved[:limit]

    async def _expand_parent(
        self,
        index_name: str,
        uid: str,
        fields: Mapping[str, FieldSchema] | None,
    ) -> ParentView | None:
        items = await self._repository.get_parent_items(index_name, uid)
        if items is None:
            logger.warning("Parent %s not found in '%s'", uid, index_name)
            return None
        chunks = await self._repository.get_records(index_name, items, fields)
        return ParentView(uid=uid, chunks=chunks)
