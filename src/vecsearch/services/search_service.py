"""Search service for hybrid attribute + semantic search."""

from __future__ import annotations

import math
import time
from collections.abc import Mapping
from typing import Any

from vecsearch.adapters.redis_mapper import document_to_hit
from vecsearch.config import Settings
from vecsearch.core.exceptions import (
    EmbeddingUnavailable,
    QueryCompileFailure,
    SearchFailed,
)
from vecsearch.core.logging import get_logger
from vecsearch.core.models import Combinator, CompiledQuery, FieldSchema, SearchHit
from vecsearch.schemas.search import (
    InstantSearchRequest,
    InstantSearchResponse,
    InstantSearchResult,
    ParentResult,
    SearchResponse,
)
from vecsearch.services.index_service import IndexService
from vecsearch.services.parent_aggregator import ParentAggregator
from vecsearch.services.query_compiler import QueryCompiler
from vecsearch.services.redis_service import RedisService

logger = get_logger(__name__)


def _distance(hit: SearchHit) -> float:
    # Non-numeric and non-finite scores order as 0.0, i.e. ahead of every real distance.
    if isinstance(hit.dist, float) and math.isfinite(hit.dist):
        return hit.dist
    return 0.0


def order_hits(hits: list[SearchHit]) -> list[SearchHit]:
    """Sort KNN hits closest-first; attribute-only hits keep backend order."""
    if not any(hit.dist is not None for hit in hits):
        return hits
    return sorted(hits, key=_distance)


class SearchService:
    """Compiles, executes and post-processes searches."""

    def __init__(
        self,
        settings: Settings,
        redis_service: RedisService,
        index_service: IndexService,
        query_compiler: QueryCompiler,
        parent_aggregator: ParentAggregator,
    ):
        self.settings = settings
        self.redis_service = redis_service
        self.index_service = index_service
        self.query_compiler = query_compiler
        self.parent_aggregator = parent_aggregator

    async def execute(
        self,
        index_name: str,
        compiled: CompiledQuery,
        fields: Mapping[str, FieldSchema],
    ) -> list[SearchHit]:
        """Run a compiled query and normalize the returned documents."""
        try:
            documents = await self.redis_service.search(index_name, compiled)
        except QueryCompileFailure as exc:
            logger.error("Backend rejected query %r: %s", compiled.query_string, exc.message)
            raise SearchFailed(exc.message) from exc

        hits = [document_to_hit(doc_id, raw, fields) for doc_id, raw in documents]
        return order_hits(hits)

    async def search(
        self,
        index_name: str,
        query: str | None = None,
        filters: Mapping[str, Any] | None = None,
        combinator: Combinator = Combinator.AND,
        limit: int = 10,
        parents: bool = False,
    ) -> SearchResponse:
        """Perform a hybrid search, optionally expanding hits into parents."""
        logger.info(
            "Search: index=%s query=%r filters=%s combinator=%s limit=%s parents=%s",
            index_name,
            query,
            filters,
            combinator,
            limit,
            parents,
        )
        fields = await self.index_service.get_fields(index_name)

        try:
            compiled = await self.query_compiler.compile(
                fields,
                query,
                filters,
                combinator=combinator,
                limit=limit,
                want_parents=parents,
            )
        except EmbeddingUnavailable as exc:
            raise SearchFailed(exc.message) from exc

        if compiled is None:
            logger.info("Nothing to search in '%s', returning empty results", index_name)
            return SearchResponse(
                index_name=index_name,
                query=query,
                total_results=0,
                hits=[],
                parents=[] if parents else None,
            )

        hits = await self.execute(index_name, compiled, fields)
        logger.info("Search in '%s' returned %d hits", index_name, len(hits))

        if not compiled.want_parents:
            return SearchResponse(
                index_name=index_name,
                query=query,
                total_results=len(hits),
                hits=[hit.to_dict() for hit in hits],
            )

        views = await self.parent_aggregator.expand(index_name, hits, limit, fields)
        return SearchResponse(
            index_name=index_name,
            query=query,
            total_results=len(views),
            hits=[hit.to_dict() for hit in hits],
            parents=[ParentResult(uid=view.uid, chunks=view.chunks) for view in views],
        )

    async def raw_query(self, index_name: str, query: str, limit: int = 10) -> SearchResponse:
        """Execute a caller-written dialect query against an index."""
        fields = await self.index_service.get_fields(index_name)
        compiled = self.query_compiler.compile_raw(fields, query, limit)
        hits = await self.execute(index_name, compiled, fields)
        return SearchResponse(
            index_name=index_name,
            query=query,
            total_results=len(hits),
            hits=[hit.to_dict() for hit in hits],
        )

    async def instant_search(
        self,
        index_name: str,
        body: InstantSearchRequest,
    ) -> InstantSearchResponse:
        """Answer an InstantSearch multi-query request with Algolia-shaped results."""
        results: list[InstantSearchResult] = []
        for request in body.requests:
            started = time.perf_counter()
            response = await self.search(
                index_name,
                query=request.params.query,
                limit=request.params.hits_per_page,
            )
            hits = [{"objectID": hit["id"], **hit} for hit in response.hits]
            results.append(
                InstantSearchResult(
                    hits=hits,
                    nb_hits=len(hits),
                    hits_per_page=request.params.hits_per_page,
                    query=request.params.query,
                    processing_time_ms=int((time.perf_counter() - started) * 1000),
                )
            )
        return InstantSearchResponse(results=results)
