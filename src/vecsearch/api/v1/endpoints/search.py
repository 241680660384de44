"""Search endpoints: hybrid search, raw dialect queries and InstantSearch."""

from fastapi import APIRouter, Query, status

from vecsearch.core.logging import get_logger
from vecsearch.dependencies import IndexNameDep, SearchServiceDep
from vecsearch.schemas.search import (
    InstantSearchRequest,
    InstantSearchResponse,
    SearchRequest,
    SearchResponse,
)

logger = get_logger(__name__)

router = APIRouter(tags=["search"])


@router.post(
    "/indexes/{index_name}/search",
    response_model=SearchResponse,
    summary="Hybrid Search",
    description="Combines attribute filters with KNN similarity over the index's vector field",
    status_code=status.HTTP_200_OK,
)
async def search(
    index_name: IndexNameDep,
    request: SearchRequest,
    search_service: SearchServiceDep,
) -> SearchResponse:
    """Perform hybrid search on an index.

    This endpoint compiles:
    - attribute filters (NUMERIC ranges, TAG sets, TEXT matches) joined by
      the requested combinator
    - a KNN clause over the first VECTOR field when ``q`` is given

    KNN hits are ordered by ascending distance. With ``parents`` set, hits
    are grouped into their parent documents.

    Args:
        index_name: Index to search.
        request: Query text, filters, combinator, limit and parent flag.
        search_service: Injected search service.

    Returns:
        SearchResponse: Hits, and parent documents when requested.

    Raises:
        IndexMissing: If the index does not exist (404).
        QueryCompileFailure: If filters cannot be compiled (400).
        SearchFailed: If embedding or the backend query fails (502).
    """
    response = await search_service.search(
        index_name,
        query=request.q,
        filters=request.filters,
        combinator=request.combinator,
        limit=request.limit,
        parents=request.parents,
    )

    logger.info("Search completed: %d results in '%s'", response.total_results, index_name)
    return response


@router.get(
    "/indexes/{index_name}/query",
    response_model=SearchResponse,
    summary="Raw Query",
    description="Runs a query written in the search dialect as-is",
)
async def raw_query(
    index_name: IndexNameDep,
    search_service: SearchServiceDep,
    q: str = Query(..., min_length=1, description="Dialect query, e.g. '@price:[10 20]'"),
    limit: int = Query(10, ge=1, le=100),
) -> SearchResponse:
    return await search_service.raw_query(index_name, q, limit)


@router.post(
    "/indexes/{index_name}/instantsearch",
    response_model=InstantSearchResponse,
    response_model_by_alias=True,
    summary="InstantSearch",
    description="Multi-query search returning Algolia-shaped results",
)
async def instant_search(
    index_name: IndexNameDep,
    request: InstantSearchRequest,
    search_service: SearchServiceDep,
) -> InstantSearchResponse:
    return await search_service.instant_search(index_name, request)
