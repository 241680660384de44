"""Search request and response schemas."""

from typing import Any

from pydantic import BaseModel, Field

from vecsearch.core.models import Combinator


class SearchRequest(BaseModel):
    """Request model for the hybrid search endpoint."""

    q: str | None = Field(None, description="Free-text / semantic query")
    filters: dict[str, Any] = Field(
        default_factory=dict, description="Attribute name mapped to the value(s) to match"
    )
    combinator: Combinator = Field(Combinator.AND, description="How filters are combined")
    limit: int = Field(10, description="Maximum number of results", ge=1, le=100)
    parents: bool = Field(False, description="Expand chunk hits into their parent documents")


class ParentResult(BaseModel):
    """Parent document reassembled from its chunks."""

    uid: str = Field(..., description="Parent document uid")
    chunks: list[dict[str, Any]] = Field(..., description="Chunk records, in parent order")


class SearchResponse(BaseModel):
    """Response model for search endpoints."""

    index_name: str = Field(..., description="Searched index")
    query: str | None = Field(None, description="Query text as submitted")
    total_results: int = Field(..., description="Number of hits (or parents when expanded)")
    hits: list[dict[str, Any]] = Field(..., description="Hits ordered by relevance/distance")
    parents: list[ParentResult] | None = Field(
        None, description="Parent documents, when requested"
    )


class InstantSearchParams(BaseModel):
    """Subset of the InstantSearch request params that is honoured."""

    query: str = ""
    hits_per_page: int = Field(20, alias="hitsPerPage", ge=1, le=100)

    model_config = {"populate_by_name": True, "extra": "ignore"}


class InstantSearchQuery(BaseModel):
    index_name: str | None = Field(
        None, alias="indexName", description="Ignored; the path selects the index"
    )
    params: InstantSearchParams = Field(default_factory=InstantSearchParams)

    model_config = {"populate_by_name": True}


class InstantSearchRequest(BaseModel):
    """Multi-query body sent by InstantSearch clients."""

    requests: list[InstantSearchQuery] = Field(..., min_length=1)


class InstantSearchResult(BaseModel):
    """One InstantSearch (Algolia-shaped) result set."""

    hits: list[dict[str, Any]]
    nb_hits: int = Field(..., alias="nbHits")
    hits_per_page: int = Field(..., alias="hitsPerPage")
    nb_pages: int = Field(1, alias="nbPages")
    page: int = 0
    query: str
    params: str = ""
    exhaustive_nb_hits: bool = Field(True, alias="exhaustiveNbHits")
    processing_time_ms: int = Field(..., alias="processingTimeMS")

    model_config = {"populate_by_name": True}


class InstantSearchResponse(BaseModel):
    results: list[InstantSearchResult]
