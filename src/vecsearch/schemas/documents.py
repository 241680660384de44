"""Document ingestion and deletion schemas."""

from typing import Any

from pydantic import BaseModel, Field


class ParentDocumentIn(BaseModel):
    """Parent document grouping chunk records."""

    uid: str = Field(..., description="Parent document uid", min_length=1)
    items: list[str] = Field(..., description="Chunk uids, in order")


class IngestDocumentsRequest(BaseModel):
    """Bulk JSON ingestion request."""

    documents: list[dict[str, Any]] = Field(..., description="Documents to ingest")
    parents: list[ParentDocumentIn] = Field(
        default_factory=list, description="Parent documents referencing ingested chunks"
    )
    node_label: str | None = Field(
        None,
        alias="nodeLabel",
        description="Label whose '<label>.id' key carries the document id",
    )

    model_config = {"populate_by_name": True}


class RowFailure(BaseModel):
    """A row/document that could not be ingested."""

    row: int = Field(..., description="Zero-based row/document position")
    message: str = Field(..., description="Failure reason")


class IngestionResponse(BaseModel):
    """Aggregate outcome of an ingestion batch."""

    index_name: str
    operation: str
    total: int = Field(..., description="Rows/documents received")
    succeeded: int
    failed: int
    uids: list[str] = Field(..., description="Uids of the records written")
    failures: list[RowFailure] = Field(default_factory=list)
    parents: int = Field(0, description="Parent documents written")
    archived_etag: str | None = Field(None, description="ETag of the archived upload")


class DeleteDocumentsRequest(BaseModel):
    """Bulk delete request."""

    uids: list[str] = Field(..., description="Record uids to delete", min_length=1)


class DeleteResult(BaseModel):
    uid: str
    success: bool
    existed: bool = False
    error: str | None = None


class DeleteDocumentsResponse(BaseModel):
    index_name: str
    deleted: int = Field(..., description="Records that existed and were removed")
    results: list[DeleteResult]
