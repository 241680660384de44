"""Record ingestion and deletion endpoints."""

from fastapi import APIRouter, File, UploadFile, status

from vecsearch.core.exceptions import ValidationException
from vecsearch.core.logging import get_logger
from vecsearch.dependencies import IndexNameDep, IngestionServiceDep
from vecsearch.schemas.documents import (
    DeleteDocumentsRequest,
    DeleteDocumentsResponse,
    IngestDocumentsRequest,
    IngestionResponse,
    RowFailure,
)
from vecsearch.services.pipeline import IngestionStats

logger = get_logger(__name__)

router = APIRouter(tags=["documents"])


def _to_response(
    stats: IngestionStats,
    *,
    parents: int = 0,
    archived_etag: str | None = None,
) -> IngestionResponse:
    return IngestionResponse(
        index_name=stats.index_name,
        operation=stats.operation,
        total=stats.total,
        succeeded=stats.succeeded,
        failed=stats.failed,
        uids=stats.uids,
        failures=[RowFailure(row=f.row, message=f.message) for f in stats.failures],
        parents=parents,
        archived_etag=archived_etag,
    )


@router.post(
    "/indexes/{index_name}/documents",
    response_model=IngestionResponse,
    summary="Ingest Documents",
    description="Ingests a JSON array of documents, plus optional parent documents",
    status_code=status.HTTP_200_OK,
)
async def ingest_documents(
    index_name: IndexNameDep,
    request: IngestDocumentsRequest,
    ingestion_service: IngestionServiceDep,
) -> IngestionResponse:
    """Ingest documents into an index.

    Each document becomes one record. Rows that fail are reported in
    ``failures`` and never abort the batch.

    Args:
        index_name: Target index.
        request: Documents, parent documents and optional node label.
        ingestion_service: Injected ingestion service.

    Returns:
        IngestionResponse: Per-batch counts and written uids.
    """
    stats = await ingestion_service.ingest_documents(
        index_name,
        request.documents,
        node_label=request.node_label,
    )
    parents = await ingestion_service.save_parents(index_name, request.parents)
    return _to_response(stats, parents=parents)


@router.post(
    "/indexes/{index_name}/upload",
    response_model=IngestionResponse,
    summary="Upload CSV",
    description="Ingests a CSV file (header row first) and archives it to the blob store",
)
async def upload_csv(
    index_name: IndexNameDep,
    ingestion_service: IngestionServiceDep,
    file: UploadFile = File(..., description="CSV file whose header names the source keys"),
) -> IngestionResponse:
    if not file.filename:
        raise ValidationException("Uploaded file has no name")

    limit = ingestion_service.settings.max_upload_bytes
    if file.size is not None and file.size > limit:
        raise ValidationException(f"Upload exceeds {limit} bytes ({file.size})")
    # One byte past the limit is enough to reject an upload of unknown size.
    data = await file.read(limit + 1)
    logger.info("CSV upload '%s' for '%s' (%d bytes)", file.filename, index_name, len(data))

    stats, etag = await ingestion_service.upload(
        index_name,
        file.filename,
        data,
        content_type=file.content_type,
    )
    return _to_response(stats, archived_etag=etag)


@router.post(
    "/indexes/{index_name}/documents/delete",
    response_model=DeleteDocumentsResponse,
    summary="Delete Documents",
    description="Deletes records by uid; uids that do not exist are reported as successful",
)
async def delete_documents(
    index_name: IndexNameDep,
    request: DeleteDocumentsRequest,
    ingestion_service: IngestionServiceDep,
) -> DeleteDocumentsResponse:
    results = await ingestion_service.delete_documents(index_name, request.uids)
    deleted = sum(1 for result in results if result.existed)
    logger.info("Deleted %d of %d records from '%s'", deleted, len(results), index_name)
    return DeleteDocumentsResponse(index_name=index_name, deleted=deleted, results=results)
