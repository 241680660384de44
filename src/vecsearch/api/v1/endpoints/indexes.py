"""Index lifecycle endpoints."""

from fastapi import APIRouter, Query, status

from vecsearch.core.exceptions import NotFoundException
from vecsearch.core.logging import get_logger
from vecsearch.dependencies import DeletionSweeperDep, IndexNameDep, IndexServiceDep
from vecsearch.schemas.indexes import (
    AlterIndexRequest,
    CreateIndexRequest,
    DropIndexResponse,
    IndexField,
    IndexInfoResponse,
    IndexListResponse,
    IndexStatusResponse,
    SweepStatusResponse,
    to_field_schemas,
)
from vecsearch.services.record_keys import sweep_pattern

logger = get_logger(__name__)

router = APIRouter(tags=["indexes"])


@router.post(
    "/indexes",
    response_model=IndexStatusResponse,
    summary="Create Index",
    description="Creates a search index over the records of a new namespace",
    status_code=status.HTTP_201_CREATED,
)
async def create_index(
    request: CreateIndexRequest,
    index_service: IndexServiceDep,
) -> IndexStatusResponse:
    """Create an index from declared fields.

    VECTOR fields get a TEXT attribute under their own name plus an HNSW
    attribute named ``<field>_vec``.

    Raises:
        SchemaConflict: If the index already exists (409).
        ValidationException: If field names are reserved or duplicated (422).
    """
    logger.info("Create index '%s' with fields %s", request.index_name, list(request.fields))
    await index_service.create_index(request.index_name, to_field_schemas(request.fields))
    return IndexStatusResponse(index_name=request.index_name)


@router.get(
    "/indexes",
    response_model=IndexListResponse,
    summary="List Indexes",
)
async def list_indexes(index_service: IndexServiceDep) -> IndexListResponse:
    return IndexListResponse(indexes=await index_service.list_indexes())


@router.get(
    "/indexes/{index_name}",
    response_model=IndexInfoResponse,
    summary="Describe Index",
    description="Returns the declared attributes of an index",
)
async def get_index(index_name: IndexNameDep, index_service: IndexServiceDep) -> IndexInfoResponse:
    fields = await index_service.get_fields(index_name)
    return IndexInfoResponse(
        index_name=index_name,
        fields=[
            IndexField(name=field.name, type=field.type.value, sortable=field.sortable)
            for field in fields.values()
        ],
    )


@router.patch(
    "/indexes/{index_name}",
    response_model=IndexStatusResponse,
    summary="Alter Index",
    description="Adds fields to an existing index; existing records are re-indexed by Redis",
)
async def alter_index(
    index_name: IndexNameDep,
    request: AlterIndexRequest,
    index_service: IndexServiceDep,
) -> IndexStatusResponse:
    logger.info("Alter index '%s': adding %s", index_name, list(request.fields))
    await index_service.alter_index(index_name, to_field_schemas(request.fields))
    return IndexStatusResponse(index_name=index_name)


@router.delete(
    "/indexes/{index_name}",
    response_model=DropIndexResponse,
    summary="Drop Index",
    description="Drops an index, optionally sweeping its records in the background",
)
async def drop_index(
    index_name: IndexNameDep,
    index_service: IndexServiceDep,
    sweeper: DeletionSweeperDep,
    delete_documents: bool = Query(False, description="Also delete every record of the index"),
) -> DropIndexResponse:
    """Drop an index.

    The sweep keeps running after the response is sent; poll
    ``GET /sweeps/{sweep_id}`` for its progress.
    """
    await index_service.drop_index(index_name)
    logger.info("Dropped index '%s' (delete_documents=%s)", index_name, delete_documents)

    if not delete_documents:
        return DropIndexResponse(index_name=index_name)

    handle = sweeper.sweep(sweep_pattern(index_name))
    return DropIndexResponse(index_name=index_name, sweep_id=handle.id)


@router.get(
    "/sweeps/{sweep_id}",
    response_model=SweepStatusResponse,
    summary="Sweep Status",
)
async def get_sweep(sweep_id: str, sweeper: DeletionSweeperDep) -> SweepStatusResponse:
    handle = sweeper.get(sweep_id)
    if handle is None:
        raise NotFoundException(f"Unknown sweep '{sweep_id}'")
    return SweepStatusResponse(
        id=handle.id,
        pattern=handle.pattern,
        status=handle.status.value,
        deleted=handle.deleted,
        failed=handle.failed,
        error=handle.error,
    )
