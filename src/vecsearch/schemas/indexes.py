"""Index management schemas."""

from pydantic import BaseModel, Field

from vecsearch.adapters.redis_schema import parse_field_type
from vecsearch.core.models import FieldSchema

# Index names become part of Redis keys and SCAN patterns.
INDEX_NAME_PATTERN = r"^[A-Za-z0-9_\-]+$"


class FieldSpec(BaseModel):
    """Declared field; unknown types are indexed as TEXT."""

    type: str = Field("TEXT", description="TEXT, TAG, NUMERIC or VECTOR")
    sortable: bool = Field(False, description="Make the attribute sortable")


def to_field_schemas(fields: dict[str, FieldSpec]) -> list[FieldSchema]:
    return [
        FieldSchema(name=name, type=parse_field_type(spec.type), sortable=spec.sortable)
        for name, spec in fields.items()
    ]


class CreateIndexRequest(BaseModel):
    """Request model for index creation."""

    index_name: str = Field(..., alias="indexName", pattern=INDEX_NAME_PATTERN)
    fields: dict[str, FieldSpec] = Field(..., min_length=1)

    model_config = {
        "populate_by_name": True,
        "json_schema_extra": {
            "examples": [
                {
                    "indexName": "products",
                    "fields": {
                        "title": {"type": "TEXT", "sortable": True},
                        "price": {"type": "NUMERIC"},
                        "embedding": {"type": "VECTOR"},
                    },
                }
            ]
        },
    }


class AlterIndexRequest(BaseModel):
    """Fields to add to an existing index."""

    fields: dict[str, FieldSpec] = Field(..., min_length=1)


class IndexStatusResponse(BaseModel):
    status: str = "OK"
    index_name: str


class IndexField(BaseModel):
    name: str
    type: str
    sortable: bool


class IndexInfoResponse(BaseModel):
    index_name: str
    fields: list[IndexField]


class IndexListResponse(BaseModel):
    indexes: list[str]


class DropIndexResponse(BaseModel):
    status: str = "OK"
    index_name: str
    sweep_id: str | None = Field(None, description="Id of the record sweep, if requested")


class SweepStatusResponse(BaseModel):
    id: str
    pattern: str
    status: str
    deleted: int
    failed: int
    error: str | None = None
