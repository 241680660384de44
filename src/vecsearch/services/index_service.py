"""Index lifecycle: create, alter, drop and describe RediSearch indexes."""

from __future__ import annotations

from collections.abc import Sequence

from vecsearch.adapters.redis_schema import compile_schema, vector_field_name
from vecsearch.config import Settings
from vecsearch.core.constants import K_DIST, K_UID
from vecsearch.core.exceptions import ValidationException
from vecsearch.core.logging import get_logger
from vecsearch.core.models import FieldSchema, FieldType
from vecsearch.services.record_keys import key_prefix
from vecsearch.services.redis_service import RedisService
from vecsearch.text_processing.field_names import normalize_field_name

logger = get_logger(__name__)

_RESERVED_NAMES = frozenset({K_UID, K_DIST})


def _physical_names(fields: Sequence[FieldSchema]) -> list[str]:
    names: list[str] = []
    for field in fields:
        names.append(field.name)
        if field.type == FieldType.VECTOR:
            names.append(vector_field_name(field.name))
    return names


class IndexService:
    """Creates and inspects indexes; field metadata feeds search and ingestion."""

    def __init__(self, settings: Settings, redis_service: RedisService):
        self.settings = settings
        self.redis_service = redis_service

    def _validate(self, fields: Sequence[FieldSchema]) -> None:
        if not fields:
            raise ValidationException("At least one field is required")

        for field in fields:
            if field.name in _RESERVED_NAMES:
                raise ValidationException(f"Field name '{field.name}' is reserved")
            if normalize_field_name(field.name) != field.name:
                raise ValidationException(
                    f"Field name '{field.name}' must only contain letters, digits and '_'"
                )

        names = _physical_names(fields)
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ValidationException(f"Duplicate attribute names: {', '.join(duplicates)}")

    async def create_index(self, index_name: str, fields: Sequence[FieldSchema]) -> None:
        """Create ``idx:<name>`` over ``vs:<name>:``; raises SchemaConflict if it exists."""
        self._validate(fields)
        schema = compile_schema(
            fields,
            dimension=self.settings.embedding_dimension,
            metric=self.settings.vector_distance_metric,
        )
        logger.debug("Schema for '%s': %s", index_name, [f.name for f in schema])
        await self.redis_service.create_index(index_name, schema, prefix=key_prefix(index_name))

    async def alter_index(self, index_name: str, fields: Sequence[FieldSchema]) -> None:
        """Add new fields to an existing index."""
        self._validate(fields)
        existing = await self.get_fields(index_name)
        clashes = [name for name in _physical_names(fields) if name in existing]
        if clashes:
            raise ValidationException(f"Fields already declared: {', '.join(clashes)}")
        schema = compile_schema(
            fields,
            dimension=self.settings.embedding_dimension,
            metric=self.settings.vector_distance_metric,
            include_uid=False,
        )
        await self.redis_service.alter_index(index_name, schema)

    async def drop_index(self, index_name: str) -> None:
        """Drop the index definition. Records stay until swept."""
        await self.redis_service.drop_index(index_name)

    async def list_indexes(self) -> list[str]:
        return await self.redis_service.list_indexes()

    async def get_fields(self, index_name: str) -> dict[str, FieldSchema]:
        """Attribute metadata of an index; raises IndexMissing if undefined."""
        return await self.redis_service.index_fields(index_name)
