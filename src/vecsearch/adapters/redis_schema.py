"""Translate logical field schemas into RediSearch index fields."""

from __future__ import annotations

from collections.abc import Iterable

from redis.commands.search.field import Field, NumericField, TagField, TextField, VectorField

from vecsearch.core.constants import (
    K_UID,
    VECTOR_ALGORITHM,
    VECTOR_ELEMENT_TYPE,
    VECTOR_FIELD_SUFFIX,
)
from vecsearch.core.logging import get_logger
from vecsearch.core.models import FieldSchema, FieldType

logger = get_logger(__name__)


def parse_field_type(value: str | FieldType | None) -> FieldType:
    """Map a declared type name onto FieldType; unknown names fall back to TEXT."""
    if isinstance(value, FieldType):
        return value
    try:
        return FieldType(str(value).upper())
    except ValueError:
        logger.debug("Unknown field type %r, defaulting to TEXT", value)
        return FieldType.TEXT


def vector_field_name(name: str) -> str:
    """Name of the vector attribute paired with a semantic field."""
    return f"{name}{VECTOR_FIELD_SUFFIX}"


def is_vector_field_name(name: str) -> bool:
    return name.endswith(VECTOR_FIELD_SUFFIX)


def source_field_name(name: str) -> str:
    """Inverse of :func:`vector_field_name`."""
    if is_vector_field_name(name):
        return name[: -len(VECTOR_FIELD_SUFFIX)]
    return name


def compile_field(schema: FieldSchema, *, dimension: int, metric: str) -> list[Field]:
    """Compile one logical field into its RediSearch attribute(s).

    A VECTOR field always yields two attributes: a TEXT shadow under the
    field's own name and an HNSW vector attribute under ``<name>_vec``.
    """
    if schema.type == FieldType.VECTOR:
        return [
            TextField(schema.name, sortable=schema.sortable),
            VectorField(
                vector_field_name(schema.name),
                VECTOR_ALGORITHM,
                {
                    "TYPE": VECTOR_ELEMENT_TYPE,
                    "DIM": dimension,
                    "DISTANCE_METRIC": metric,
                },
            ),
        ]
    if schema.type == FieldType.TAG:
        return [TagField(schema.name, sortable=schema.sortable)]
    if schema.type == FieldType.NUMERIC:
        return [NumericField(schema.name, sortable=schema.sortable)]
    return [TextField(schema.name, sortable=schema.sortable)]


def compile_schema(
    fields: Iterable[FieldSchema],
    *,
    dimension: int,
    metric: str,
    include_uid: bool = True,
) -> list[Field]:
    """Compile a field schema into the argument list for FT.CREATE / FT.ALTER.

    Args:
        fields: Declared fields, in order.
        dimension: Embedding dimension for vector attributes.
        metric: Distance metric for vector attributes (``COSINE`` or ``L2``).
        include_uid: Append the internal ``__uid`` TAG attribute.

    Returns:
        RediSearch field definitions in declaration order.
    """
    compiled: list[Field] = []
    for schema in fields:
        compiled.extend(compile_field(schema, dimension=dimension, metric=metric))
    if include_uid:
        compiled.append(TagField(K_UID))
    return compiled
