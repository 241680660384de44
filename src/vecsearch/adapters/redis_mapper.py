"""Helpers to translate between domain models and Redis transport values."""

from __future__ import annotations

import json
import math
from collections.abc import Mapping, Sequence
from typing import Any

import numpy as np

from vecsearch.adapters.redis_schema import is_vector_field_name, parse_field_type
from vecsearch.core.constants import K_DIST
from vecsearch.core.models import FieldSchema, FieldType, SearchHit

# Little-endian IEEE-754 single precision, the layout RediSearch expects for FLOAT32.
_VECTOR_DTYPE = np.dtype("<f4")


def encode_vector(vector: Sequence[float]) -> bytes:
    """Encode a float vector as concatenated little-endian FLOAT32 values."""
    return np.asarray(vector, dtype=_VECTOR_DTYPE).tobytes()


def decode_vector(blob: bytes) -> list[float]:
    """Inverse of :func:`encode_vector`."""
    return np.frombuffer(blob, dtype=_VECTOR_DTYPE).astype(float).tolist()


def to_str(value: Any) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return str(value)


def parse_index_attributes(info: Mapping[str, Any]) -> dict[str, FieldSchema]:
    """Extract the attribute list from an FT.INFO reply.

    Each attribute is reported as a flat token list such as
    ``[identifier, title, attribute, title, type, TEXT, WEIGHT, 1, SORTABLE]``.

    Args:
        info: Parsed FT.INFO reply.

    Returns:
        Attribute name mapped to its FieldSchema, in index order.
    """
    raw_attributes = info.get("attributes") or info.get("fields") or []
    fields: dict[str, FieldSchema] = {}
    for raw in raw_attributes:
        tokens = [to_str(token) for token in raw if isinstance(token, (bytes, str, int, float))]
        # Only the leading identifier/attribute/type pairs have fixed positions.
        pairs = {key.lower(): value for key, value in zip(tokens[0:6:2], tokens[1:6:2])}
        name = pairs.get("attribute") or pairs.get("identifier")
        if not name:
            continue
        fields[name] = FieldSchema(
            name=name,
            type=parse_field_type(pairs.get("type")),
            sortable="SORTABLE" in tokens[6:],
        )
    return fields


def decode_value(value: Any) -> Any:
    """Decode a stored scalar, expanding JSON-looking strings.

    Values written from JSON objects/arrays are stored as their JSON text;
    anything that starts like a JSON object or array is parsed back, falling
    back to the raw string when it is not valid JSON.
    """
    if isinstance(value, bytes):
        try:
            value = value.decode("utf-8")
        except UnicodeDecodeError:
            return value
    if isinstance(value, str) and value[:1] in ("{", "["):
        try:
            return json.loads(value)
        except ValueError:
            return value
    return value


def _decode_numeric(value: Any) -> Any:
    try:
        return float(value)
    except (TypeError, ValueError):
        return value


def parse_distance(value: Any) -> float | str | None:
    """Parse a ``dist`` score, keeping the raw string when it is not a finite number."""
    if value is None:
        return None
    decoded = decode_value(value)
    try:
        score = float(decoded)
    except (TypeError, ValueError):
        score = math.nan
    if math.isfinite(score):
        return score
    return decoded if isinstance(decoded, str) else str(decoded)


def hash_to_fields(
    raw: Mapping[Any, Any],
    schema: Mapping[str, FieldSchema] | None = None,
) -> dict[str, Any]:
    """Normalize a raw hash (HGETALL reply or search document).

    Vector attributes are dropped, JSON-looking strings decoded and NUMERIC
    attributes (when ``schema`` is known) returned as floats.
    """
    fields: dict[str, Any] = {}
    for raw_key, raw_value in raw.items():
        key = to_str(raw_key)
        if is_vector_field_name(key):
            continue
        field = schema.get(key) if schema else None
        if field is not None and field.type == FieldType.VECTOR:
            continue
        value = decode_value(raw_value)
        if field is not None and field.type == FieldType.NUMERIC:
            value = _decode_numeric(value)
        fields[key] = value
    return fields


def document_to_hit(
    doc_id: str,
    raw: Mapping[str, Any],
    schema: Mapping[str, FieldSchema] | None = None,
) -> SearchHit:
    """Convert one FT.SEARCH document into a SearchHit."""
    values = dict(raw)
    dist = parse_distance(values.pop(K_DIST, None))
    return SearchHit(id=doc_id, fields=hash_to_fields(values, schema), dist=dist)
