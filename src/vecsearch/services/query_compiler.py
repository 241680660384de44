"""Compile attribute filters and free-text/semantic queries into RediSearch queries."""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from typing import Any

from vecsearch.adapters.redis_mapper import encode_vector
from vecsearch.core.constants import K_DIST, LIST_SEPARATOR, VECTOR_PARAM
from vecsearch.core.exceptions import QueryCompileFailure
from vecsearch.core.logging import get_logger
from vecsearch.core.models import (
    Combinator,
    CompiledQuery,
    FieldSchema,
    FieldType,
    Predicate,
    VectorClause,
)
from vecsearch.services.embedding_service import EmbeddingGateway
from vecsearch.text_processing.coercion import coerce_numeric, coerce_text

logger = get_logger(__name__)

# RediSearch query-syntax punctuation; whitespace is escaped for tags only.
_TEXT_ESCAPE_PATTERN = re.compile(r"([,.<>{}\[\]\"':;!@#$%^&*()\-+=~|/\\])")
_TAG_ESCAPE_PATTERN = re.compile(r"([,.<>{}\[\]\"':;!@#$%^&*()\-+=~|/\\\s])")


def escape_text(value: str) -> str:
    return _TEXT_ESCAPE_PATTERN.sub(r"\\\1", value)


def escape_tag(value: str) -> str:
    return _TAG_ESCAPE_PATTERN.sub(r"\\\1", value)


def _format_number(value: float) -> str:
    return repr(float(value))


def render_predicate(predicate: Predicate) -> str:
    """Render one predicate in dialect-2 syntax."""
    name = predicate.field
    if predicate.type == FieldType.NUMERIC:
        low, high = predicate.values
        return f"@{name}:[{_format_number(low)} {_format_number(high)}]"
    if predicate.type == FieldType.TAG:
        tags = " | ".join(escape_tag(str(tag)) for tag in predicate.values)
        return f"@{name}:{{{tags}}}"
    return f"@{name}:({escape_text(str(predicate.values[0]))})"


def join_clauses(clauses: Sequence[str], combinator: Combinator) -> str:
    """AND is a space-joined conjunction; OR a parenthesized ``|`` disjunction."""
    if not clauses:
        return ""
    if combinator == Combinator.OR:
        return "(" + " | ".join(clauses) + ")"
    return " ".join(clauses)


def _knn_prefilter(clause: str, combinator: Combinator) -> str:
    if not clause:
        return "*"
    if combinator == Combinator.OR:
        return clause
    return f"({clause})"


def _build_predicate(field: FieldSchema, value: Any) -> Predicate | None:
    if isinstance(value, dict):
        raise QueryCompileFailure(f"Unsupported filter value for '{field.name}': {value!r}")

    if field.type == FieldType.NUMERIC:
        if isinstance(value, (list, tuple)):
            if len(value) != 2:
                raise QueryCompileFailure(
                    f"Numeric range filter for '{field.name}' needs [low, high], got {value!r}"
                )
            low, high = (coerce_numeric(v) for v in value)
            return Predicate(field.name, field.type, (low, high))
        number = coerce_numeric(value)
        # Exact match through a degenerate range; numeric attributes only support ranges.
        return Predicate(field.name, field.type, (number, number))

    if field.type == FieldType.TAG:
        items = value if isinstance(value, (list, tuple)) else coerce_text(value).split(LIST_SEPARATOR)
        tags = tuple(tag for tag in (coerce_text(item).strip() for item in items) if tag)
        return Predicate(field.name, field.type, tags) if tags else None

    text = coerce_text(value).strip()
    return Predicate(field.name, FieldType.TEXT, (text,)) if text else None


class QueryCompiler:
    """Builds one CompiledQuery per search request."""

    def __init__(self, embedding_gateway: EmbeddingGateway):
        self.embedding_gateway = embedding_gateway

    @staticmethod
    def build_predicates(
        fields: Mapping[str, FieldSchema],
        filters: Mapping[str, Any] | None,
    ) -> list[Predicate]:
        """Turn non-null filters on declared, non-vector attributes into predicates."""
        predicates: list[Predicate] = []
        for key, value in (filters or {}).items():
            if value is None:
                continue
            field = fields.get(key)
            if field is None or field.type == FieldType.VECTOR:
                logger.debug("Ignoring filter on undeclared attribute '%s'", key)
                continue
            predicate = _build_predicate(field, value)
            if predicate is not None:
                predicates.append(predicate)
        return predicates

    @staticmethod
    def find_vector_field(fields: Mapping[str, FieldSchema]) -> FieldSchema | None:
        vector_fields = [f for f in fields.values() if f.type == FieldType.VECTOR]
        if len(vector_fields) > 1:
            logger.warning(
                "Index declares %d vector attributes, using '%s'",
                len(vector_fields),
                vector_fields[0].name,
            )
        return vector_fields[0] if vector_fields else None

    @staticmethod
    def projection(fields: Mapping[str, FieldSchema]) -> tuple[str, ...]:
        return tuple(name for name, f in fields.items() if f.type != FieldType.VECTOR)

    async def compile(
        self,
        fields: Mapping[str, FieldSchema],
        free_text: str | None,
        filters: Mapping[str, Any] | None = None,
        combinator: Combinator = Combinator.AND,
        limit: int = 10,
        want_parents: bool = False,
    ) -> CompiledQuery | None:
        """Compile a search request.

        Args:
            fields: Attribute metadata of the target index.
            free_text: Free-text or semantic query, if any.
            filters: Attribute name mapped to the value(s) to match.
            combinator: How predicates are joined (and joined to the text part).
            limit: Maximum hits; also the KNN neighbour count.
            want_parents: Whether hits will be expanded into parent documents.

        Returns:
            The compiled query, or None when there is nothing to search.

        Raises:
            QueryCompileFailure: If a filter value cannot be expressed.
            EmbeddingUnavailable: If the query embedding cannot be computed.
        """
        if limit < 1:
            raise QueryCompileFailure(f"limit must be positive, got {limit}")

        try:
            combinator = Combinator(combinator)
        except ValueError as exc:
            raise QueryCompileFailure(f"Unknown combinator {combinator!r}") from exc
        predicates = self.build_predicates(fields, filters)
        clause = join_clauses([render_predicate(p) for p in predicates], combinator)
        text = (free_text or "").strip()
        vector_field = self.find_vector_field(fields)
        projection = self.projection(fields)

        if text and vector_field is not None:
            vector = await self.embedding_gateway.embed_query(text)
            knn = f"=>[KNN {limit} @{vector_field.name} ${VECTOR_PARAM} AS {K_DIST}]"
            query_string = _knn_prefilter(clause, combinator) + knn
            logger.debug("Compiled KNN query: %s", query_string)
            return CompiledQuery(
                query_string=query_string,
                limit=limit,
                combinator=combinator,
                text_part=text,
                predicates=tuple(predicates),
                vector_clause=VectorClause(vector_field.name, vector, limit),
                params={VECTOR_PARAM: encode_vector(vector)},
                sort_by=K_DIST,
                return_fields=(*projection, K_DIST),
                want_parents=want_parents,
            )

        if text:
            query_string = f"{escape_text(text)} {clause}".strip()
        elif clause:
            query_string = clause
        else:
            logger.debug("Nothing to search: no query text and no applicable filters")
            return None

        logger.debug("Compiled attribute query: %s", query_string)
        return CompiledQuery(
            query_string=query_string,
            limit=limit,
            combinator=combinator,
            text_part=text or None,
            predicates=tuple(predicates),
            return_fields=projection,
            want_parents=want_parents,
        )

    def compile_raw(
        self,
        fields: Mapping[str, FieldSchema],
        query: str,
        limit: int = 10,
    ) -> CompiledQuery:
        """Pass a caller-written dialect query through untouched."""
        if limit < 1:
            raise QueryCompileFailure(f"limit must be positive, got {limit}")
        return CompiledQuery(
            query_string=query,
            limit=limit,
            text_part=query,
            return_fields=self.projection(fields),
        )
