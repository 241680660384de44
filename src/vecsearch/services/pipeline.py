"""Row/document ingestion pipeline: field matching, coercion, embedding and writes."""

from __future__ import annotations

import asyncio
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from vecsearch.adapters.redis_mapper import encode_vector
from vecsearch.adapters.redis_schema import source_field_name
from vecsearch.core.constants import K_UID
from vecsearch.core.exceptions import IngestionRowFailure
from vecsearch.core.logging import get_logger
from vecsearch.core.models import FieldSchema, FieldType, Record
from vecsearch.repositories.record_repository import RecordRepository
from vecsearch.services.embedding_service import EmbeddingGateway
from vecsearch.services.record_keys import generate_uid, record_key
from vecsearch.text_processing.coercion import coerce_text, coerce_value
from vecsearch.text_processing.field_names import normalize_field_name

logger = get_logger(__name__)


@dataclass(slots=True)
class IngestionStats:
    """Aggregate outcome of a batch ingestion."""

    index_name: str
    operation: str
    total: int = 0
    succeeded: int = 0
    uids: list[str] = field(default_factory=list)
    failures: list[IngestionRowFailure] = field(default_factory=list)

    @property
    def failed(self) -> int:
        return len(self.failures)


def resolve_uid(
    source: Mapping[str, Any],
    *,
    uid: str | None = None,
    node_label: str | None = None,
) -> str:
    """Explicit uid, else the ``<node_label>.id`` source value, else a fresh uuid4."""
    if uid:
        return str(uid)
    if node_label:
        labelled = source.get(f"{node_label}.id")
        if labelled is not None and str(labelled).strip():
            return str(labelled).strip()
    return generate_uid()


class IngestionPipeline:
    """Turns source rows into records and persists them."""

    def __init__(
        self,
        *,
        repository: RecordRepository,
        embedding_gateway: EmbeddingGateway,
        max_concurrency: int = 8,
        sanitize_text: bool = False,
        strict_numeric: bool = False,
    ) -> None:
        self._repository = repository
        self._embedding_gateway = embedding_gateway
        self._semaphore = asyncio.Semaphore(max_concurrency)
        self._sanitize_text = sanitize_text
        self._strict_numeric = strict_numeric

    async def build_values(
        self,
        fields: Mapping[str, FieldSchema],
        source: Mapping[str, Any],
    ) -> dict[str, Any]:
        """Match declared fields against source keys and produce hash values.

        Source keys are normalized first; when several keys normalize to the
        same name the first one wins. A vector attribute ``x_vec`` is fed
        from source key ``x`` through the embedding model. Fields without a
        matching (non-null) source value are left out.
        """
        normalized: dict[str, Any] = {}
        for key, value in source.items():
            normalized.setdefault(normalize_field_name(str(key)), value)

        values: dict[str, Any] = {}
        for name, schema in fields.items():
            if name == K_UID:
                continue

            if schema.type == FieldType.VECTOR:
                raw = normalized.get(source_field_name(name))
                if raw is None:
                    continue
                if isinstance(raw, (list, tuple)):
                    text: str | list[str] = [coerce_text(item) for item in raw]
                else:
                    text = coerce_text(raw)
                vector = await self._embedding_gateway.embed(text)
                values[name] = encode_vector(vector)
                continue

            raw = normalized.get(name)
            if raw is None:
                continue
            values[name] = coerce_value(
                schema.type,
                raw,
                sanitize_text=self._sanitize_text,
                strict_numeric=self._strict_numeric,
            )
        return values

    async def ingest(
        self,
        fields: Mapping[str, FieldSchema],
        source: Mapping[str, Any],
        *,
        index_name: str,
        uid: str | None = None,
        node_label: str | None = None,
    ) -> Record:
        """Ingest one row/document; the same uid always maps to the same key."""
        record_uid = resolve_uid(source, uid=uid, node_label=node_label)
        values = await self.build_values(fields, source)
        values[K_UID] = record_uid

        record = Record(key=record_key(index_name, record_uid), uid=record_uid, values=values)
        await self._repository.save_record(record)
        logger.debug("Wrote %s (%d attributes)", record.key, len(values))
        return record

    async def _bounded_ingest(
        self,
        fields: Mapping[str, FieldSchema],
        source: Mapping[str, Any],
        *,
        index_name: str,
        node_label: str | None,
    ) -> Record:
        async with self._semaphore:
            return await self.ingest(fields, source, index_name=index_name, node_label=node_label)

    async def ingest_many(
        self,
        fields: Mapping[str, FieldSchema],
        rows: Iterable[Mapping[str, Any]],
        *,
        index_name: str,
        node_label: str | None = None,
        operation: str = "ingest",
    ) -> IngestionStats:
        """Ingest every row concurrently; a failing row never drops the others."""
        batch = list(rows)
        logger.info("Ingesting %d rows into '%s' (%s)", len(batch), index_name, operation)

        results = await asyncio.gather(
            *(
                self._bounded_ingest(fields, row, index_name=index_name, node_label=node_label)
                for row in batch
            ),
            return_exceptions=True,
        )

        stats = IngestionStats(index_name=index_name, operation=operation, total=len(batch))
        for row_number, result in enumerate(results):
            if isinstance(result, Record):
                stats.succeeded += 1
                stats.uids.append(result.uid)
            elif isinstance(result, Exception):
                message = getattr(result, "message", None) or str(result) or type(result).__name__
                logger.warning("Row %d of '%s' failed: %s", row_number, index_name, message)
                stats.failures.append(IngestionRowFailure(row_number, message))
            else:
                raise result

        logger.info(
            "Ingestion into '%s' finished: %d succeeded, %d failed",
            index_name,
            stats.succeeded,
            stats.failed,
        )
        return stats
