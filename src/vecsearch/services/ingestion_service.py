"""High-level ingestion service that wires dependencies into the ingestion pipeline."""

from __future__ import annotations

import asyncio
import csv
import io
from collections.abc import Iterator, Mapping, Sequence
from typing import Any

from vecsearch.config import Settings
from vecsearch.core.exceptions import ValidationException
from vecsearch.core.logging import get_logger
from vecsearch.repositories.record_repository import RecordRepository
from vecsearch.schemas.documents import DeleteResult, ParentDocumentIn
from vecsearch.services.blob_store import BlobStore
from vecsearch.services.embedding_service import EmbeddingGateway
from vecsearch.services.index_service import IndexService
from vecsearch.services.pipeline import IngestionPipeline, IngestionStats
from vecsearch.services.redis_service import RedisService

logger = get_logger(__name__)


def iter_csv_rows(content: bytes | str) -> Iterator[dict[str, str]]:
    """Yield CSV rows as ``header -> cell`` mappings; the first row is the header."""
    text = content.decode("utf-8-sig") if isinstance(content, bytes) else content
    reader = csv.reader(io.StringIO(text), delimiter=",")
    headers: list[str] | None = None
    for row in reader:
        if not any(cell.strip() for cell in row):
            continue
        if headers is None:
            headers = row
            continue
        yield dict(zip(headers, row))


class IngestionService:
    """Facade over the ingestion pipeline that owns dependency construction."""

    def __init__(
        self,
        settings: Settings,
        redis_service: RedisService,
        embedding_gateway: EmbeddingGateway,
        index_service: IndexService,
        blob_store: BlobStore | None = None,
    ):
        self.settings = settings
        self.index_service = index_service
        self.blob_store = blob_store
        self.repository = RecordRepository(redis_service)
        self.pipeline = IngestionPipeline(
            repository=self.repository,
            embedding_gateway=embedding_gateway,
            max_concurrency=settings.ingestion_max_concurrency,
            sanitize_text=settings.sanitize_text,
            strict_numeric=settings.strict_numeric,
        )

        logger.info(
            "IngestionService initialized "
            "(max_concurrency=%s, sanitize_text=%s, strict_numeric=%s)",
            settings.ingestion_max_concurrency,
            settings.sanitize_text,
            settings.strict_numeric,
        )

    async def ingest_documents(
        self,
        index_name: str,
        documents: Sequence[Mapping[str, Any]],
        *,
        node_label: str | None = None,
    ) -> IngestionStats:
        """Ingest a bulk JSON array, one record per document."""
        fields = await self.index_service.get_fields(index_name)
        return await self.pipeline.ingest_many(
            fields,
            documents,
            index_name=index_name,
            node_label=node_label,
            operation="documents",
        )

    async def save_parents(self, index_name: str, parents: Sequence[ParentDocumentIn]) -> int:
        """Persist parent documents; returns how many were written."""
        await asyncio.gather(
            *(self.repository.save_parent(index_name, p.uid, p.items) for p in parents)
        )
        if parents:
            logger.info("Persisted %d parents for '%s'", len(parents), index_name)
        return len(parents)

    async def ingest_csv(self, index_name: str, content: bytes | str) -> IngestionStats:
        """Ingest a CSV file whose header row names the source keys."""
        fields = await self.index_service.get_fields(index_name)
        try:
            rows = list(iter_csv_rows(content))
        except (UnicodeDecodeError, csv.Error) as exc:
            raise ValidationException(f"Unreadable CSV upload: {exc}") from exc
        return await self.pipeline.ingest_many(
            fields,
            rows,
            index_name=index_name,
            operation="csv",
        )

    async def upload(
        self,
        index_name: str,
        filename: str,
        data: bytes,
        content_type: str | None = None,
    ) -> tuple[IngestionStats, str | None]:
        """Archive an uploaded CSV and ingest it; archiving failures never block indexing."""
        if len(data) > self.settings.max_upload_bytes:
            raise ValidationException(
                f"Upload exceeds {self.settings.max_upload_bytes} bytes ({len(data)})"
            )

        async def _archive() -> str | None:
            if self.blob_store is None or not self.blob_store.enabled:
                return None
            try:
                return await self.blob_store.put(
                    f"{index_name}/{filename}",
                    data,
                    content_type=content_type,
                )
            except Exception:
                logger.exception("Archiving %s for '%s' failed", filename, index_name)
                return None

        etag, stats = await asyncio.gather(_archive(), self.ingest_csv(index_name, data))
        return stats, etag

    async def delete_documents(self, index_name: str, uids: Sequence[str]) -> list[DeleteResult]:
        """Delete records by uid; deleting an absent record succeeds."""
        outcomes = await asyncio.gather(
            *(self.repository.delete_record(index_name, uid) for uid in uids),
            return_exceptions=True,
        )

        results: list[DeleteResult] = []
        for uid, outcome in zip(uids, outcomes):
            if isinstance(outcome, Exception):
                logger.warning("Failed to delete %s from '%s': %s", uid, index_name, outcome)
                results.append(DeleteResult(uid=uid, success=False, error=str(outcome)))
            elif isinstance(outcome, bool):
                results.append(DeleteResult(uid=uid, success=True, existed=outcome))
            else:
                raise outcome
        return results
