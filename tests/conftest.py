# conftest.py
import fnmatch
from collections.abc import AsyncIterator, Sequence
from typing import Any

import numpy as np
import pytest
import pytest_asyncio
from llama_index.core.embeddings.mock_embed_model import MockEmbedding
from redis.commands.search.field import Field

from vecsearch.adapters.redis_mapper import decode_vector, parse_index_attributes
from vecsearch.config import Settings
from vecsearch.core.exceptions import IndexMissing, SchemaConflict
from vecsearch.core.models import Combinator, CompiledQuery, FieldSchema, FieldType, Predicate
from vecsearch.repositories.record_repository import RecordRepository
from vecsearch.services.embedding_service import EmbeddingGateway
from vecsearch.services.index_service import IndexService
from vecsearch.services.ingestion_service import IngestionService
from vecsearch.services.parent_aggregator import ParentAggregator
from vecsearch.services.query_compiler import QueryCompiler
from vecsearch.services.search_service import SearchService

EMBED_DIM = 8


def _to_bytes(value: Any) -> bytes:
    # Same encoding redis-py applies to hash values.
    if isinstance(value, bytes):
        return value
    if isinstance(value, float):
        return repr(value).encode()
    return str(value).encode()


def _to_text(value: bytes) -> str:
    return value.decode("utf-8", errors="replace")


class FakeRedisService:
    """In-memory stand-in for RedisService.

    Hashes live in a dict; indexes keep their FT.INFO-style attribute lists.
    ``search`` evaluates the structured parts of a CompiledQuery (predicates,
    text part, vector clause) instead of parsing the query string.
    """

    def __init__(self) -> None:
        self.hashes: dict[str, dict[bytes, bytes]] = {}
        self.indexes: dict[str, dict[str, Any]] = {}
        self.searches: list[CompiledQuery] = []
        self.closed = False

    async def ping(self) -> None:
        return None

    async def aclose(self) -> None:
        self.closed = True

    @staticmethod
    def _attribute(field: Field) -> list[Any]:
        args = field.redis_args()
        return ["identifier", field.name, "attribute", field.name, "type", *args[1:]]

    async def create_index(self, index_name: str, fields: Sequence[Field], *, prefix: str) -> None:
        if index_name in self.indexes:
            raise SchemaConflict(f"Index '{index_name}' already exists")
        self.indexes[index_name] = {
            "prefix": prefix,
            "attributes": [self._attribute(f) for f in fields],
        }

    async def alter_index(self, index_name: str, fields: Sequence[Field]) -> None:
        if index_name not in self.indexes:
            raise IndexMissing(index_name)
        self.indexes[index_name]["attributes"].extend(self._attribute(f) for f in fields)

    async def drop_index(self, index_name: str) -> None:
        if self.indexes.pop(index_name, None) is None:
            raise IndexMissing(index_name)

    async def list_indexes(self) -> list[str]:
        return sorted(self.indexes)

    async def index_fields(self, index_name: str) -> dict[str, FieldSchema]:
        if index_name not in self.indexes:
            raise IndexMissing(index_name)
        return parse_index_attributes(self.indexes[index_name])

    async def hset(self, key: str, mapping: dict[str, Any]) -> None:
        stored = self.hashes.setdefault(key, {})
        for field, value in mapping.items():
            stored[field.encode()] = _to_bytes(value)

    async def hget(self, key: str, field: str) -> bytes | None:
        return self.hashes.get(key, {}).get(field.encode())

    async def hgetall(self, key: str) -> dict[bytes, bytes]:
        return dict(self.hashes.get(key, {}))

    async def delete(self, *keys: str) -> int:
        return sum(1 for key in keys if self.hashes.pop(key, None) is not None)

    async def scan_keys(self, pattern: str, *, count: int = 500) -> AsyncIterator[str]:
        for key in list(self.hashes):
            if fnmatch.fnmatchcase(key, pattern):
                yield key

    # --- search -----------------------------------------------------------

    @staticmethod
    def _matches(predicate: Predicate, doc: dict[bytes, bytes]) -> bool:
        raw = doc.get(predicate.field.encode())
        if raw is None:
            return False
        value = _to_text(raw)
        if predicate.type == FieldType.NUMERIC:
            low, high = predicate.values
            try:
                return low <= float(value) <= high
            except ValueError:
                return False
        if predicate.type == FieldType.TAG:
            stored = {tag.strip().lower() for tag in value.split(",")}
            return any(str(tag).lower() in stored for tag in predicate.values)
        return str(predicate.values[0]).lower() in value.lower()

    @staticmethod
    def _text_matches(text: str, doc: dict[bytes, bytes], text_fields: list[str]) -> bool:
        haystack = " ".join(
            _to_text(doc[name.encode()]) for name in text_fields if name.encode() in doc
        ).lower()
        return all(token in haystack for token in text.lower().split())

    def _filter(self, compiled: CompiledQuery, doc: dict[bytes, bytes]) -> bool:
        results = [self._matches(p, doc) for p in compiled.predicates]
        if not results:
            return True
        if compiled.combinator == Combinator.OR:
            return any(results)
        return all(results)

    async def search(
        self,
        index_name: str,
        compiled: CompiledQuery,
    ) -> list[tuple[str, dict[str, Any]]]:
        if index_name not in self.indexes:
            raise IndexMissing(index_name)
        self.searches.append(compiled)

        fields = parse_index_attributes(self.indexes[index_name])
        text_fields = [name for name, f in fields.items() if f.type == FieldType.TEXT]
        prefix = self.indexes[index_name]["prefix"]
        candidates = [
            (key, doc)
            for key, doc in self.hashes.items()
            if key.startswith(prefix) and self._filter(compiled, doc)
        ]

        scored: list[tuple[str, dict[bytes, bytes], float | None]] = []
        clause = compiled.vector_clause
        if clause is not None:
            query = np.asarray(clause.vector, dtype=float)
            for key, doc in candidates:
                blob = doc.get(clause.field_name.encode())
                if blob is None:
                    continue
                stored = np.asarray(decode_vector(blob), dtype=float)
                denom = float(np.linalg.norm(query) * np.linalg.norm(stored)) or 1.0
                scored.append((key, doc, 1.0 - float(np.dot(query, stored)) / denom))
            scored.sort(key=lambda item: item[2])
        else:
            for key, doc in candidates:
                if compiled.predicates or compiled.text_part:
                    if compiled.text_part and not self._text_matches(
                        compiled.text_part, doc, text_fields
                    ):
                        continue
                    scored.append((key, doc, None))

        documents: list[tuple[str, dict[str, Any]]] = []
        for key, doc, dist in scored[: compiled.limit]:
            projected = {
                name: _to_text(doc[name.encode()])
                for name in compiled.return_fields
                if name.encode() in doc
            }
            if dist is not None:
                projected["dist"] = repr(dist)
            documents.append((key, projected))
        return documents


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        embedding_dimension=EMBED_DIM,
        openai_api_key=None,
        ingestion_max_concurrency=4,
        file_bucket=None,
    )


@pytest.fixture
def fake_redis() -> FakeRedisService:
    return FakeRedisService()


@pytest.fixture
def embedding_gateway(test_settings: Settings) -> EmbeddingGateway:
    """Gateway backed by llama-index's deterministic mock model."""
    return EmbeddingGateway(test_settings, factory=lambda: MockEmbedding(embed_dim=EMBED_DIM))


@pytest.fixture
def index_service(test_settings: Settings, fake_redis: FakeRedisService) -> IndexService:
    return IndexService(test_settings, fake_redis)  # type: ignore[arg-type]


@pytest.fixture
def repository(fake_redis: FakeRedisService) -> RecordRepository:
    return RecordRepository(fake_redis)  # type: ignore[arg-type]


@pytest.fixture
def search_service(
    test_settings: Settings,
    fake_redis: FakeRedisService,
    index_service: IndexService,
    embedding_gateway: EmbeddingGateway,
    repository: RecordRepository,
) -> SearchService:
    return SearchService(
        test_settings,
        fake_redis,  # type: ignore[arg-type]
        index_service,
        QueryCompiler(embedding_gateway),
        ParentAggregator(repository),
    )


@pytest.fixture
def ingestion_service(
    test_settings: Settings,
    fake_redis: FakeRedisService,
    index_service: IndexService,
    embedding_gateway: EmbeddingGateway,
) -> IngestionService:
    return IngestionService(
        test_settings,
        fake_redis,  # type: ignore[arg-type]
        embedding_gateway,
        index_service,
    )


@pytest_asyncio.fixture
async def products_index(index_service: IndexService) -> str:
    """A 'products' index with text, numeric, tag and vector attributes."""
    await index_service.create_index(
        "products",
        [
            FieldSchema("title", FieldType.TEXT, sortable=True),
            FieldSchema("price", FieldType.NUMERIC),
            FieldSchema("color", FieldType.TAG),
            FieldSchema("content_parent_uids", FieldType.TAG),
            FieldSchema("description", FieldType.VECTOR),
        ],
    )
    return "products"
