"""Tests for the embedding gateway."""

import asyncio
import threading

import pytest
from llama_index.core.embeddings.mock_embed_model import MockEmbedding

from vecsearch.config import Settings
from vecsearch.core.exceptions import EmbeddingUnavailable
from vecsearch.services.embedding_service import EmbeddingGateway

pytestmark = pytest.mark.asyncio


async def test_embed_returns_configured_dimension(embedding_gateway: EmbeddingGateway):
    assert not embedding_gateway.loaded

    vector = await embedding_gateway.embed("red shoes")

    assert len(vector) == 8
    assert embedding_gateway.loaded


async def test_embed_list_is_mean_pooled(embedding_gateway: EmbeddingGateway):
    single = await embedding_gateway.embed("a")
    pooled = await embedding_gateway.embed(["a", "b", "c"])
    assert pooled == pytest.approx(single)


async def test_concurrent_first_calls_share_one_load(test_settings: Settings):
    calls = 0
    lock = threading.Lock()

    def factory() -> MockEmbedding:
        nonlocal calls
        with lock:
            calls += 1
        return MockEmbedding(embed_dim=8)

    gateway = EmbeddingGateway(test_settings, factory=factory)
    vectors = await asyncio.gather(*(gateway.embed_query(f"q{i}") for i in range(10)))

    assert calls == 1
    assert all(len(v) == 8 for v in vectors)


async def test_failed_load_is_retried(test_settings: Settings):
    attempts = 0

    def factory() -> MockEmbedding:
        nonlocal attempts
        attempts += 1
        if attempts == 1:
            raise RuntimeError("model download failed")
        return MockEmbedding(embed_dim=8)

    gateway = EmbeddingGateway(test_settings, factory=factory)

    with pytest.raises(EmbeddingUnavailable):
        await gateway.embed("x")
    assert not gateway.loaded

    assert len(await gateway.embed("x")) == 8
    assert attempts == 2


async def test_dimension_mismatch_is_reported(test_settings: Settings):
    gateway = EmbeddingGateway(test_settings, factory=lambda: MockEmbedding(embed_dim=4))
    with pytest.raises(EmbeddingUnavailable, match="expected 8"):
        await gateway.embed_query("x")
