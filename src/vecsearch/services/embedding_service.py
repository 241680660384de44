"""Embedding gateway with lazy, single-flight model initialization."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Sequence

import numpy as np
from llama_index.core.base.embeddings.base import BaseEmbedding
from llama_index.embeddings.openai import OpenAIEmbedding  # type: ignore

from vecsearch.config import Settings
from vecsearch.core.exceptions import EmbeddingUnavailable
from vecsearch.core.logging import get_logger

logger = get_logger(__name__)

EmbeddingFactory = Callable[[], BaseEmbedding]


def openai_embedding_factory(settings: Settings) -> EmbeddingFactory:
    """Build the default factory producing an OpenAI embedding model."""

    def _build() -> BaseEmbedding:
        return OpenAIEmbedding(
            api_key=settings.openai_api_key,
            model=settings.openai_embedding_model,
            dimensions=settings.embedding_dimension,
            max_retries=settings.openai_max_retries,
        )

    return _build


class EmbeddingGateway:
    """Owns the embedding model and turns text into fixed-length vectors.

    The model is created on first use. Concurrent first callers all await the
    same in-flight load; a failed load is forgotten so the next call retries.
    """

    def __init__(self, settings: Settings, factory: EmbeddingFactory | None = None):
        self.dimension = settings.embedding_dimension
        self._factory = factory or openai_embedding_factory(settings)
        self._model: BaseEmbedding | None = None
        self._load_task: asyncio.Task[BaseEmbedding] | None = None

    @property
    def loaded(self) -> bool:
        return self._model is not None

    async def _load(self) -> BaseEmbedding:
        logger.info("Loading embedding model")
        model = await asyncio.to_thread(self._factory)
        logger.info("Embedding model loaded: %s", type(model).__name__)
        return model

    async def _get_model(self) -> BaseEmbedding:
        if self._model is not None:
            return self._model

        if self._load_task is None:
            self._load_task = asyncio.create_task(self._load())
        task = self._load_task

        try:
            # Shielded so one cancelled caller does not abort the shared load.
            model = await asyncio.shield(task)
        except Exception as exc:
            if self._load_task is task:
                self._load_task = None
            logger.error("Embedding model failed to load: %s", exc, exc_info=True)
            raise EmbeddingUnavailable(f"Embedding model failed to load: {exc}") from exc

        self._model = model
        return model

    def _check(self, vector: Sequence[float]) -> list[float]:
        if len(vector) != self.dimension:
            raise EmbeddingUnavailable(
                f"Embedding model returned {len(vector)} dimensions, expected {self.dimension}"
            )
        return [float(x) for x in vector]

    async def embed(self, text: str | Sequence[str]) -> list[float]:
        """Embed document text; a list of texts is mean-pooled into one vector."""
        model = await self._get_model()
        try:
            if isinstance(text, str):
                vector = await model.aget_text_embedding(text)
            else:
                texts = list(text) or [""]
                vectors = await model.aget_text_embedding_batch(texts)
                vector = np.mean(np.asarray(vectors, dtype=float), axis=0).tolist()
        except Exception as exc:
            logger.error("Embedding inference failed: %s", exc, exc_info=True)
            raise EmbeddingUnavailable(f"Embedding inference failed: {exc}") from exc
        return self._check(vector)

    async def embed_query(self, query: str) -> list[float]:
        """Embed a search query."""
        model = await self._get_model()
        try:
            vector = await model.aget_query_embedding(query)
        except Exception as exc:
            logger.error("Query embedding failed: %s", exc, exc_info=True)
            raise EmbeddingUnavailable(f"Embedding inference failed: {exc}") from exc
        return self._check(vector)
