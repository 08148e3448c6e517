"""Shared test fixtures.

Provides:
- FakeEmbedder: deterministic embedder recording every provider-level call
- An in-memory knowledge store sized to the fake embedder's dimension
- Ingestion and retrieval pipelines wired to both

No test touches the network or a database.
"""

from __future__ import annotations

import pytest

from src.knowledge.ingestion import IngestionPipeline
from src.knowledge.retrieval import RetrievalPipeline
from src.knowledge.stores import InMemoryKnowledgeStore

DIMENSIONS = 4


class FakeEmbedder:
    """Maps each text to a fixed 4-dim vector derived from its characters.

    Texts listed in vectors get exactly that vector instead.
    """

    def __init__(self, vectors: dict[str, list[float]] | None = None) -> None:
        self.vectors = vectors or {}
        self.one_calls: list[str] = []
        self.many_calls: list[list[str]] = []
        self.failures: list[Exception] = []

    @property
    def dimensions(self) -> int:
        return DIMENSIONS

    def _vector(self, text: str) -> list[float]:
        if text in self.vectors:
            return list(self.vectors[text])
        lowered = text.lower()
        return [
            float(sum(c in "aeiou" for c in lowered)) + 1.0,
            float(sum(c.isalpha() for c in lowered)),
            float(len(lowered.split())),
            float(len(lowered) % 7),
        ]

    def _maybe_fail(self) -> None:
        if self.failures:
            raise self.failures.pop(0)

    async def embed_one(self, text: str) -> list[float]:
        self.one_calls.append(text)
        self._maybe_fail()
        return self._vector(text)

    async def embed_many(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []
        self.many_calls.append(list(texts))
        self._maybe_fail()
        return [self._vector(t) for t in texts]


@pytest.fixture
def embedder() -> FakeEmbedder:
    return FakeEmbedder()


@pytest.fixture
def store() -> InMemoryKnowledgeStore:
    return InMemoryKnowledgeStore(dimensions=DIMENSIONS)


@pytest.fixture
def ingestion(store, embedder) -> IngestionPipeline:
    return IngestionPipeline(store=store, embedder=embedder)


@pytest.fixture
def retrieval(store, embedder) -> RetrievalPipeline:
    return RetrievalPipeline(store=store, embedder=embedder, dimensions=DIMENSIONS)


@pytest.fixture
def make_embedder():
    """Build a FakeEmbedder with fixed vectors for selected texts."""
    return FakeEmbedder
