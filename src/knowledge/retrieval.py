"""Semantic retrieval pipeline.

  validate query -> embed -> check dimension -> search store

Returns hits in the store's descending-similarity order. An empty list is
a normal outcome meaning no semantic match. Callers that need different
bounds construct another pipeline (or wrap this one) rather than change
an existing instance.
"""

from __future__ import annotations

import structlog

from src.knowledge.embeddings import EmbeddingService
from src.knowledge.errors import ValidationError, ensure_dimensions
from src.knowledge.models import SimilarityResult
from src.knowledge.stores.base import KnowledgeStore

logger = structlog.get_logger(__name__)

SIMILARITY_THRESHOLD = 0.5
MAX_RESULTS = 4


class RetrievalPipeline:
    """Finds stored chunks semantically similar to a query.

    Args:
        store: Knowledge store to search.
        embedder: Embedding service for the query.
        dimensions: The store's fixed embedding dimension.
        threshold: Minimum similarity (exclusive) for a hit.
        limit: Maximum number of hits.
    """

    def __init__(
        self,
        store: KnowledgeStore,
        embedder: EmbeddingService,
        dimensions: int,
        threshold: float = SIMILARITY_THRESHOLD,
        limit: int = MAX_RESULTS,
    ) -> None:
        self._store = store
        self._embedder = embedder
        self._dimensions = dimensions
        self._threshold = threshold
        self._limit = limit

    @property
    def threshold(self) -> float:
        return self._threshold

    @property
    def limit(self) -> int:
        return self._limit

    async def retrieve(self, query: str) -> list[SimilarityResult]:
        """Embed query and return the most similar stored chunks.

        Raises:
            ValidationError: Query is empty or whitespace only (no provider call).
            EmbeddingProviderError: The query could not be embedded.
            DimensionMismatchError: Provider returned a vector of the wrong size.
        """
        if not query or not query.strip():
            raise ValidationError("User query cannot be empty")

        vector = await self._embedder.embed_one(query)
        ensure_dimensions(vector, self._dimensions)

        results = await self._store.search_similar(
            vector, threshold=self._threshold, limit=self._limit
        )
        logger.debug(
            "retrieval.complete",
            query_length=len(query),
            result_count=len(results),
        )
        return results
