"""Process-local knowledge store.

Keeps resources and embedding records in memory and scores them with numpy.
Intended for local development and tests; contents are lost on exit.
Every method body runs without awaiting, so each call is atomic with respect
to other tasks on the same event loop.
"""

from __future__ import annotations

from datetime import datetime, timezone

import numpy as np
import structlog

from src.knowledge.errors import ensure_dimensions
from src.knowledge.models import (
    EmbeddedChunk,
    EmbeddingRecord,
    Resource,
    SimilarityResult,
    new_id,
)
from src.knowledge.stores.base import KnowledgeStore

logger = structlog.get_logger(__name__)


class InMemoryKnowledgeStore(KnowledgeStore):
    """In-memory knowledge store with exact cosine similarity search.

    Args:
        dimensions: Fixed embedding dimension enforced on writes and queries.
    """

    def __init__(self, dimensions: int) -> None:
        self._dimensions = dimensions
        self._resources: dict[str, Resource] = {}
        self._records: list[EmbeddingRecord] = []

    @property
    def resources(self) -> list[Resource]:
        """All stored resources in insertion order."""
        return list(self._resources.values())

    @property
    def records(self) -> list[EmbeddingRecord]:
        """All stored embedding records in insertion order."""
        return list(self._records)

    async def insert_resource(self, content: str) -> Resource:
        now = datetime.now(timezone.utc)
        resource = Resource(id=new_id(), content=content, created_at=now, updated_at=now)
        self._resources[resource.id] = resource
        return resource

    async def insert_embeddings(
        self, resource_id: str, chunks: list[EmbeddedChunk]
    ) -> None:
        if not chunks:
            return

        # Validate the whole batch before appending anything.
        for chunk in chunks:
            ensure_dimensions(chunk.embedding, self._dimensions)

        self._records.extend(
            EmbeddingRecord(
                resource_id=resource_id,
                content=chunk.content,
                embedding=list(chunk.embedding),
            )
            for chunk in chunks
        )
        logger.debug(
            "knowledge_store.embeddings_inserted",
            resource_id=resource_id,
            count=len(chunks),
        )

    async def search_similar(
        self,
        query_embedding: list[float],
        threshold: float,
        limit: int,
    ) -> list[SimilarityResult]:
        ensure_dimensions(query_embedding, self._dimensions)
        if not self._records or limit <= 0:
            return []

        matrix = np.asarray([r.embedding for r in self._records], dtype=np.float64)
        query = np.asarray(query_embedding, dtype=np.float64)

        norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(query)
        dots = matrix @ query
        # Zero-length vectors have no direction; score them as unrelated.
        similarities = np.divide(
            dots, norms, out=np.zeros_like(dots), where=norms != 0
        )

        order = np.argsort(-similarities, kind="stable")
        results: list[SimilarityResult] = []
        for index in order:
            score = float(similarities[index])
            if score <= threshold:
                break
            results.append(
                SimilarityResult(content=self._records[index].content, similarity=score)
            )
            if len(results) >= limit:
                break
        return results
