"""Knowledge store abstract base class.

Every store backend (pgvector, in-memory) implements this ABC. A store is an
explicitly constructed handle: setup() at process start, close() at
shutdown, injected into the pipelines that use it.

The store is the only shared mutable resource. It must tolerate concurrent
readers and writers; any locking or read-your-writes discipline comes from
the backend's own transaction guarantees.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from src.knowledge.models import EmbeddedChunk, Resource, SimilarityResult


class KnowledgeStore(ABC):
    """Abstract interface for resource and embedding persistence.

    Methods:
        setup: Open connections / prepare storage.
        close: Release connections.
        insert_resource: Atomically create one Resource.
        insert_embeddings: Bulk-write a Resource's embedded chunks.
        search_similar: Cosine-similarity search with threshold and limit.
    """

    async def setup(self) -> None:
        """Prepare the store for use. No-op by default."""

    async def close(self) -> None:
        """Release store resources. No-op by default."""

    @abstractmethod
    async def insert_resource(self, content: str) -> Resource:
        """Create a Resource row.

        Raises:
            PersistenceError: If the write did not return a created row.
        """
        ...

    @abstractmethod
    async def insert_embeddings(
        self, resource_id: str, chunks: list[EmbeddedChunk]
    ) -> None:
        """Persist all chunks for a resource as one batch.

        Returns immediately without touching storage when chunks is empty.
        Either the whole batch persists or none of it does.
        """
        ...

    @abstractmethod
    async def search_similar(
        self,
        query_embedding: list[float],
        threshold: float,
        limit: int,
    ) -> list[SimilarityResult]:
        """Return records with similarity > threshold, best first, at most limit.

        similarity = 1 - cosine_distance(stored, query).

        Raises:
            DimensionMismatchError: If query_embedding has the wrong dimension.
        """
        ...
