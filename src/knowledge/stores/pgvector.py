"""PostgreSQL + pgvector knowledge store.

Uses raw SQL via asyncpg. Similarity is computed server-side with the
pgvector cosine distance operator (<=>). Embedding batches are written with
a single INSERT ... SELECT FROM unnest(...) statement, so a batch persists
entirely or not at all.

Schema (also provisioned by the alembic migration):
    resources(id, content, created_at, updated_at)
    embeddings(id, resource_id -> resources.id ON DELETE CASCADE,
               content, embedding vector(D))
"""

from __future__ import annotations

from collections.abc import Sequence

import asyncpg
import structlog

from src.knowledge.config import KnowledgeBaseConfig
from src.knowledge.errors import PersistenceError, ensure_dimensions
from src.knowledge.models import EmbeddedChunk, Resource, SimilarityResult, new_id
from src.knowledge.stores.base import KnowledgeStore

logger = structlog.get_logger(__name__)

_INSERT_RESOURCE = """
    INSERT INTO resources (id, content)
    VALUES ($1, $2)
    RETURNING id, content, created_at, updated_at
"""

_INSERT_EMBEDDINGS = """
    INSERT INTO embeddings (id, resource_id, content, embedding)
    SELECT batch.id, $1, batch.content, batch.embedding::vector
    FROM unnest($2::varchar[], $3::text[], $4::text[])
        AS batch(id, content, embedding)
"""

_SEARCH_SIMILAR = """
    SELECT content, similarity
    FROM (
        SELECT content, 1 - (embedding <=> $1::vector) AS similarity
        FROM embeddings
    ) AS scored
    WHERE similarity > $2
    ORDER BY similarity DESC
    LIMIT $3
"""


def to_pgvector(vector: Sequence[float]) -> str:
    """Format a vector as a pgvector text literal, e.g. "[0.1,0.2]"."""
    return "[" + ",".join(str(x) for x in vector) + "]"


class PgVectorKnowledgeStore(KnowledgeStore):
    """Knowledge store backed by PostgreSQL with the pgvector extension.

    Usage:
        store = PgVectorKnowledgeStore(config)
        await store.setup()
        resource = await store.insert_resource("The sky is blue.")
        hits = await store.search_similar(query_vector, threshold=0.5, limit=4)
        await store.close()

    Args:
        config: Knowledge base configuration. database_url may use the
            SQLAlchemy "postgresql+asyncpg://" scheme; it is converted to the
            plain "postgresql://" scheme asyncpg expects.
    """

    def __init__(self, config: KnowledgeBaseConfig) -> None:
        self._database_url = config.database_url.replace(
            "postgresql+asyncpg://", "postgresql://"
        )
        self._dimensions = config.embedding_dimensions
        self._min_size = config.pool_min_size
        self._max_size = config.pool_max_size
        self._pool: asyncpg.Pool | None = None

    async def setup(self) -> None:
        """Create the connection pool and ensure the schema exists."""
        self._pool = await asyncpg.create_pool(
            self._database_url, min_size=self._min_size, max_size=self._max_size
        )

        async with self._pool.acquire() as conn:
            await conn.execute("CREATE EXTENSION IF NOT EXISTS vector")
            await conn.execute("""
                CREATE TABLE IF NOT EXISTS resources (
                    id VARCHAR(191) PRIMARY KEY,
                    content TEXT NOT NULL,
                    created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
                    updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
                )
            """)
            await conn.execute(f"""
                CREATE TABLE IF NOT EXISTS embeddings (
                    id VARCHAR(191) PRIMARY KEY,
                    resource_id VARCHAR(191) NOT NULL
                        REFERENCES resources(id) ON DELETE CASCADE,
                    content TEXT NOT NULL,
                    embedding vector({self._dimensions:d}) NOT NULL
                )
            """)
            await conn.execute("""
                CREATE INDEX IF NOT EXISTS embedding_index
                ON embeddings USING hnsw (embedding vector_cosine_ops)
            """)

        logger.info("knowledge_store.setup_complete", dimensions=self._dimensions)

    @property
    def pool(self) -> asyncpg.Pool:
        """Get the connection pool.

        Raises:
            RuntimeError: If setup() has not been called.
        """
        if self._pool is None:
            raise RuntimeError(
                "PgVectorKnowledgeStore not initialized -- call setup() first"
            )
        return self._pool

    async def insert_resource(self, content: str) -> Resource:
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(_INSERT_RESOURCE, new_id(), content)

        if row is None:
            raise PersistenceError("Failed to insert resource")

        resource = Resource(
            id=row["id"],
            content=row["content"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )
        logger.info("knowledge_store.resource_inserted", resource_id=resource.id)
        return resource

    async def insert_embeddings(
        self, resource_id: str, chunks: list[EmbeddedChunk]
    ) -> None:
        if not chunks:
            return

        for chunk in chunks:
            ensure_dimensions(chunk.embedding, self._dimensions)

        ids = [new_id() for _ in chunks]
        contents = [chunk.content for chunk in chunks]
        vectors = [to_pgvector(chunk.embedding) for chunk in chunks]

        async with self.pool.acquire() as conn:
            await conn.execute(_INSERT_EMBEDDINGS, resource_id, ids, contents, vectors)

        logger.info(
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

        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                _SEARCH_SIMILAR, to_pgvector(query_embedding), threshold, limit
            )

        return [
            SimilarityResult(content=row["content"], similarity=float(row["similarity"]))
            for row in rows
        ]

    async def close(self) -> None:
        """Close the connection pool."""
        if self._pool:
            await self._pool.close()
            self._pool = None
