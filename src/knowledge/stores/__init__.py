"""Knowledge store backends.

- KnowledgeStore: abstract interface consumed by the pipelines
- PgVectorKnowledgeStore: PostgreSQL + pgvector via asyncpg
- InMemoryKnowledgeStore: process-local store for development and tests
- create_store: build the backend selected by configuration
"""

from __future__ import annotations

from src.knowledge.config import KnowledgeBaseConfig
from src.knowledge.stores.base import KnowledgeStore
from src.knowledge.stores.memory import InMemoryKnowledgeStore
from src.knowledge.stores.pgvector import PgVectorKnowledgeStore


def create_store(config: KnowledgeBaseConfig) -> KnowledgeStore:
    """Build the store backend named by config.store_backend."""
    if config.store_backend == "memory":
        return InMemoryKnowledgeStore(dimensions=config.embedding_dimensions)
    return PgVectorKnowledgeStore(config)


__all__ = [
    "InMemoryKnowledgeStore",
    "KnowledgeStore",
    "PgVectorKnowledgeStore",
    "create_store",
]
