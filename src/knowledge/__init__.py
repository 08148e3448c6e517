"""Knowledge base: chunking, embedding, vector storage and retrieval.

Provides the ingestion pipeline (validate -> persist -> chunk/embed ->
persist embeddings), the retrieval pipeline (embed -> cosine search with
threshold and limit), and the store backends they run against.
"""

from src.knowledge.chunker import chunk_text
from src.knowledge.config import KnowledgeBaseConfig
from src.knowledge.embeddings import EmbeddingService
from src.knowledge.errors import (
    DimensionMismatchError,
    EmbeddingProviderError,
    KnowledgeBaseError,
    PersistenceError,
    ValidationError,
)
from src.knowledge.ingestion import IngestionPipeline, IngestionWorkflow
from src.knowledge.models import (
    EmbeddedChunk,
    EmbeddingRecord,
    NewResourceParams,
    Resource,
    SimilarityResult,
)
from src.knowledge.retrieval import RetrievalPipeline
from src.knowledge.stores import KnowledgeStore, create_store

__all__ = [
    "DimensionMismatchError",
    "EmbeddedChunk",
    "EmbeddingProviderError",
    "EmbeddingRecord",
    "EmbeddingService",
    "IngestionPipeline",
    "IngestionWorkflow",
    "KnowledgeBaseConfig",
    "KnowledgeBaseError",
    "KnowledgeStore",
    "NewResourceParams",
    "PersistenceError",
    "Resource",
    "RetrievalPipeline",
    "SimilarityResult",
    "ValidationError",
    "chunk_text",
    "create_store",
]
