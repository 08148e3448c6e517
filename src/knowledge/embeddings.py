"""Embedding service for dense vector generation.

Uses LiteLLM for provider-agnostic embedding calls. Provider failures are
wrapped in EmbeddingProviderError with the original exception attached;
nothing is retried here, retry policy belongs to the caller.
"""

from __future__ import annotations

import litellm
import structlog

from src.knowledge.config import KnowledgeBaseConfig
from src.knowledge.errors import EmbeddingProviderError

logger = structlog.get_logger(__name__)


class EmbeddingService:
    """Generates embeddings for single texts and batches.

    Args:
        config: Knowledge base configuration with the embedding model name.
    """

    def __init__(self, config: KnowledgeBaseConfig) -> None:
        self._model = config.embedding_model
        self._dimensions = config.embedding_dimensions

    @property
    def dimensions(self) -> int:
        """Configured output dimensionality of the embedding model."""
        return self._dimensions

    async def embed_one(self, text: str) -> list[float]:
        """Embed a single text.

        Literal backslash-n sequences (escaped newlines that survived as
        text) are replaced with spaces before the provider call.

        Args:
            text: Input text to embed.

        Returns:
            The embedding vector.

        Raises:
            EmbeddingProviderError: If the provider call fails.
        """
        value = text.replace("\\n", " ")
        vectors = await self._embed([value])
        return vectors[0]

    async def embed_many(self, texts: list[str]) -> list[list[float]]:
        """Embed a batch of texts in a single provider request.

        Args:
            texts: Input texts to embed.

        Returns:
            One vector per input text, in input order. An empty batch
            returns an empty list without calling the provider.

        Raises:
            EmbeddingProviderError: If the provider call fails.
        """
        if not texts:
            return []
        return await self._embed(texts)

    async def _embed(self, texts: list[str]) -> list[list[float]]:
        try:
            response = await litellm.aembedding(model=self._model, input=texts)
        except Exception as exc:
            logger.warning(
                "embedding.provider_failed",
                model=self._model,
                batch_size=len(texts),
                error=str(exc),
            )
            raise EmbeddingProviderError(
                f"Embedding provider call failed: {exc}", cause=exc
            ) from exc

        vectors = [item["embedding"] for item in response.data]
        if len(vectors) != len(texts):
            raise EmbeddingProviderError(
                f"Embedding provider returned {len(vectors)} vectors "
                f"for {len(texts)} inputs"
            )
        return vectors
