"""Tests for the LiteLLM-backed embedding service.

litellm.aembedding is patched; no provider is contacted.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from src.knowledge.config import KnowledgeBaseConfig
from src.knowledge.embeddings import EmbeddingService
from src.knowledge.errors import EmbeddingProviderError


def _response(vectors: list[list[float]]) -> MagicMock:
    response = MagicMock()
    response.data = [{"embedding": v, "index": i} for i, v in enumerate(vectors)]
    return response


@pytest.fixture
def service() -> EmbeddingService:
    return EmbeddingService(
        KnowledgeBaseConfig(embedding_model="text-embedding-ada-002", embedding_dimensions=3)
    )


class TestEmbedOne:
    @pytest.mark.asyncio
    async def test_returns_vector(self, service):
        mock = AsyncMock(return_value=_response([[0.1, 0.2, 0.3]]))
        with patch("src.knowledge.embeddings.litellm.aembedding", mock):
            vector = await service.embed_one("hello")

        assert vector == [0.1, 0.2, 0.3]
        mock.assert_awaited_once_with(model="text-embedding-ada-002", input=["hello"])

    @pytest.mark.asyncio
    async def test_literal_backslash_n_becomes_space(self, service):
        mock = AsyncMock(return_value=_response([[0.0, 0.0, 1.0]]))
        with patch("src.knowledge.embeddings.litellm.aembedding", mock):
            await service.embed_one("line one\\nline two")

        assert mock.await_args.kwargs["input"] == ["line one line two"]

    @pytest.mark.asyncio
    async def test_provider_error_is_wrapped_with_cause(self, service):
        cause = ConnectionError("quota exceeded")
        mock = AsyncMock(side_effect=cause)
        with patch("src.knowledge.embeddings.litellm.aembedding", mock):
            with pytest.raises(EmbeddingProviderError) as exc_info:
                await service.embed_one("hello")

        assert exc_info.value.cause is cause
        assert exc_info.value.__cause__ is cause
        assert mock.await_count == 1  # not retried


class TestEmbedMany:
    @pytest.mark.asyncio
    async def test_empty_batch_skips_provider(self, service):
        mock = AsyncMock()
        with patch("src.knowledge.embeddings.litellm.aembedding", mock):
            assert await service.embed_many([]) == []
        mock.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_one_batch_call_preserves_order(self, service):
        vectors = [[1.0, 0.0, 0.0], [0.0, 1.0, 0.0]]
        mock = AsyncMock(return_value=_response(vectors))
        with patch("src.knowledge.embeddings.litellm.aembedding", mock):
            result = await service.embed_many(["first", "second"])

        assert result == vectors
        mock.assert_awaited_once_with(model="text-embedding-ada-002", input=["first", "second"])

    @pytest.mark.asyncio
    async def test_short_response_is_a_provider_error(self, service):
        mock = AsyncMock(return_value=_response([[1.0, 0.0, 0.0]]))
        with patch("src.knowledge.embeddings.litellm.aembedding", mock):
            with pytest.raises(EmbeddingProviderError):
                await service.embed_many(["a", "b"])

    def test_dimensions_from_config(self, service):
        assert service.dimensions == 3
