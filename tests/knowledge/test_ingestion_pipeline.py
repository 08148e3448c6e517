"""Tests for the resource ingestion pipeline."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from src.knowledge.errors import (
    DimensionMismatchError,
    EmbeddingProviderError,
    PersistenceError,
    ValidationError,
)
from src.knowledge.ingestion import (
    IngestionPipeline,
    IngestionRun,
    IngestionStep,
    parse_resource_input,
)
from src.knowledge.models import NewResourceParams


class TestParseResourceInput:
    def test_accepts_mapping(self):
        assert parse_resource_input({"content": "fact"}).content == "fact"

    def test_accepts_plain_string(self):
        assert parse_resource_input("fact").content == "fact"

    def test_passes_through_params(self):
        params = NewResourceParams(content="fact")
        assert parse_resource_input(params) is params

    @pytest.mark.parametrize(
        "raw",
        [{}, {"content": ""}, {"content": "   \n"}, {"content": 42}, None, ""],
    )
    def test_rejects_bad_input(self, raw):
        with pytest.raises(ValidationError, match="Invalid resource input"):
            parse_resource_input(raw)


class TestIngest:
    @pytest.mark.asyncio
    async def test_one_resource_and_one_record_per_chunk(self, ingestion, store):
        await ingestion.ingest({"content": "The sky is blue. Water is wet."})

        assert len(store.resources) == 1
        resource = store.resources[0]
        assert resource.content == "The sky is blue. Water is wet."
        assert [r.content for r in store.records] == ["The sky is blue", "Water is wet"]
        assert all(r.resource_id == resource.id for r in store.records)

    @pytest.mark.asyncio
    async def test_chunks_embedded_in_one_batch(self, ingestion, embedder):
        await ingestion.ingest({"content": "One. Two.\nThree"})
        assert embedder.many_calls == [["One", "Two", "Three"]]

    @pytest.mark.asyncio
    async def test_delimiter_only_content_stores_resource_without_embeddings(
        self, ingestion, store, embedder
    ):
        await ingestion.ingest({"content": "..."})

        assert len(store.resources) == 1
        assert store.records == []
        assert embedder.many_calls == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("raw", [{"content": ""}, {"content": "  "}, {}])
    async def test_validation_failure_writes_nothing(self, ingestion, store, embedder, raw):
        with pytest.raises(ValidationError):
            await ingestion.ingest(raw)
        assert store.resources == []
        assert store.records == []
        assert embedder.many_calls == []

    @pytest.mark.asyncio
    async def test_resource_write_failure_skips_embedding(self, ingestion, store, embedder):
        store.insert_resource = AsyncMock(side_effect=PersistenceError("write failed"))

        with pytest.raises(PersistenceError, match="write failed"):
            await ingestion.ingest({"content": "The sky is blue."})
        assert embedder.many_calls == []
        assert store.records == []

    @pytest.mark.asyncio
    async def test_provider_failure_leaves_resource_without_embeddings(
        self, ingestion, store, embedder
    ):
        embedder.failures.append(EmbeddingProviderError("provider down"))

        with pytest.raises(EmbeddingProviderError):
            await ingestion.ingest({"content": "The sky is blue."})
        assert len(store.resources) == 1
        assert store.records == []

    @pytest.mark.asyncio
    async def test_wrong_dimension_from_provider_rejected(self, store, make_embedder):
        pipeline = IngestionPipeline(
            store=store, embedder=make_embedder(vectors={"Short": [1.0, 2.0]})
        )
        with pytest.raises(DimensionMismatchError):
            await pipeline.ingest({"content": "Short. Normal chunk"})
        assert store.records == []


class TestAdvance:
    @pytest.mark.asyncio
    async def test_run_checkpoints_each_step(self, ingestion):
        run = await ingestion.advance(IngestionRun(raw_input={"content": "A. B"}))

        assert run.completed == list(IngestionStep)
        assert run.is_complete
        assert run.last_completed is IngestionStep.PERSIST_EMBEDDINGS
        assert [c.content for c in run.chunks] == ["A", "B"]

    @pytest.mark.asyncio
    async def test_resume_does_not_duplicate_resource(self, ingestion, store, embedder):
        embedder.failures.append(EmbeddingProviderError("provider down"))
        run = IngestionRun(raw_input={"content": "The sky is blue. Water is wet."})

        with pytest.raises(EmbeddingProviderError):
            await ingestion.advance(run)
        assert run.completed == [IngestionStep.VALIDATE, IngestionStep.PERSIST_RESOURCE]
        assert not run.is_complete

        await ingestion.advance(run)

        assert len(store.resources) == 1
        assert len(store.records) == 2
        assert {r.resource_id for r in store.records} == {run.resource.id}

    @pytest.mark.asyncio
    async def test_completed_run_is_noop(self, ingestion, store):
        run = await ingestion.advance(IngestionRun(raw_input="The sky is blue."))
        await ingestion.advance(run)
        assert len(store.resources) == 1
        assert len(store.records) == 1
