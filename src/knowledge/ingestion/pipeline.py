"""Resource ingestion pipeline.

Runs four ordered steps:
  validate -> persist resource -> chunk + embed -> persist embeddings

Each step is a discrete unit recorded on an IngestionRun. advance() skips
steps the run has already completed, so a supervising layer can resume a
failed run from the last completed step without inserting the resource a
second time.

The pipeline's contract is "resource row exists with zero or more embedding
rows". A crash between persisting the resource and persisting its
embeddings leaves a resource without embeddings; there is no compensating
rollback. All errors propagate unmodified.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

import structlog
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from src.knowledge.chunker import chunk_text
from src.knowledge.embeddings import EmbeddingService
from src.knowledge.errors import ValidationError
from src.knowledge.models import EmbeddedChunk, NewResourceParams, Resource
from src.knowledge.stores.base import KnowledgeStore

logger = structlog.get_logger(__name__)


class IngestionStep(str, Enum):
    """Ordered steps of an ingestion run."""

    VALIDATE = "validate"
    PERSIST_RESOURCE = "persist_resource"
    EMBED = "embed"
    PERSIST_EMBEDDINGS = "persist_embeddings"


class IngestionRun(BaseModel):
    """Checkpoint state for one ingestion.

    Attributes:
        raw_input: The unvalidated input, e.g. {"content": "..."}.
        params: Validated input, set by the validate step.
        resource: Created resource, set by the persist_resource step.
        chunks: Embedded chunks, set by the embed step.
        completed: Steps finished so far, in order.
    """

    raw_input: Any
    params: NewResourceParams | None = None
    resource: Resource | None = None
    chunks: list[EmbeddedChunk] = Field(default_factory=list)
    completed: list[IngestionStep] = Field(default_factory=list)

    @property
    def is_complete(self) -> bool:
        return IngestionStep.PERSIST_EMBEDDINGS in self.completed

    @property
    def last_completed(self) -> IngestionStep | None:
        return self.completed[-1] if self.completed else None


def parse_resource_input(raw_input: Any) -> NewResourceParams:
    """Validate raw input against the Resource shape.

    Accepts a NewResourceParams, a mapping with a "content" key, or a plain
    string.

    Raises:
        ValidationError: If content is missing, not text, or blank.
    """
    if isinstance(raw_input, NewResourceParams):
        return raw_input
    if isinstance(raw_input, str):
        raw_input = {"content": raw_input}
    try:
        return NewResourceParams.model_validate(raw_input)
    except PydanticValidationError as exc:
        messages = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'input'}: {err['msg']}"
            for err in exc.errors()
        )
        raise ValidationError(f"Invalid resource input: {messages}") from exc


class IngestionPipeline:
    """Validates, persists, chunks, embeds and stores a resource.

    Args:
        store: Knowledge store receiving the resource and its embeddings.
        embedder: Embedding service used for the chunk batch.
    """

    def __init__(self, store: KnowledgeStore, embedder: EmbeddingService) -> None:
        self._store = store
        self._embedder = embedder
        self._steps = {
            IngestionStep.VALIDATE: self._validate,
            IngestionStep.PERSIST_RESOURCE: self._persist_resource,
            IngestionStep.EMBED: self._embed,
            IngestionStep.PERSIST_EMBEDDINGS: self._persist_embeddings,
        }

    async def ingest(self, raw_input: Any) -> None:
        """Run every step for a fresh input.

        Raises:
            ValidationError: Input rejected before any write.
            PersistenceError: Resource or embeddings were not written.
            EmbeddingProviderError: Chunk embedding failed.
        """
        await self.advance(IngestionRun(raw_input=raw_input))

    async def advance(self, run: IngestionRun) -> IngestionRun:
        """Execute the steps of run that have not completed yet, in order.

        The run is updated in place after each step so that a failure leaves
        it checkpointed at the last completed step.
        """
        for step in IngestionStep:
            if step in run.completed:
                continue
            await self._steps[step](run)
            run.completed.append(step)
        return run

    async def _validate(self, run: IngestionRun) -> None:
        run.params = parse_resource_input(run.raw_input)

    async def _persist_resource(self, run: IngestionRun) -> None:
        assert run.params is not None
        run.resource = await self._store.insert_resource(run.params.content)
        logger.info(
            "ingestion.resource_created",
            resource_id=run.resource.id,
            content_length=len(run.params.content),
        )

    async def _embed(self, run: IngestionRun) -> None:
        assert run.resource is not None
        chunks = chunk_text(run.resource.content)
        vectors = await self._embedder.embed_many(chunks)
        run.chunks = [
            EmbeddedChunk(content=content, embedding=vector)
            for content, vector in zip(chunks, vectors, strict=True)
        ]

    async def _persist_embeddings(self, run: IngestionRun) -> None:
        assert run.resource is not None
        await self._store.insert_embeddings(run.resource.id, run.chunks)
        logger.info(
            "ingestion.complete",
            resource_id=run.resource.id,
            chunk_count=len(run.chunks),
        )
