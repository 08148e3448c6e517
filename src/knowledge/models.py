"""Pydantic models for the knowledge base domain.

Defines the types that flow between chunking, embedding, storage and
retrieval. Resource and EmbeddingRecord mirror the persisted tables;
SimilarityResult is produced fresh per query and never stored.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from pydantic import BaseModel, Field, field_validator


def new_id() -> str:
    """Generate an opaque unique identifier."""
    return str(uuid.uuid4())


# ── Resource ────────────────────────────────────────────────────────────────


class NewResourceParams(BaseModel):
    """Input shape for creating a Resource.

    id and timestamps are assigned by the store, so only content is accepted.
    """

    content: str = Field(min_length=1)

    @field_validator("content")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("content must not be blank")
        return value


class Resource(BaseModel):
    """A user-submitted unit of knowledge. Immutable once created.

    Attributes:
        id: Opaque unique identifier.
        content: Full submitted text, the source of truth for provenance.
        created_at: Set by the store on write.
        updated_at: Set by the store on write.
    """

    model_config = {"frozen": True}

    id: str
    content: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


# ── Embeddings ──────────────────────────────────────────────────────────────


class EmbeddedChunk(BaseModel):
    """A chunk of text paired with its vector, ready to be persisted."""

    content: str
    embedding: list[float]


class EmbeddingRecord(BaseModel):
    """One retrievable unit: a chunk of a Resource plus its vector.

    Attributes:
        id: Opaque unique identifier.
        resource_id: Owning Resource.
        content: The exact chunk text this vector represents.
        embedding: Fixed-length vector (dimension set by the embedding model).
    """

    model_config = {"frozen": True}

    id: str = Field(default_factory=new_id)
    resource_id: str
    content: str
    embedding: list[float]


# ── Search ──────────────────────────────────────────────────────────────────


class SimilarityResult(BaseModel):
    """A single search hit.

    Attributes:
        content: Text of the matched embedding record.
        similarity: 1 - cosine distance; higher is more relevant.
    """

    content: str
    similarity: float
