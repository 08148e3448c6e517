"""Error taxonomy for the knowledge base.

Pipelines (ingestion, retrieval) let these propagate unmodified. The tool
dispatcher is the only place that converts them into failure outcomes.
"""

from __future__ import annotations

from collections.abc import Sequence


class KnowledgeBaseError(Exception):
    """Base class for all knowledge base errors."""


class ValidationError(KnowledgeBaseError):
    """Input is malformed or out of bounds (empty content, empty query, bad length)."""


class EmbeddingProviderError(KnowledgeBaseError):
    """The embedding provider call failed.

    Attributes:
        cause: The original provider exception.
    """

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class DimensionMismatchError(KnowledgeBaseError):
    """A vector does not have the store's fixed embedding dimension.

    Never coerced: no truncation or padding is attempted.
    """

    def __init__(self, expected: int, actual: int) -> None:
        super().__init__(
            f"Invalid embedding dimensions: expected {expected}, got {actual}"
        )
        self.expected = expected
        self.actual = actual


class PersistenceError(KnowledgeBaseError):
    """A store write did not complete as expected."""


def ensure_dimensions(vector: Sequence[float], expected: int) -> None:
    """Raise DimensionMismatchError unless len(vector) == expected."""
    if len(vector) != expected:
        raise DimensionMismatchError(expected=expected, actual=len(vector))
