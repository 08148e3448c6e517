"""Supervising workflow for resource ingestion.

Wraps IngestionPipeline with tenacity retry + exponential backoff. Only
transient provider failures (EmbeddingProviderError) are retried, and each
retry resumes the same IngestionRun from its last completed step, so the
resource row is never inserted twice for one call. Validation, persistence
and dimension errors propagate on the first occurrence.
"""

from __future__ import annotations

from typing import Any

import structlog
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from src.knowledge.errors import EmbeddingProviderError
from src.knowledge.ingestion.pipeline import IngestionPipeline, IngestionRun

logger = structlog.get_logger(__name__)


class IngestionWorkflow:
    """Retries an ingestion run from its last completed step.

    Exposes the same ingest() entry point as IngestionPipeline.

    Args:
        pipeline: The pipeline whose steps are executed.
        max_attempts: Total attempts per ingest call (1 disables retries).
        wait_seconds: Base wait for exponential backoff between attempts.
    """

    def __init__(
        self,
        pipeline: IngestionPipeline,
        max_attempts: int = 3,
        wait_seconds: float = 1.0,
    ) -> None:
        self._pipeline = pipeline
        self._max_attempts = max(1, max_attempts)
        self._wait_seconds = wait_seconds

    async def ingest(self, raw_input: Any) -> None:
        await self.run(IngestionRun(raw_input=raw_input))

    async def run(self, run: IngestionRun) -> IngestionRun:
        """Advance run to completion, retrying transient provider failures."""
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self._max_attempts),
            wait=wait_exponential(multiplier=self._wait_seconds, max=30),
            retry=retry_if_exception_type(EmbeddingProviderError),
            before_sleep=lambda state: _log_retry(state, run),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                await self._pipeline.advance(run)
        return run


def _log_retry(state: RetryCallState, run: IngestionRun) -> None:
    exc = state.outcome.exception() if state.outcome else None
    logger.warning(
        "ingestion.retrying",
        attempt=state.attempt_number,
        resume_after=run.last_completed.value if run.last_completed else None,
        resource_id=run.resource.id if run.resource else None,
        error=str(exc),
    )
