"""Composition root for the knowledge assistant.

Builds every component from configuration and owns the store lifecycle:

    async with KnowledgeAssistant.from_settings() as assistant:
        await assistant.ingest("The sky is blue. Water is wet.")
        async for chunk in assistant.chat(messages):
            ...

HTTP handlers or CLIs call ingest() and chat(); they never construct
pipelines or stores themselves.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Any

import structlog

from src.assistant.agent.loop import ChatAgent
from src.assistant.agent.messages import StreamChunk, UIMessage
from src.assistant.agent.tools import ToolDispatcher
from src.assistant.config import Settings, get_settings
from src.assistant.logging_config import configure_structlog
from src.assistant.services.llm import LLMService
from src.knowledge.config import KnowledgeBaseConfig
from src.knowledge.embeddings import EmbeddingService
from src.knowledge.ingestion import IngestionPipeline, IngestionWorkflow
from src.knowledge.retrieval import RetrievalPipeline
from src.knowledge.stores import KnowledgeStore, create_store

logger = structlog.get_logger(__name__)


class KnowledgeAssistant:
    """Wires store, embedder, pipelines, tools and agent together.

    Args:
        store: Knowledge store handle (opened by start()).
        ingestion: Ingestion entry point (workflow or bare pipeline).
        retrieval: Retrieval pipeline.
        agent: Chat agent offering the knowledge base tools.
        settings: Application settings used to configure logging on entry.
            Falls back to get_settings() when omitted.
    """

    def __init__(
        self,
        store: KnowledgeStore,
        ingestion: IngestionWorkflow | IngestionPipeline,
        retrieval: RetrievalPipeline,
        agent: ChatAgent,
        settings: Settings | None = None,
    ) -> None:
        self.store = store
        self.ingestion = ingestion
        self.retrieval = retrieval
        self.agent = agent
        self._settings = settings

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        knowledge_config: KnowledgeBaseConfig | None = None,
        store: KnowledgeStore | None = None,
        llm: LLMService | None = None,
    ) -> KnowledgeAssistant:
        """Build an assistant from configuration.

        store and llm may be supplied to override the configured backends.
        """
        settings = settings or get_settings()
        config = knowledge_config or KnowledgeBaseConfig()

        store = store or create_store(config)
        embedder = EmbeddingService(config)

        pipeline = IngestionPipeline(store=store, embedder=embedder)
        ingestion = IngestionWorkflow(
            pipeline,
            max_attempts=config.ingest_max_attempts,
            wait_seconds=config.ingest_retry_wait_seconds,
        )
        retrieval = RetrievalPipeline(
            store=store,
            embedder=embedder,
            dimensions=config.embedding_dimensions,
            threshold=config.similarity_threshold,
            limit=config.max_results,
        )
        dispatcher = ToolDispatcher(
            ingestion=ingestion,
            retrieval=retrieval,
            relevance_threshold=config.similarity_threshold,
        )
        agent = ChatAgent(
            llm=llm or LLMService(settings),
            dispatcher=dispatcher,
            max_steps=settings.AGENT_MAX_STEPS,
            buffer_size=settings.STREAM_BUFFER_SIZE,
        )
        return cls(
            store=store,
            ingestion=ingestion,
            retrieval=retrieval,
            agent=agent,
            settings=settings,
        )

    async def start(self) -> None:
        """Open the knowledge store."""
        await self.store.setup()
        logger.info("assistant.started", store=type(self.store).__name__)

    async def stop(self) -> None:
        """Close the knowledge store."""
        await self.store.close()
        logger.info("assistant.stopped")

    async def __aenter__(self) -> KnowledgeAssistant:
        configure_structlog(self._settings)
        await self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.stop()

    async def ingest(self, raw_input: Any) -> None:
        """Ingest a resource outside of a conversation."""
        await self.ingestion.ingest(raw_input)

    def chat(self, messages: list[UIMessage]) -> AsyncIterator[StreamChunk]:
        """Stream one conversation turn."""
        return self.agent.stream(messages)
