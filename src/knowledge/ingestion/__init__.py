"""Resource ingestion: validate, persist, chunk, embed, persist embeddings."""

from src.knowledge.ingestion.pipeline import (
    IngestionPipeline,
    IngestionRun,
    IngestionStep,
    parse_resource_input,
)
from src.knowledge.ingestion.workflow import IngestionWorkflow

__all__ = [
    "IngestionPipeline",
    "IngestionRun",
    "IngestionStep",
    "IngestionWorkflow",
    "parse_resource_input",
]
