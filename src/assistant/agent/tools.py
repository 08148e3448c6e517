"""Knowledge base tools exposed to the chat agent.

Two tools form a closed set:
- add_resource: store new information in the knowledge base
- get_information: search the knowledge base for relevant content

ToolDispatcher is the no-throw boundary between the pipelines and the
agent. The model can only react to returned text, never to Python
exceptions, so every failure (bad arguments, validation, provider,
dimension, persistence) becomes a ToolOutcome with success=False.
Cancellation is not caught and still propagates.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

import structlog
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from src.knowledge.errors import ValidationError
from src.knowledge.ingestion import IngestionPipeline, IngestionWorkflow
from src.knowledge.models import SimilarityResult
from src.knowledge.retrieval import SIMILARITY_THRESHOLD, RetrievalPipeline

logger = structlog.get_logger(__name__)

MIN_CONTENT_LENGTH = 3
MAX_CONTENT_LENGTH = 10000
PREVIEW_LENGTH = 100


class ToolName(str, Enum):
    ADD_RESOURCE = "add_resource"
    GET_INFORMATION = "get_information"


# ── Input schemas ───────────────────────────────────────────────────────────


class AddResourceInput(BaseModel):
    content: str = Field(
        min_length=MIN_CONTENT_LENGTH,
        max_length=MAX_CONTENT_LENGTH,
        description=(
            "The information to add to the knowledge base. "
            "Should be clear, factual, and well-structured."
        ),
    )


class GetInformationInput(BaseModel):
    question: str = Field(
        min_length=1,
        description=(
            "The user's question or search query. "
            "Be specific and include key terms for best results."
        ),
    )


@dataclass(frozen=True)
class ToolDefinition:
    """A named, schema-typed capability offered to the model."""

    name: ToolName
    description: str
    input_model: type[BaseModel]

    def to_openai(self) -> dict:
        """Render as an OpenAI-style function tool definition."""
        return {
            "type": "function",
            "function": {
                "name": self.name.value,
                "description": self.description,
                "parameters": self.input_model.model_json_schema(),
            },
        }


ADD_RESOURCE_TOOL = ToolDefinition(
    name=ToolName.ADD_RESOURCE,
    description=f"""Add new information to the knowledge base.

Use this tool when:
- User explicitly shares information to remember
- User provides documentation, facts, or procedures
- User says "remember this" or similar phrases
- User shares specific knowledge unprompted

Content should be:
- Factual and clear
- Between {MIN_CONTENT_LENGTH} and {MAX_CONTENT_LENGTH} characters
- Well-formatted for future retrieval""",
    input_model=AddResourceInput,
)

GET_INFORMATION_TOOL = ToolDefinition(
    name=ToolName.GET_INFORMATION,
    description=f"""Search the knowledge base for relevant information.

Use this tool:
- BEFORE answering any factual question
- When user asks about specific topics
- To verify information exists before responding
- Multiple times if the initial query needs refinement

The tool returns relevant content with similarity scores (0-1, higher is better).
Results with similarity > {SIMILARITY_THRESHOLD} are considered relevant.""",
    input_model=GetInformationInput,
)

TOOLS: dict[ToolName, ToolDefinition] = {
    ToolName.ADD_RESOURCE: ADD_RESOURCE_TOOL,
    ToolName.GET_INFORMATION: GET_INFORMATION_TOOL,
}


# ── Outcome ─────────────────────────────────────────────────────────────────


class ToolOutcome(BaseModel):
    """Normalized result of a tool execution.

    On success, data holds a message or a list of similarity results.
    On failure, error holds a human-readable message.
    """

    success: bool
    data: Union[str, list[SimilarityResult], None] = None
    error: str | None = None

    @classmethod
    def ok(cls, data: str | list[SimilarityResult]) -> ToolOutcome:
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str) -> ToolOutcome:
        return cls(success=False, error=error)

    def model_output(self) -> str | list[dict]:
        """The value handed back to the model: data on success, error otherwise."""
        if not self.success:
            return self.error or ""
        if isinstance(self.data, list):
            return [result.model_dump() for result in self.data]
        return self.data or ""

    def to_message_content(self) -> str:
        """model_output() serialized for a tool message."""
        output = self.model_output()
        return output if isinstance(output, str) else json.dumps(output)


def _describe(exc: BaseException) -> str:
    return str(exc) or "Unknown error occurred"


def _validate(model: type[BaseModel], data: dict) -> Any:
    try:
        return model.model_validate(data)
    except PydanticValidationError as exc:
        messages = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
        raise ValidationError(messages) from exc


def parse_arguments(arguments: str | dict | None) -> dict:
    """Decode tool-call arguments as delivered by the model.

    Raises:
        ValidationError: Arguments are not a JSON object.
    """
    if arguments is None or arguments == "":
        return {}
    if isinstance(arguments, dict):
        return arguments
    try:
        decoded = json.loads(arguments)
    except json.JSONDecodeError as exc:
        raise ValidationError(f"Tool arguments are not valid JSON: {exc.msg}") from exc
    if not isinstance(decoded, dict):
        raise ValidationError("Tool arguments must be a JSON object")
    return decoded


# ── Dispatcher ──────────────────────────────────────────────────────────────


class ToolDispatcher:
    """Executes knowledge base tools and normalizes their outcomes.

    Args:
        ingestion: Pipeline or supervising workflow used by add_resource.
        retrieval: Pipeline used by get_information.
        relevance_threshold: Minimum similarity for a result to be reported
            as relevant.
    """

    def __init__(
        self,
        ingestion: IngestionPipeline | IngestionWorkflow,
        retrieval: RetrievalPipeline,
        relevance_threshold: float = SIMILARITY_THRESHOLD,
    ) -> None:
        self._ingestion = ingestion
        self._retrieval = retrieval
        self._relevance_threshold = relevance_threshold

    @property
    def definitions(self) -> list[dict]:
        """Tool definitions in the provider's function-calling format."""
        return [tool.to_openai() for tool in TOOLS.values()]

    async def execute(self, name: str, arguments: str | dict | None) -> ToolOutcome:
        """Run the tool called name with raw model arguments."""
        try:
            tool = ToolName(name)
        except ValueError:
            logger.warning("tool.unknown", tool_name=name)
            return ToolOutcome.fail(f"Unknown tool: {name}")

        try:
            args = parse_arguments(arguments)
        except ValidationError as exc:
            logger.warning("tool.invalid_arguments", tool_name=name, error=str(exc))
            return ToolOutcome.fail(f"Invalid arguments for {name}: {exc}")

        if tool is ToolName.ADD_RESOURCE:
            return await self.add_resource(args.get("content"))
        return await self.get_information(args.get("question"))

    async def add_resource(self, content: Any) -> ToolOutcome:
        """Store content; on success the confirmation includes a short preview."""
        try:
            params = _validate(AddResourceInput, {"content": content})
            logger.info("tool.add_resource", content_length=len(params.content))

            await self._ingestion.ingest({"content": params.content})

            summary = (
                f"{params.content[:PREVIEW_LENGTH - 3]}..."
                if len(params.content) > PREVIEW_LENGTH
                else params.content
            )
            logger.info("tool.add_resource_complete")
            return ToolOutcome.ok(f'✓ Successfully added to knowledge base: "{summary}"')
        except Exception as exc:
            logger.error("tool.add_resource_failed", error=_describe(exc), exc_info=True)
            return ToolOutcome.fail(f"Failed to add resource: {_describe(exc)}")

    async def get_information(self, question: Any) -> ToolOutcome:
        """Search the knowledge base and report relevant results or why there are none."""
        try:
            params = _validate(GetInformationInput, {"question": question})
            logger.info("tool.get_information", question=params.question)

            results = await self._retrieval.retrieve(params.question)

            logger.info(
                "tool.get_information_results",
                result_count=len(results),
                results=[
                    {"similarity": f"{r.similarity:.3f}", "preview": r.content[:50]}
                    for r in results
                ],
            )

            if not results:
                return ToolOutcome.ok("No relevant information found in the knowledge base.")

            relevant = [r for r in results if r.similarity >= self._relevance_threshold]
            if not relevant:
                closest = max(r.similarity for r in results)
                return ToolOutcome.ok(
                    f"Found {len(results)} results but none met the relevance "
                    f"threshold ({self._relevance_threshold}). "
                    f"The closest match had similarity {closest:.2f}."
                )

            return ToolOutcome.ok(relevant)
        except Exception as exc:
            logger.error("tool.get_information_failed", error=_describe(exc), exc_info=True)
            return ToolOutcome.fail(f"Failed to search knowledge base: {_describe(exc)}")
