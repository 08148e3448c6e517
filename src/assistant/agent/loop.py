"""Streaming chat agent with knowledge base tools.

One turn runs as a loop of model rounds:

  stream model output -> (tool calls?) -> dispatch each in order -> repeat
                      -> (no tool calls) -> finish

Text deltas are forwarded as they arrive. Tool-call fragments are
accumulated until the round's stream ends; the completed calls are then
executed sequentially through the ToolDispatcher and their results are
appended to the model context before the next round starts.

stream() delivers chunks through a bounded queue: when the consumer is
slow the producer waits instead of buffering without limit. Closing or
cancelling the consumer cancels the producer and whatever provider or
store call it is awaiting. Work already persisted is not rolled back.
"""

from __future__ import annotations

import asyncio
import contextlib
import uuid
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass

import structlog

from src.assistant.agent.messages import (
    FinishChunk,
    StreamChunk,
    TextDeltaChunk,
    ToolCallChunk,
    ToolResultChunk,
    UIMessage,
    convert_to_model_messages,
)
from src.assistant.agent.prompts import SYSTEM_PROMPT
from src.assistant.agent.tools import ToolDispatcher, parse_arguments
from src.assistant.services.llm import LLMService
from src.knowledge.errors import ValidationError

logger = structlog.get_logger(__name__)

Emit = Callable[[StreamChunk], Awaitable[None]]


@dataclass
class PendingToolCall:
    """A tool call assembled from streamed fragments."""

    id: str = ""
    name: str = ""
    arguments: str = ""

    def to_message(self) -> dict:
        return {
            "id": self.id,
            "type": "function",
            "function": {"name": self.name, "arguments": self.arguments or "{}"},
        }


@dataclass
class _Failure:
    error: Exception


_END = object()


class ChatAgent:
    """Drives one conversation turn against the LLM with tool dispatch.

    Args:
        llm: Streaming LLM service.
        dispatcher: Executes add_resource / get_information calls.
        system_prompt: Prepended to every turn's context.
        max_steps: Maximum model rounds per turn.
        buffer_size: Chunks buffered by stream() before production pauses.
    """

    def __init__(
        self,
        llm: LLMService,
        dispatcher: ToolDispatcher,
        system_prompt: str = SYSTEM_PROMPT,
        max_steps: int = 10,
        buffer_size: int = 16,
    ) -> None:
        self._llm = llm
        self._dispatcher = dispatcher
        self._system_prompt = system_prompt
        self._max_steps = max_steps
        self._buffer_size = buffer_size

    async def stream(self, messages: list[UIMessage]) -> AsyncIterator[StreamChunk]:
        """Run a turn and yield its chunks as they are produced.

        Errors raised during the turn are re-raised here, after every chunk
        produced before the failure has been yielded.
        """
        queue: asyncio.Queue = asyncio.Queue(maxsize=self._buffer_size)
        producer = asyncio.create_task(self._produce(messages, queue))
        try:
            while True:
                item = await queue.get()
                if item is _END:
                    break
                if isinstance(item, _Failure):
                    raise item.error
                yield item
        finally:
            if not producer.done():
                producer.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await producer

    async def _produce(self, messages: list[UIMessage], queue: asyncio.Queue) -> None:
        try:
            await self.run_turn(messages, queue.put)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            await queue.put(_Failure(exc))
            return
        await queue.put(_END)

    async def run_turn(self, messages: list[UIMessage], emit: Emit) -> None:
        """Run a turn, pushing each chunk to emit as soon as it exists."""
        logger.info("agent.turn_started", message_count=len(messages))

        context = convert_to_model_messages(messages, self._system_prompt)
        tools = self._dispatcher.definitions

        try:
            for step in range(1, self._max_steps + 1):
                text, tool_calls, finish_reason = await self._stream_step(
                    context, tools, emit
                )
                if not tool_calls:
                    await emit(FinishChunk(finish_reason=finish_reason or "stop"))
                    logger.info("agent.turn_completed", steps=step)
                    return

                context.append({
                    "role": "assistant",
                    "content": text or None,
                    "tool_calls": [call.to_message() for call in tool_calls],
                })
                for call in tool_calls:
                    await self._dispatch(call, context, emit)
        except Exception:
            logger.error("agent.turn_failed", exc_info=True)
            raise

        logger.warning("agent.max_steps_reached", max_steps=self._max_steps)
        await emit(FinishChunk(finish_reason="max_steps"))

    async def _stream_step(
        self, context: list[dict], tools: list[dict], emit: Emit
    ) -> tuple[str, list[PendingToolCall], str | None]:
        """Stream one model round. Returns (text, tool calls, finish reason)."""
        text_parts: list[str] = []
        calls: list[PendingToolCall] = []
        by_index: dict[int, PendingToolCall] = {}
        finish_reason: str | None = None

        async for chunk in self._llm.stream_completion(context, tools=tools):
            if not chunk.choices:
                continue
            choice = chunk.choices[0]
            delta = choice.delta

            content = getattr(delta, "content", None)
            if content:
                text_parts.append(content)
                await emit(TextDeltaChunk(delta=content))

            for fragment in getattr(delta, "tool_calls", None) or []:
                index = getattr(fragment, "index", None)
                call_id = getattr(fragment, "id", None)
                if index is not None:
                    call = by_index.get(index)
                else:
                    call = calls[-1] if calls else None
                # A different id starts a new call even at a reused or missing index.
                if call is None or (call_id and call.id and call_id != call.id):
                    call = PendingToolCall()
                    calls.append(call)
                    if index is not None:
                        by_index[index] = call
                if call_id:
                    call.id = call_id
                function = getattr(fragment, "function", None)
                if function is not None:
                    if getattr(function, "name", None):
                        call.name = function.name
                    if getattr(function, "arguments", None):
                        call.arguments += function.arguments

            if getattr(choice, "finish_reason", None):
                finish_reason = choice.finish_reason

        for call in calls:
            if not call.id:
                call.id = f"call_{uuid.uuid4().hex[:24]}"
        return "".join(text_parts), calls, finish_reason

    async def _dispatch(
        self, call: PendingToolCall, context: list[dict], emit: Emit
    ) -> None:
        try:
            tool_input = parse_arguments(call.arguments)
        except ValidationError:
            tool_input = {}
        await emit(
            ToolCallChunk(tool_call_id=call.id, tool_name=call.name, input=tool_input)
        )

        outcome = await self._dispatcher.execute(call.name, call.arguments)

        await emit(
            ToolResultChunk(
                tool_call_id=call.id,
                tool_name=call.name,
                success=outcome.success,
                output=outcome.model_output(),
            )
        )
        context.append({
            "role": "tool",
            "tool_call_id": call.id,
            "content": outcome.to_message_content(),
        })
