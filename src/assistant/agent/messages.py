"""Conversation message types.

Input: UIMessage, the client-side message shape (role plus typed parts).
Output: StreamChunk variants emitted by the agent loop, one per event, in
the order the caller should render them.
"""

from __future__ import annotations

import json
import uuid
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

TOOL_PART_PREFIX = "tool-"

# ── Input ───────────────────────────────────────────────────────────────────


class MessagePart(BaseModel):
    """One part of a UI message.

    "text" parts carry text. "tool-<name>" parts record a tool call from an
    earlier turn: toolCallId, input, and either output or errorText once
    the call has finished. Other part types are ignored.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    type: str = "text"
    text: str | None = None
    tool_call_id: str | None = Field(default=None, alias="toolCallId")
    input: Any = None
    output: Any = None
    error_text: str | None = Field(default=None, alias="errorText")

    @property
    def tool_name(self) -> str | None:
        if self.type.startswith(TOOL_PART_PREFIX):
            return self.type[len(TOOL_PART_PREFIX):]
        return None

    @property
    def has_result(self) -> bool:
        return self.output is not None or self.error_text is not None


class UIMessage(BaseModel):
    """A message from the conversation history as sent by the client.

    Either parts or content may carry the text; parts win when both are set.
    """

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    role: Literal["system", "user", "assistant"]
    parts: list[MessagePart] = Field(default_factory=list)
    content: str | None = None

    @property
    def text(self) -> str:
        if self.parts:
            return "".join(
                part.text for part in self.parts if part.type == "text" and part.text
            )
        return self.content or ""


def _tool_result_content(part: MessagePart) -> str:
    value = part.output if part.output is not None else part.error_text
    return value if isinstance(value, str) else json.dumps(value)


def _assistant_messages(message: UIMessage) -> list[dict]:
    """Split an assistant message into provider messages.

    Text before a group of finished tool calls becomes the content of the
    assistant message carrying those calls; each call is followed by its
    tool result. Calls without a result are dropped, since providers reject
    a tool call with no matching result.
    """
    model_messages: list[dict] = []
    text: list[str] = []
    calls: list[dict] = []
    results: list[dict] = []

    def flush() -> None:
        content = "".join(text)
        if calls:
            model_messages.append(
                {"role": "assistant", "content": content or None, "tool_calls": list(calls)}
            )
            model_messages.extend(results)
        elif content:
            model_messages.append({"role": "assistant", "content": content})
        text.clear()
        calls.clear()
        results.clear()

    for index, part in enumerate(message.parts):
        if part.type == "text" and part.text:
            if calls:
                flush()
            text.append(part.text)
        elif part.tool_name and part.has_result:
            call_id = part.tool_call_id or f"call_{message.id}_{index}"
            calls.append({
                "id": call_id,
                "type": "function",
                "function": {
                    "name": part.tool_name,
                    "arguments": json.dumps(part.input if part.input is not None else {}),
                },
            })
            results.append({
                "role": "tool",
                "tool_call_id": call_id,
                "content": _tool_result_content(part),
            })
    flush()
    return model_messages


def convert_to_model_messages(
    messages: list[UIMessage], system_prompt: str | None = None
) -> list[dict]:
    """Convert UI messages to provider chat messages.

    The system prompt, if given, is prepended. Finished tool parts on
    assistant messages are replayed as tool calls with their results.
    Messages with no text and no finished tool calls are dropped.
    """
    model_messages: list[dict] = []
    if system_prompt:
        model_messages.append({"role": "system", "content": system_prompt})

    for message in messages:
        if message.role == "assistant" and any(p.tool_name for p in message.parts):
            model_messages.extend(_assistant_messages(message))
            continue
        text = message.text
        if not text:
            continue
        model_messages.append({"role": message.role, "content": text})
    return model_messages


# ── Output ──────────────────────────────────────────────────────────────────


class TextDeltaChunk(BaseModel):
    """Incremental assistant text."""

    type: Literal["text-delta"] = "text-delta"
    delta: str


class ToolCallChunk(BaseModel):
    """The model requested a tool call; emitted before execution."""

    type: Literal["tool-call"] = "tool-call"
    tool_call_id: str
    tool_name: str
    input: dict[str, Any] = Field(default_factory=dict)


class ToolResultChunk(BaseModel):
    """Normalized tool result, as fed back to the model."""

    type: Literal["tool-result"] = "tool-result"
    tool_call_id: str
    tool_name: str
    success: bool
    output: Any


class FinishChunk(BaseModel):
    """Terminal chunk of a turn."""

    type: Literal["finish"] = "finish"
    finish_reason: str = "stop"


StreamChunk = Annotated[
    Union[TextDeltaChunk, ToolCallChunk, ToolResultChunk, FinishChunk],
    Field(discriminator="type"),
]
