"""Chat agent: message types, knowledge base tools and the streaming turn loop."""

from src.assistant.agent.loop import ChatAgent
from src.assistant.agent.messages import (
    FinishChunk,
    StreamChunk,
    TextDeltaChunk,
    ToolCallChunk,
    ToolResultChunk,
    UIMessage,
    convert_to_model_messages,
)
from src.assistant.agent.tools import ToolDispatcher, ToolName, ToolOutcome

__all__ = [
    "ChatAgent",
    "FinishChunk",
    "StreamChunk",
    "TextDeltaChunk",
    "ToolCallChunk",
    "ToolDispatcher",
    "ToolName",
    "ToolOutcome",
    "ToolResultChunk",
    "UIMessage",
    "convert_to_model_messages",
]
