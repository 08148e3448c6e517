"""Fixtures for the chat agent tests.

ScriptedLLM stands in for LLMService. Each round of its script is a list
of events that are turned into OpenAI-style streaming chunks:

- str: a text delta
- dict: a tool-call fragment (index, id, name, arguments; all optional)
- Exception: raised at that point in the stream

A finish chunk is appended automatically ("tool_calls" when the round
contains tool-call fragments, "stop" otherwise).
"""

from __future__ import annotations

import asyncio
import copy
from types import SimpleNamespace

import pytest

from src.assistant.agent.loop import ChatAgent
from src.assistant.agent.tools import ToolDispatcher


def _chunk(content=None, tool_calls=None, finish_reason=None) -> SimpleNamespace:
    delta = SimpleNamespace(content=content, tool_calls=tool_calls)
    return SimpleNamespace(
        choices=[SimpleNamespace(delta=delta, finish_reason=finish_reason)]
    )


def _fragment(event: dict) -> SimpleNamespace:
    return SimpleNamespace(
        index=event.get("index", 0),
        id=event.get("id"),
        type="function",
        function=SimpleNamespace(
            name=event.get("name"), arguments=event.get("arguments")
        ),
    )


class ScriptedLLM:
    """Replays scripted rounds; the last round repeats once the script runs out."""

    def __init__(self, rounds: list[list], hang_after_round: bool = False) -> None:
        self.rounds = rounds
        self.calls: list[dict] = []
        self.hang_after_round = hang_after_round
        self.cancelled = False
        self.yielded = 0

    async def stream_completion(self, messages, tools=None, temperature=0.2):
        self.calls.append({"messages": copy.deepcopy(messages), "tools": tools})
        round_ = self.rounds[min(len(self.calls), len(self.rounds)) - 1]

        has_tool_calls = False
        for event in round_:
            if isinstance(event, Exception):
                raise event
            if isinstance(event, dict):
                has_tool_calls = True
                self.yielded += 1
                yield _chunk(tool_calls=[_fragment(event)])
            else:
                self.yielded += 1
                yield _chunk(content=event)

        if self.hang_after_round:
            try:
                await asyncio.Event().wait()
            except asyncio.CancelledError:
                self.cancelled = True
                raise

        self.yielded += 1
        yield _chunk(finish_reason="tool_calls" if has_tool_calls else "stop")


@pytest.fixture
def make_llm():
    return ScriptedLLM


@pytest.fixture
def dispatcher(ingestion, retrieval) -> ToolDispatcher:
    return ToolDispatcher(ingestion=ingestion, retrieval=retrieval)


@pytest.fixture
def make_agent(dispatcher):
    def _make(llm: ScriptedLLM, **kwargs) -> ChatAgent:
        return ChatAgent(llm=llm, dispatcher=dispatcher, **kwargs)

    return _make
