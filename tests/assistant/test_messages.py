"""Tests for conversation message conversion and stream chunk types."""

from __future__ import annotations

from pydantic import TypeAdapter

from src.assistant.agent.messages import (
    FinishChunk,
    MessagePart,
    StreamChunk,
    TextDeltaChunk,
    ToolResultChunk,
    UIMessage,
    convert_to_model_messages,
)


class TestUIMessage:
    def test_text_joins_text_parts(self):
        message = UIMessage(
            role="user",
            parts=[
                MessagePart(type="text", text="The sky "),
                MessagePart(type="step-start"),
                MessagePart(type="text", text="is blue."),
            ],
        )
        assert message.text == "The sky is blue."

    def test_content_used_without_parts(self):
        assert UIMessage(role="assistant", content="Noted.").text == "Noted."

    def test_parts_take_precedence_over_content(self):
        message = UIMessage(
            role="user",
            content="ignored",
            parts=[MessagePart(type="text", text="used")],
        )
        assert message.text == "used"

    def test_unknown_part_fields_allowed(self):
        part = MessagePart.model_validate({"type": "tool-call", "toolCallId": "c1"})
        assert part.type == "tool-call"
        assert part.text is None


class TestConvertToModelMessages:
    def test_system_prompt_prepended(self):
        messages = [UIMessage(role="user", content="Hi")]
        assert convert_to_model_messages(messages, "Be helpful.") == [
            {"role": "system", "content": "Be helpful."},
            {"role": "user", "content": "Hi"},
        ]

    def test_messages_without_text_dropped(self):
        messages = [
            UIMessage(role="user", content="Hi"),
            UIMessage(role="assistant", parts=[MessagePart(type="step-start")]),
            UIMessage(role="user", content=""),
        ]
        assert convert_to_model_messages(messages) == [{"role": "user", "content": "Hi"}]


class TestToolHistory:
    def _history(self) -> list[UIMessage]:
        return [
            UIMessage(role="user", content="What color is the sky?"),
            UIMessage.model_validate({
                "role": "assistant",
                "parts": [
                    {"type": "step-start"},
                    {
                        "type": "tool-get_information",
                        "toolCallId": "call_1",
                        "state": "output-available",
                        "input": {"question": "sky color"},
                        "output": [{"content": "The sky is blue", "similarity": 0.9}],
                    },
                    {"type": "text", "text": "According to the knowledge base, blue."},
                ],
            }),
            UIMessage(role="user", content="And water?"),
        ]

    def test_prior_tool_call_and_result_replayed(self):
        assert convert_to_model_messages(self._history()) == [
            {"role": "user", "content": "What color is the sky?"},
            {
                "role": "assistant",
                "content": None,
                "tool_calls": [
                    {
                        "id": "call_1",
                        "type": "function",
                        "function": {
                            "name": "get_information",
                            "arguments": '{"question": "sky color"}',
                        },
                    }
                ],
            },
            {
                "role": "tool",
                "tool_call_id": "call_1",
                "content": '[{"content": "The sky is blue", "similarity": 0.9}]',
            },
            {"role": "assistant", "content": "According to the knowledge base, blue."},
            {"role": "user", "content": "And water?"},
        ]

    def test_text_before_tool_call_kept_on_same_message(self):
        message = UIMessage.model_validate({
            "role": "assistant",
            "parts": [
                {"type": "text", "text": "Let me save that."},
                {
                    "type": "tool-add_resource",
                    "toolCallId": "call_2",
                    "input": {"content": "Water is wet."},
                    "output": "Saved.",
                },
            ],
        })

        converted = convert_to_model_messages([message])

        assert converted[0]["content"] == "Let me save that."
        assert converted[0]["tool_calls"][0]["function"]["name"] == "add_resource"
        assert converted[1] == {"role": "tool", "tool_call_id": "call_2", "content": "Saved."}

    def test_failed_tool_call_replays_error_text(self):
        message = UIMessage.model_validate({
            "role": "assistant",
            "parts": [
                {
                    "type": "tool-get_information",
                    "toolCallId": "call_3",
                    "state": "output-error",
                    "input": {"question": "sky"},
                    "errorText": "Failed to search knowledge base: timeout",
                },
            ],
        })

        converted = convert_to_model_messages([message])

        assert converted[-1] == {
            "role": "tool",
            "tool_call_id": "call_3",
            "content": "Failed to search knowledge base: timeout",
        }

    def test_unfinished_tool_call_dropped(self):
        message = UIMessage.model_validate({
            "role": "assistant",
            "parts": [
                {"type": "text", "text": "Searching."},
                {
                    "type": "tool-get_information",
                    "toolCallId": "call_4",
                    "state": "input-available",
                    "input": {"question": "sky"},
                },
            ],
        })

        assert convert_to_model_messages([message]) == [
            {"role": "assistant", "content": "Searching."}
        ]


class TestStreamChunk:
    def test_discriminated_by_type(self):
        adapter = TypeAdapter(StreamChunk)

        assert adapter.validate_python({"type": "text-delta", "delta": "Hi"}) == (
            TextDeltaChunk(delta="Hi")
        )
        assert adapter.validate_python({"type": "finish"}) == FinishChunk()
        result = adapter.validate_python({
            "type": "tool-result",
            "tool_call_id": "c1",
            "tool_name": "get_information",
            "success": True,
            "output": [{"content": "The sky is blue", "similarity": 0.9}],
        })
        assert isinstance(result, ToolResultChunk)

    def test_serializes_with_type_tag(self):
        assert TextDeltaChunk(delta="Hi").model_dump() == {"type": "text-delta", "delta": "Hi"}
