from types import SimpleNamespace

import httpx
import pytest
from anthropic import APIConnectionError
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage, ToolMessage

from counselor.domain.errors import InferenceError
from counselor.domain.inference.base import TextDelta, ToolCallRequest
from counselor.infrastructure.inference.anthropic_client import (
    AnthropicInferenceClient, to_anthropic_messages
)


# ---------------------------------------------------------------------------
# Message conversion
# ---------------------------------------------------------------------------

class TestMessageConversion:
    def test_plain_transcript(self):
        payload = to_anthropic_messages([
            HumanMessage(content="hi"),
            AIMessage(content="hello"),
            HumanMessage(content="how are you"),
        ])
        assert payload == [
            {"role": "user", "content": "hi"},
            {"role": "assistant", "content": [{"type": "text", "text": "hello"}]},
            {"role": "user", "content": "how are you"},
        ]

    def test_tool_round_is_grouped(self):
        payload = to_anthropic_messages([
            HumanMessage(content="remember me"),
            AIMessage(
                content="Sure.",
                tool_calls=[
                    {"id": "t1", "name": "memory", "args": {"command": "view", "path": "/memories"}},
                    {"id": "t2", "name": "read_skill", "args": {"skill_name": "meditation-guide"}},
                ],
            ),
            ToolMessage(content="listing", tool_call_id="t1", status="success"),
            ToolMessage(content="no such skill", tool_call_id="t2", status="error"),
        ])

        assert len(payload) == 3
        assistant = payload[1]["content"]
        assert assistant[0] == {"type": "text", "text": "Sure."}
        assert [b["id"] for b in assistant[1:]] == ["t1", "t2"]
        assert assistant[1]["input"] == {"command": "view", "path": "/memories"}

        results = payload[2]
        assert results["role"] == "user"
        assert [(b["tool_use_id"], b["is_error"]) for b in results["content"]] == [
            ("t1", False), ("t2", True)
        ]

    def test_tool_only_reply_has_no_text_block(self):
        payload = to_anthropic_messages([
            AIMessage(content="", tool_calls=[{"id": "t1", "name": "show_meditation", "args": {}}]),
        ])
        assert [b["type"] for b in payload[0]["content"]] == ["tool_use"]

    def test_empty_assistant_message_is_dropped(self):
        assert to_anthropic_messages([HumanMessage(content="hi"), AIMessage(content="")]) == [
            {"role": "user", "content": "hi"}
        ]

    def test_unsupported_message_type(self):
        with pytest.raises(InferenceError):
            to_anthropic_messages([SystemMessage(content="nope")])


# ---------------------------------------------------------------------------
# Streaming
# ---------------------------------------------------------------------------

class FakeStream:
    def __init__(self, events, error=None):
        self.events = events
        self.error = error

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for event in self.events:
            yield event
        if self.error is not None:
            raise self.error


class FakeMessages:
    def __init__(self, stream):
        self._stream = stream
        self.kwargs = None

    def stream(self, **kwargs):
        self.kwargs = kwargs
        return self._stream


class FakeAnthropic:
    def __init__(self, stream):
        self.messages = FakeMessages(stream)
        self.closed = False

    async def close(self):
        self.closed = True


def _tool_stop(block_id, name, arguments):
    return SimpleNamespace(
        type="content_block_stop",
        content_block=SimpleNamespace(type="tool_use", id=block_id, name=name, input=arguments),
    )


async def _collect(client):
    return [fragment async for fragment in client.stream("system", [{"name": "memory"}], [HumanMessage(content="hi")])]


class TestStreaming:
    @pytest.mark.asyncio
    async def test_fragments_follow_stream_order(self):
        fake = FakeAnthropic(FakeStream([
            SimpleNamespace(type="text", text="Hello"),
            SimpleNamespace(
                type="content_block_stop",
                content_block=SimpleNamespace(type="text", text="Hello"),
            ),
            _tool_stop("toolu_1", "show_mood_cards", {"prompt": "pick"}),
            SimpleNamespace(type="text", text=" world"),
            SimpleNamespace(type="message_stop"),
        ]))
        client = AnthropicInferenceClient(model="test-model", max_tokens=64, client=fake)

        fragments = await _collect(client)
        assert fragments == [
            TextDelta(text="Hello"),
            ToolCallRequest(id="toolu_1", name="show_mood_cards", arguments={"prompt": "pick"}),
            TextDelta(text=" world"),
        ]
        sent = fake.messages.kwargs
        assert sent["model"] == "test-model"
        assert sent["max_tokens"] == 64
        assert sent["system"] == "system"
        assert sent["messages"] == [{"role": "user", "content": "hi"}]

    @pytest.mark.asyncio
    async def test_api_errors_become_inference_errors(self):
        request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
        fake = FakeAnthropic(FakeStream(
            [SimpleNamespace(type="text", text="par")],
            error=APIConnectionError(request=request),
        ))
        client = AnthropicInferenceClient(model="test-model", client=fake)

        with pytest.raises(InferenceError):
            await _collect(client)

    @pytest.mark.asyncio
    async def test_aclose_closes_client(self):
        fake = FakeAnthropic(FakeStream([]))
        await AnthropicInferenceClient(model="m", client=fake).aclose()
        assert fake.closed is True
