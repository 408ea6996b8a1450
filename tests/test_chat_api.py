"""Tests for the HTTP surface: request validation, SSE framing and health."""

import asyncio
import json

import pytest
from fastapi.testclient import TestClient

from counselor.application.api.api_server import create_app
from counselor.application.api.route.chat import event_stream, format_sse
from counselor.domain.errors import InferenceError
from counselor.domain.models.agent_state import Role
from counselor.domain.orchestration.core.main_agent import AgentOrchestrator
from counselor.domain.streaming.events import DeltaEvent, DoneEvent, DoneStatus
from counselor.infrastructure.config.settings import Settings
from tests.conftest import MOOD_CARDS
from tests.fakes.fake_inference import ScriptedInference, text, tool_call


def _frames(body: str):
    frames = []
    for block in body.split("\n\n"):
        if not block:
            continue
        event_line, data_line = block.split("\n")
        assert event_line.startswith("event: ")
        assert data_line.startswith("data: ")
        frames.append((event_line[len("event: "):], json.loads(data_line[len("data: "):])))
    return frames


@pytest.fixture()
def settings(tmp_path):
    return Settings(memory_root=tmp_path / "memories", log_format="console", log_level="WARNING")


@pytest.fixture()
def make_client(settings):
    def build(inference):
        return TestClient(create_app(settings, inference=inference))
    return build


# ---------------------------------------------------------------------------
# Request validation
# ---------------------------------------------------------------------------

class TestValidation:
    @pytest.mark.parametrize("body,expected", [
        ({"message": "hi"}, "sessionId is required"),
        ({"sessionId": "", "message": "hi"}, "sessionId is required"),
        ({"sessionId": "   ", "message": "hi"}, "sessionId is required"),
        ({"sessionId": "s1"}, "message is required"),
        ({"sessionId": "s1", "message": ""}, "message is required"),
        ({"sessionId": "s1", "message": "  \n "}, "message is required"),
    ])
    def test_bad_requests_get_400_and_no_inference(self, make_client, body, expected):
        inference = ScriptedInference([[text("never")]])
        with make_client(inference) as client:
            response = client.post("/api/chat", json=body)

        assert response.status_code == 400
        assert response.json() == {"error": expected}
        assert inference.calls == []

    def test_message_is_trimmed(self, make_client):
        inference = ScriptedInference([[text("ok")]])
        with make_client(inference) as client:
            client.post("/api/chat", json={"sessionId": "s1", "message": "  hello  "})
            turns = client.app.state.orchestrator.session_store.sessions["s1"]

        assert turns[0].content == "hello"


# ---------------------------------------------------------------------------
# Streaming
# ---------------------------------------------------------------------------

class TestChatStream:
    def test_sse_stream(self, make_client):
        inference = ScriptedInference([
            [text("Hello"), tool_call("show_mood_cards", MOOD_CARDS)],
            [text(" world")],
        ])
        with make_client(inference) as client:
            response = client.post("/api/chat", json={"sessionId": "s1", "message": "I feel off"})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/event-stream")
        assert response.headers["cache-control"] == "no-cache"

        frames = _frames(response.text)
        assert [name for name, _ in frames] == ["delta", "cards", "delta", "done"]
        assert frames[0][1] == {"text": "Hello"}
        assert len(frames[1][1]["cards"]) == 4
        assert frames[-1][1] == {"status": "complete"}

    def test_error_frame(self, make_client):
        inference = ScriptedInference([[InferenceError("backend unavailable")]])
        with make_client(inference) as client:
            response = client.post("/api/chat", json={"sessionId": "s1", "message": "hi"})

        assert response.status_code == 200
        assert _frames(response.text) == [("error", {"message": "backend unavailable"})]

    def test_sessions_persist_across_requests(self, make_client):
        inference = ScriptedInference([[text("one")], [text("two")]])
        with make_client(inference) as client:
            client.post("/api/chat", json={"sessionId": "s1", "message": "first"})
            client.post("/api/chat", json={"sessionId": "s1", "message": "second"})

        assert [m.content for m in inference.calls[1]["messages"]] == ["first", "one", "second"]

    def test_non_ascii_text_is_sent_verbatim(self):
        frame = format_sse(DeltaEvent(text="你好"))
        assert frame == 'event: delta\ndata: {"text": "你好"}\n\n'

    def test_done_frame(self):
        assert format_sse(DoneEvent(status=DoneStatus.MAX_ITERATIONS)) == (
            'event: done\ndata: {"status": "max_iterations"}\n\n'
        )

    @pytest.mark.asyncio
    async def test_client_disconnect_cancels_turn(self, session_store, memory_fs, skill_loader):
        gate = asyncio.Event()
        inference = ScriptedInference([
            [text("Let me"), gate, tool_call("read_skill", {"skill_name": "meditation-guide"})],
            [text("never sent")],
        ])
        orchestrator = AgentOrchestrator(
            inference=inference,
            session_store=session_store,
            memory=memory_fs,
            skills=skill_loader,
        )

        stream = event_stream(orchestrator, "s1", "hello")
        first = await stream.__anext__()
        assert first == 'event: delta\ndata: {"text": "Let me"}\n\n'

        await stream.aclose()
        gate.set()
        await asyncio.sleep(0.01)

        assert len(inference.calls) == 1
        turns = await session_store.get("s1")
        assert [(t.role, t.content) for t in turns] == [(Role.USER, "hello")]
        assert not session_store.session_lock("s1").locked()


# ---------------------------------------------------------------------------
# Health and lifecycle
# ---------------------------------------------------------------------------

class TestLifecycle:
    def test_health(self, make_client):
        inference = ScriptedInference([[text("ok")]])
        with make_client(inference) as client:
            client.post("/api/chat", json={"sessionId": "s1", "message": "hi"})
            response = client.get("/api/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert body["active_sessions"] == 1
        assert "timestamp" in body

    def test_startup_creates_memory_root_and_shutdown_closes_inference(self, make_client, settings):
        inference = ScriptedInference([])
        with make_client(inference):
            assert settings.memory_root.is_dir()
        assert inference.closed is True
