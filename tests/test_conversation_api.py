"""Tests for the HTTP surface — /api/conversation, its SSE variant, compress-context, health."""

from __future__ import annotations

import json

import pytest
from httpx import ASGITransport, AsyncClient

from agents.factory import get_compressor, get_orchestrator
from errors.exceptions import NoHandlerFoundError
from main import app
from services.context_compressor import SEGMENT_SEPARATOR, ContextCompressor
from tests.fakes import SAMPLE_PLAN, FakeGenerator, FakeSummarizer, ScriptedClassifier, intent


@pytest.fixture
async def client():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def use_orchestrator():
    """Route requests to an orchestrator built over fakes."""

    def _use(orchestrator):
        app.dependency_overrides[get_orchestrator] = lambda: orchestrator
        return orchestrator

    return _use


def _planned_state() -> dict:
    return {"step": "planning", "planText": SAMPLE_PLAN, "topic": "Volcanoes", "targetAge": "7"}


def _parse_sse_stream(raw_text: str) -> list[dict | str]:
    """Parse raw SSE text into a list of JSON payloads and [DONE] markers."""
    results = []
    for line in raw_text.strip().split("\n"):
        line = line.strip()
        if not line.startswith("data: "):
            continue
        payload = line[len("data: "):]
        results.append("[DONE]" if payload == "[DONE]" else json.loads(payload))
    return results


def _types(payloads: list[dict | str]) -> list[str]:
    return [p["type"] if isinstance(p, dict) else p for p in payloads]


# ── Health ───────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_health(client):
    resp = await client.get("/api/health")

    assert resp.status_code == 200
    assert resp.json()["status"] == "healthy"
    assert "X-Request-ID" in resp.headers


# ── POST /api/conversation ───────────────────────────────────


@pytest.mark.asyncio
async def test_conversation_creates_plan(client, make_orchestrator, use_orchestrator):
    use_orchestrator(
        make_orchestrator(
            ScriptedClassifier(intent("create_lesson", topic="Volcanoes", target_age="7"))
        )
    )

    resp = await client.post(
        "/api/conversation",
        json={"message": "create a lesson about volcanoes for 7 year olds"},
    )

    assert resp.status_code == 200
    data = resp.json()
    assert data["success"] is True
    assert data["message"] == SAMPLE_PLAN
    assert data["state"]["step"] == "planning"
    assert data["state"]["planText"] == SAMPLE_PLAN
    assert data["state"]["targetAge"] == "7"
    assert [a["id"] for a in data["actions"]] == ["approve_plan", "edit_plan", "regenerate_plan"]


@pytest.mark.asyncio
async def test_conversation_state_round_trip(client, make_orchestrator, use_orchestrator):
    use_orchestrator(make_orchestrator(ScriptedClassifier()))

    resp = await client.post(
        "/api/conversation", json={"action": "approve_plan", "state": _planned_state()}
    )

    data = resp.json()
    assert resp.status_code == 200
    assert data["state"]["step"] == "bulk_generation"
    assert len(data["state"]["lesson"]["items"]) == 5
    assert {p["status"] for p in data["state"]["itemProgress"]} == {"completed"}
    assert data["message"] == "5 of 5 slides are ready."


@pytest.mark.asyncio
async def test_conversation_regenerate_item_by_index(client, make_orchestrator, use_orchestrator):
    use_orchestrator(make_orchestrator(ScriptedClassifier()))
    approved = await client.post(
        "/api/conversation", json={"action": "approve_plan", "state": _planned_state()}
    )

    resp = await client.post(
        "/api/conversation",
        json={"action": "regenerate_item", "itemIndex": 2, "state": approved.json()["state"]},
    )

    data = resp.json()
    assert resp.status_code == 200
    assert data["message"] == 'Slide 2 "What is a volcano" is regenerated.'
    assert data["state"]["step"] == "slide_generation"
    assert data["state"]["itemProgress"] is None
    versions = {i["index"]: i["version"] for i in data["state"]["lesson"]["items"]}
    assert versions == {1: 1, 2: 2, 3: 1, 4: 1, 5: 1}


@pytest.mark.asyncio
async def test_conversation_unknown_action_is_400(client, make_orchestrator, use_orchestrator):
    use_orchestrator(make_orchestrator(ScriptedClassifier()))

    resp = await client.post(
        "/api/conversation", json={"action": "publish_lesson", "state": _planned_state()}
    )

    assert resp.status_code == 400
    assert "publish_lesson" in resp.json()["detail"]


@pytest.mark.asyncio
async def test_conversation_misconfigured_chain_is_500(client, use_orchestrator):
    class Broken:
        action_names = ["help"]

        async def handle(self, *args, **kwargs):
            raise NoHandlerFoundError("help", "planning")

    use_orchestrator(Broken())

    resp = await client.post("/api/conversation", json={"message": "help"})

    assert resp.status_code == 500


@pytest.mark.asyncio
async def test_conversation_rejects_invalid_state(client, make_orchestrator, use_orchestrator):
    use_orchestrator(make_orchestrator(ScriptedClassifier()))

    resp = await client.post(
        "/api/conversation", json={"message": "hi", "state": {"step": "dancing"}}
    )

    assert resp.status_code == 422


# ── POST /api/conversation/stream ────────────────────────────


@pytest.mark.asyncio
async def test_stream_plain_turn(client, make_orchestrator, use_orchestrator):
    use_orchestrator(make_orchestrator(ScriptedClassifier(intent("help"))))

    resp = await client.post("/api/conversation/stream", json={"message": "help"})

    assert resp.status_code == 200
    assert resp.headers["x-vercel-ai-ui-message-stream"] == "v1"
    payloads = _parse_sse_stream(resp.text)
    assert _types(payloads) == [
        "start",
        "text-start",
        "text-delta",
        "text-end",
        "data-response",
        "finish",
        "[DONE]",
    ]
    assert payloads[2]["delta"].startswith("Here's what I can do")


@pytest.mark.asyncio
async def test_stream_batch_events(client, make_orchestrator, use_orchestrator):
    use_orchestrator(
        make_orchestrator(ScriptedClassifier(), generator=FakeGenerator(fail_items={2, 4}))
    )

    resp = await client.post(
        "/api/conversation/stream", json={"action": "approve_plan", "state": _planned_state()}
    )

    payloads = _parse_sse_stream(resp.text)
    types = _types(payloads)
    assert types[0] == "start"
    assert types[-2:] == ["finish", "[DONE]"]
    assert types.count("data-item-ready") == 3
    assert types.count("data-item-error") == 2
    assert types.count("data-complete") == 1
    assert types.index("data-complete") < types.index("data-response")

    ready = [p["data"] for p in payloads if isinstance(p, dict) and p["type"] == "data-item-ready"]
    assert [r["itemCount"] for r in ready] == [1, 2, 3]

    complete = next(p for p in payloads if isinstance(p, dict) and p["type"] == "data-complete")
    assert (complete["data"]["completed"], complete["data"]["failed"]) == (3, 2)

    final = next(p for p in payloads if isinstance(p, dict) and p["type"] == "data-response")
    assert final["data"]["state"]["step"] == "bulk_generation"


@pytest.mark.asyncio
async def test_stream_unknown_action_is_400(client, make_orchestrator, use_orchestrator):
    use_orchestrator(make_orchestrator(ScriptedClassifier()))

    resp = await client.post(
        "/api/conversation/stream", json={"action": "publish_lesson", "state": _planned_state()}
    )

    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_stream_error_event(client, use_orchestrator):
    class Broken:
        action_names = ["help"]

        async def handle(self, *args, **kwargs):
            raise NoHandlerFoundError("help", "planning")

    use_orchestrator(Broken())

    resp = await client.post("/api/conversation/stream", json={"message": "help"})

    types = _types(_parse_sse_stream(resp.text))
    assert types == ["start", "error", "finish", "[DONE]"]


# ── POST /api/compress-context ───────────────────────────────


@pytest.fixture
def small_compressor():
    compressor = ContextCompressor(
        FakeSummarizer(), max_tokens=100, chars_per_token=4, summary_target_tokens=30, keep_recent=3
    )
    app.dependency_overrides[get_compressor] = lambda: compressor
    return compressor


@pytest.mark.asyncio
async def test_compress_context_under_budget(client, small_compressor):
    resp = await client.post("/api/compress-context", json={"context": "User: hi"})

    data = resp.json()
    assert resp.status_code == 200
    assert data == {
        "compressed": "User: hi",
        "wasCompressed": False,
        "originalTokens": 2,
        "estimatedTokens": 2,
    }


@pytest.mark.asyncio
async def test_compress_context_over_budget(client, small_compressor):
    context = SEGMENT_SEPARATOR.join(f"seg{i}:" + "x" * 60 for i in range(10))

    resp = await client.post("/api/compress-context", json={"context": context})

    data = resp.json()
    assert data["wasCompressed"] is True
    assert data["compressed"].startswith("Teacher is planning a volcano lesson.")
    assert data["compressed"].endswith("seg9:" + "x" * 60)
    assert data["estimatedTokens"] <= 100 < data["originalTokens"]
