"""End-to-end conversation over HTTP.

Full flow: create request → age follow-up → plan → approve → edit a slide.
Uses the keyword classifier and fake content collaborators, but real
routing, data collection, parallel generation and state round-tripping
through JSON.
"""

import pytest
from httpx import ASGITransport, AsyncClient

from agents.factory import get_orchestrator
from main import app
from services.keyword_classifier import KeywordIntentClassifier


@pytest.fixture
async def client(make_orchestrator):
    app.dependency_overrides[get_orchestrator] = lambda: make_orchestrator(
        KeywordIntentClassifier()
    )
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


async def _turn(client, state=None, message="", action=None) -> dict:
    body = {"message": message, "state": state}
    if action:
        body["action"] = action
    resp = await client.post("/api/conversation", json=body)
    assert resp.status_code == 200, resp.text
    return resp.json()


# ── E2E: Full lesson lifecycle ───────────────────────────────


@pytest.mark.asyncio
async def test_e2e_volcano_lesson(client, generator):
    # Round 1: topic without age → follow-up question
    r1 = await _turn(client, message="create a lesson about volcanoes")
    assert r1["state"]["step"] == "data_collection"
    assert r1["state"]["missingSlots"] == ["targetAge"]
    assert "How old" in r1["message"]

    # Round 2: age only; the original request is re-read with it
    r2 = await _turn(client, r1["state"], "for 7 year olds")
    assert r2["state"]["step"] == "planning"
    assert r2["state"]["topic"] == "volcanoes"
    assert r2["state"]["targetAge"] == "7"
    assert [a["id"] for a in r2["actions"]] == ["approve_plan", "edit_plan", "regenerate_plan"]
    assert generator.plan_calls[0][:2] == ("volcanoes", "7")

    # Round 3: approve → all five slides generated
    r3 = await _turn(client, r2["state"], action="approve_plan")
    assert r3["state"]["step"] == "bulk_generation"
    items = r3["state"]["lesson"]["items"]
    assert sorted(i["index"] for i in items) == [1, 2, 3, 4, 5]
    assert {i["kind"] for i in items} == {"title", "content", "interactive", "summary"}

    # Round 4: edit one slide
    r4 = await _turn(client, r3["state"], "Make slide 2 more playful")
    assert r4["state"]["step"] == "slide_generation"
    edited = next(i for i in r4["state"]["lesson"]["items"] if i["index"] == 2)
    assert edited["version"] == 2
    assert edited["renderedContent"].endswith("(edited: Make slide 2 more playful)")
    assert r4["message"] == 'Slide 2 "What is a volcano" is updated.'

    # Round 5: out-of-range slide → clarification, state unchanged
    r5 = await _turn(client, r4["state"], "change slide 9")
    assert r5["message"] == "Friendly invalid-index for 5 slides"
    assert r5["state"]["lesson"] == r4["state"]["lesson"]

    # Every turn landed in the context summary
    assert r5["state"]["contextSummary"].startswith("User: create a lesson about volcanoes")
    assert "User: [approve_plan]" in r5["state"]["contextSummary"]

    # Round 6: a new topic starts over with a fresh plan
    r6 = await _turn(client, r5["state"], "create a lesson about dinosaurs for 8 year olds")
    assert r6["state"]["step"] == "planning"
    assert r6["state"]["topic"] == "dinosaurs"
    assert r6["state"]["lesson"] is None
    assert generator.plan_calls[-1][:2] == ("dinosaurs", "8")


@pytest.mark.asyncio
async def test_e2e_edit_plan_then_approve(client, generator):
    r1 = await _turn(client, message="create a lesson about volcanoes for 7 year olds")
    assert r1["state"]["step"] == "planning"

    r2 = await _turn(client, r1["state"], action="edit_plan")
    assert r2["state"]["step"] == "plan_editing"

    r3 = await _turn(client, r2["state"], "change the plan, add a dancing slide")
    assert r3["state"]["step"] == "planning"
    assert "Slide 6: Extra" in r3["state"]["planText"]

    r4 = await _turn(client, r3["state"], action="approve_plan")
    assert len(r4["state"]["lesson"]["items"]) == 6


@pytest.mark.asyncio
async def test_e2e_ukrainian_help_and_gibberish(client):
    r1 = await _turn(client, message="допомога")
    assert r1["message"].startswith("Ось що я вмію")

    r2 = await _turn(client, r1["state"], "фывапролд")
    assert r2["message"].startswith("Я поки не зовсім зрозумів")
    assert r2["actions"][0]["label"] == "Допомога"
