"""Tests for the conversation and generation models."""

import pytest
from pydantic import ValidationError

from models.conversation import (
    ConversationRequest,
    ConversationState,
    GeneratedItem,
    IntentResult,
    Lesson,
    Step,
)
from models.generation import ItemProgress
from tests.fakes import intent


def _item(index: int, content: str = "<p/>") -> GeneratedItem:
    return GeneratedItem(id=f"item_{index}", index=index, title=f"T{index}", rendered_content=content)


# ── Serialization ────────────────────────────────────────────


def test_state_serializes_camel_case():
    state = ConversationState(plan_text="p", target_age="7", clarification_turns=2)
    data = state.model_dump(by_alias=True)

    assert data["planText"] == "p"
    assert data["targetAge"] == "7"
    assert data["clarificationTurns"] == 2
    assert data["step"] == Step.PLANNING


def test_state_accepts_both_casings():
    a = ConversationState.model_validate({"planText": "p", "step": "plan_editing"})
    b = ConversationState.model_validate({"plan_text": "p", "step": "plan_editing"})

    assert a == b
    assert a.step == Step.PLAN_EDITING


def test_request_round_trips_state():
    state = ConversationState(
        step=Step.DATA_COLLECTION,
        pending_intent=intent("create_lesson", topic="volcanoes"),
        missing_slots=["targetAge"],
    )
    payload = ConversationRequest(message="7", state=state).model_dump(mode="json", by_alias=True)

    restored = ConversationRequest.model_validate(payload)

    assert restored.state == state
    assert restored.state.pending_intent.parameters.topic == "volcanoes"


def test_intent_confidence_bounds():
    with pytest.raises(ValidationError):
        IntentResult(intent="help", confidence=1.5)


# ── Immutability ─────────────────────────────────────────────


def test_state_is_frozen():
    state = ConversationState()
    with pytest.raises(ValidationError):
        state.step = Step.PLAN_EDITING


def test_evolve_returns_copy():
    state = ConversationState(topic="Volcanoes")
    changed = state.evolve(step=Step.PLAN_EDITING)

    assert changed.step == Step.PLAN_EDITING
    assert changed.topic == "Volcanoes"
    assert state.step == Step.PLANNING


def test_without_data_collection_clears_only_collection_fields():
    state = ConversationState(
        step=Step.DATA_COLLECTION,
        topic="Volcanoes",
        pending_intent=intent("create_lesson"),
        missing_slots=["targetAge"],
        clarifying_question="How old?",
        clarification_turns=2,
    )
    cleared = state.without_data_collection()

    assert cleared.pending_intent is None
    assert cleared.missing_slots == []
    assert cleared.clarifying_question is None
    assert cleared.clarification_turns == 0
    assert cleared.topic == "Volcanoes"


def test_lesson_with_item_appends_without_mutating():
    lesson = Lesson(id="l1", title="Volcanoes")
    grown = lesson.with_item(_item(1)).with_item(_item(2))

    assert [i.index for i in grown.items] == [1, 2]
    assert lesson.items == []


def test_lesson_with_replaced_item_matches_by_index():
    lesson = Lesson(id="l1", title="Volcanoes", items=[_item(2), _item(1)])
    edited = _item(1, "<p>new</p>").model_copy(update={"version": 2})

    updated = lesson.with_replaced_item(edited)

    assert [i.index for i in updated.items] == [2, 1]
    assert updated.items[1].rendered_content == "<p>new</p>"
    assert updated.items[1].version == 2
    assert lesson.items[1].version == 1


def test_lesson_lookup_by_index():
    lesson = Lesson(id="l1", title="Volcanoes", items=[_item(3), _item(1)])

    assert lesson.item_at(3) is lesson.items[0]
    assert lesson.item_at(2) is None
    assert [i.index for i in lesson.items_by_index()] == [1, 3]


# ── Progress transitions ─────────────────────────────────────


@pytest.mark.parametrize(
    "current,target,allowed",
    [
        ("pending", "generating", True),
        ("pending", "completed", True),
        ("pending", "error", True),
        ("generating", "completed", True),
        ("generating", "error", True),
        ("generating", "pending", False),
        ("generating", "generating", False),
        ("completed", "error", False),
        ("error", "completed", False),
        ("completed", "generating", False),
    ],
)
def test_progress_only_moves_forward(current, target, allowed):
    entry = ItemProgress(index=1, title="Welcome", status=current)
    assert entry.can_move_to(target) is allowed
