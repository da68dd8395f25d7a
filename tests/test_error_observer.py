"""Tests for services/error_observer.py — softening failed responses."""

import pytest

from models.conversation import (
    ConversationResponse,
    ConversationState,
    GeneratedItem,
    Lesson,
    SuggestedAction,
)
from services.error_observer import ErrorObserver
from tests.fakes import FakeRewriter, intent


def _failed(state: ConversationState | None = None) -> ConversationResponse:
    return ConversationResponse(
        success=False,
        message="Let's give that another go in a moment.",
        state=state or ConversationState(),
        actions=[SuggestedAction(id="help", label="Help")],
        error="CollaboratorUnavailableError: 503 from provider",
    )


@pytest.mark.asyncio
async def test_success_passes_through_untouched():
    rewriter = FakeRewriter()
    observer = ErrorObserver(rewriter)
    ok = ConversationResponse(message="All good", state=ConversationState())

    result = await observer.intercept(ok, "hi")

    assert result is ok
    assert rewriter.soften_calls == []


@pytest.mark.asyncio
async def test_failure_is_softened():
    rewriter = FakeRewriter()
    observer = ErrorObserver(rewriter)
    failed = _failed()

    result = await observer.intercept(failed, "create a lesson", intent=intent("create_lesson"))

    assert result.success is True
    assert result.message == "Let's try a slightly different approach together."
    assert result.error is None
    assert result.state == failed.state
    assert [a.id for a in result.actions] == ["help"]

    technical, context = rewriter.soften_calls[0]
    assert "503" in technical
    assert context.user_message == "create a lesson"
    assert context.operation == "create_lesson"


@pytest.mark.asyncio
async def test_failure_context_includes_lesson():
    rewriter = FakeRewriter()
    lesson = Lesson(
        id="l1",
        title="Volcanoes",
        items=[GeneratedItem(id="i1", index=1, title="Hi", rendered_content="x")],
    )
    state = ConversationState(lesson=lesson)

    await ErrorObserver(rewriter).intercept(_failed(state), "approve", state)

    _, context = rewriter.soften_calls[0]
    assert context.lesson_title == "Volcanoes"
    assert context.item_count == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("rewriter", [FakeRewriter(fail=True), FakeRewriter(empty=True)])
async def test_rewrite_failure_returns_original(rewriter):
    failed = _failed()

    result = await ErrorObserver(rewriter).intercept(failed, "hello")

    assert result is failed


@pytest.mark.asyncio
async def test_failure_language_follows_intent():
    rewriter = FakeRewriter()
    await ErrorObserver(rewriter).intercept(
        _failed(), "Створи урок про вулкани", intent=intent("create_lesson", language="uk")
    )

    _, context = rewriter.soften_calls[0]
    assert context.language == "uk"
