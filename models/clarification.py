"""Clarification models — friendly follow-up questions in place of hard errors."""

from __future__ import annotations

from enum import Enum

from pydantic import Field

from models.base import CamelModel


class ClarificationScenario(str, Enum):
    """Why the assistant needs to ask before acting."""

    MISSING_LESSON_CONTEXT = "missing-lesson-context"
    UNCLEAR_SELECTION = "unclear-selection"
    INVALID_INDEX = "invalid-index"


class ClarificationContext(CamelModel):
    """What the rewriter needs to phrase a clarification."""

    operation: str = "edit"
    user_message: str = ""
    lesson_topic: str | None = None
    requested_index: int | None = None
    available_items: int = 0
    item_titles: list[str] = Field(default_factory=list)
    item_indexes: list[int] = Field(default_factory=list)  # Plan positions of item_titles
    language: str = "en"

    def numbered_titles(self) -> list[str]:
        """``"N. title"`` lines, numbered by plan position."""
        numbers = self.item_indexes or range(1, len(self.item_titles) + 1)
        return [f"{n}. {title}" for n, title in zip(numbers, self.item_titles)]


class Clarification(CamelModel):
    """A rendered clarification, ready to show to the user."""

    scenario: ClarificationScenario
    message: str
    context: ClarificationContext = Field(default_factory=ClarificationContext)


class FailureContext(CamelModel):
    """What the rewriter needs to soften a failed response."""

    technical_error: str
    failed_message: str = ""
    user_message: str = ""
    operation: str | None = None
    lesson_title: str | None = None
    item_count: int = 0
    language: str = "en"
