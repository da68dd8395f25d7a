"""Collaborator contracts — the narrow boundaries to external AI services.

Each collaborator is a plain request/response interface.  The PydanticAI
implementations live in ``agents/``; tests inject in-memory fakes.
Implementations raise :class:`errors.CollaboratorUnavailableError` when the
underlying call fails or times out.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from models.clarification import (
    ClarificationContext,
    ClarificationScenario,
    FailureContext,
)
from models.conversation import ConversationState, GeneratedItem, IntentResult


class IntentClassifier(ABC):
    """Turns raw text (plus optional state) into a structured intent."""

    @abstractmethod
    async def classify(
        self, text: str, state: ConversationState | None = None
    ) -> IntentResult:
        ...


class ContentGenerator(ABC):
    """Produces plans and rendered lesson items."""

    @abstractmethod
    async def generate_plan(
        self,
        topic: str,
        age: str,
        language: str = "en",
        context: str | None = None,
    ) -> str:
        """Return a markdown lesson plan."""
        ...

    @abstractmethod
    async def generate_item(self, description: str, topic: str, age: str) -> str:
        """Return the rendered content of one item."""
        ...

    @abstractmethod
    async def rewrite_plan(self, current_plan: str, change_request: str) -> str:
        """Return *current_plan* with *change_request* applied."""
        ...

    @abstractmethod
    async def edit_item(
        self, item: GeneratedItem, instruction: str, topic: str, age: str
    ) -> str:
        """Return new rendered content for *item* following *instruction*."""
        ...


class TextRewriter(ABC):
    """Writes warm, non-technical copy for clarifications and failures."""

    @abstractmethod
    async def clarify(
        self, scenario: ClarificationScenario, context: ClarificationContext
    ) -> str:
        ...

    @abstractmethod
    async def soften(self, failure: str, context: FailureContext) -> str:
        ...


class ContextSummarizer(ABC):
    """Summarizes conversation context down to a token budget."""

    @abstractmethod
    async def summarize(self, context: str, target_tokens: int) -> str:
        ...
