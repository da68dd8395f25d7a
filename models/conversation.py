"""Conversation models — intent results, lesson aggregate, state, request/response.

Defines the data contracts threaded through every turn:
- Intent classification output (``IntentResult``)
- The lesson aggregate and its generated items
- ``ConversationState`` — the step machine, never mutated in place
- Unified ``ConversationRequest`` / ``ConversationResponse``
"""

from __future__ import annotations

from enum import Enum
from typing import Literal

from pydantic import Field

from models.base import CamelModel, FrozenCamelModel
from models.generation import GenerationStats, ItemDescription, ItemProgress


# ── Enums ─────────────────────────────────────────────────────


class Step(str, Enum):
    """Where the conversation currently is."""

    PLANNING = "planning"
    DATA_COLLECTION = "data_collection"
    PLAN_EDITING = "plan_editing"
    SLIDE_GENERATION = "slide_generation"
    BULK_GENERATION = "bulk_generation"


class IntentType(str, Enum):
    """Intents the classifier may return."""

    CREATE_LESSON = "create_lesson"
    EDIT_PLAN = "edit_plan"
    EDIT_ITEM = "edit_item"
    HELP = "help"
    FREE_CHAT = "free_chat"


# Intents that produce content and therefore need every required slot
PRODUCE_CONTENT_INTENTS = frozenset({IntentType.CREATE_LESSON.value})

REQUIRED_SLOTS = ("topic", "targetAge")


# ── Intent classification ────────────────────────────────────


class IntentParameters(CamelModel):
    """Slots and hints extracted from the user's message."""

    raw_message: str = ""
    topic: str | None = None
    target_age: str | None = None
    item_index: int | None = None  # 1-based, as the user says it
    instruction: str | None = None


class IntentResult(CamelModel):
    """Output of intent classification (transient, never persisted on its own)."""

    intent: str
    confidence: float = Field(ge=0.0, le=1.0)
    parameters: IntentParameters = Field(default_factory=IntentParameters)
    language: str = "en"
    is_data_sufficient: bool = True
    missing_slots: list[str] = Field(default_factory=list)
    suggested_question: str | None = None


# ── Lesson aggregate ──────────────────────────────────────────


class GeneratedItem(FrozenCamelModel):
    """One rendered lesson item (slide).

    Created once per successful generation task.  Edits produce a new
    object with a bumped ``version``.
    """

    id: str
    index: int  # Position in the plan (1-based)
    title: str
    kind: Literal["title", "content", "interactive", "summary"] = "content"
    rendered_content: str
    status: Literal["completed"] = "completed"
    version: int = 1


class Lesson(FrozenCamelModel):
    """A lesson and its generated items, in delivery order.

    ``items`` is append-only and ordered by completion, not by plan
    position.  Look items up by ``GeneratedItem.index``.
    """

    id: str
    title: str
    items: list[GeneratedItem] = Field(default_factory=list)

    def with_item(self, item: GeneratedItem) -> Lesson:
        """Return a copy with *item* appended."""
        return self.model_copy(update={"items": [*self.items, item]})

    def item_at(self, index: int) -> GeneratedItem | None:
        """The item generated for plan position *index*, if any."""
        return next((item for item in self.items if item.index == index), None)

    def items_by_index(self) -> list[GeneratedItem]:
        return sorted(self.items, key=lambda item: item.index)

    def with_replaced_item(self, item: GeneratedItem) -> Lesson:
        """Return a copy with the item sharing *item*'s index replaced in place."""
        items = [item if existing.index == item.index else existing for existing in self.items]
        return self.model_copy(update={"items": items})


class GenerationOutcome(CamelModel):
    """Everything a batch produced: stats, the lesson and final progress."""

    stats: GenerationStats
    lesson: Lesson
    progress: list[ItemProgress] = Field(default_factory=list)


# ── Conversation state ───────────────────────────────────────


class ConversationState(FrozenCamelModel):
    """Per-session conversation state.

    Owned by the Orchestrator and threaded through every turn.  Handlers
    return a new copy; nothing mutates a state in place.
    """

    step: Step = Step.PLANNING
    plan_text: str | None = None
    topic: str | None = None
    target_age: str | None = None
    language: str = "en"

    # Populated only while step == data_collection
    pending_intent: IntentResult | None = None
    missing_slots: list[str] = Field(default_factory=list)
    clarifying_question: str | None = None
    clarification_turns: int = 0

    lesson: Lesson | None = None

    # Populated only during bulk_generation
    item_descriptions: list[ItemDescription] | None = None
    item_progress: list[ItemProgress] | None = None

    context_summary: str | None = None

    def evolve(self, **changes) -> ConversationState:
        """Return a copy with *changes* applied."""
        return self.model_copy(update=changes)

    def without_data_collection(self) -> ConversationState:
        """Return a copy with the data-collection fields cleared."""
        return self.evolve(
            pending_intent=None,
            missing_slots=[],
            clarifying_question=None,
            clarification_turns=0,
        )

    def without_batch(self) -> ConversationState:
        """Return a copy with the bulk-generation fields cleared."""
        return self.evolve(item_descriptions=None, item_progress=None)


# ── Unified request / response ────────────────────────────────


class SuggestedAction(CamelModel):
    """A follow-up the caller may offer the user (e.g. a button)."""

    id: str
    label: str
    description: str = ""


class ConversationRequest(CamelModel):
    """POST /api/conversation — request body."""

    message: str = ""
    action: str | None = None
    item_index: int | None = None  # 1-based slide for item-level actions
    state: ConversationState | None = None


class ConversationResponse(CamelModel):
    """POST /api/conversation — response body.

    ``message`` is always user-facing copy; ``error`` carries the technical
    detail of a failed response and is dropped once the Error Observer has
    rewritten it.
    """

    success: bool = True
    message: str
    state: ConversationState
    actions: list[SuggestedAction] = Field(default_factory=list)
    error: str | None = None
