"""Intent handlers and the ordered handler chain.

Handlers carry explicit numeric priorities; the chain sorts by them and
the first handler whose ``can_handle`` accepts the intent wins.  The
catch-all handler must have the largest priority, so selection never falls
off the end of a well-formed chain.

Handlers never mutate the incoming state: every response carries a new
``ConversationState`` copy (or the same object when nothing changed).
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Iterable

from config.prompts.messages import (
    ACTION_LABELS,
    HELP_MESSAGE,
    ITEM_UPDATED_MESSAGE,
    NOT_UNDERSTOOD_MESSAGE,
    PLAN_UPDATED_PREFIX,
    pick,
    resolve_language,
)
from config.settings import get_settings
from errors.exceptions import ChainConfigurationError, NoHandlerFoundError, PlanNotFoundError
from models.conversation import (
    ConversationResponse,
    ConversationState,
    IntentResult,
    IntentType,
    Step,
    SuggestedAction,
)
from services.collaborators import ContentGenerator
from services.validation import ItemValidationHelper

logger = logging.getLogger(__name__)

PLAN_ACTIONS = ("approve_plan", "edit_plan", "regenerate_plan")


def suggested_actions(action_ids: Iterable[str], language: str | None) -> list[SuggestedAction]:
    """Language-matched buttons for the given action ids."""
    actions = []
    for action_id in action_ids:
        label, description = pick(ACTION_LABELS[action_id], language)
        actions.append(SuggestedAction(id=action_id, label=label, description=description))
    return actions


def _language(intent: IntentResult, state: ConversationState) -> str:
    return resolve_language(intent.language or state.language, intent.parameters.raw_message)


class IntentHandler(ABC):
    """One link of the handler chain."""

    name: str = ""
    priority: int = 0
    catch_all: bool = False

    @abstractmethod
    def can_handle(self, intent: IntentResult, state: ConversationState) -> bool:
        ...

    @abstractmethod
    async def handle(
        self, intent: IntentResult, state: ConversationState
    ) -> ConversationResponse:
        ...

    def __repr__(self) -> str:
        return f"<{type(self).__name__} priority={self.priority}>"


# ── Concrete handlers ─────────────────────────────────────────


class CreateLessonHandler(IntentHandler):
    """Drafts the first plan once topic and age are known."""

    name = "create_lesson"
    priority = 10

    def __init__(self, generator: ContentGenerator) -> None:
        self._generator = generator

    def can_handle(self, intent: IntentResult, state: ConversationState) -> bool:
        return intent.intent == IntentType.CREATE_LESSON and state.plan_text is None

    async def handle(
        self, intent: IntentResult, state: ConversationState
    ) -> ConversationResponse:
        topic = intent.parameters.topic or state.topic
        age = intent.parameters.target_age or state.target_age
        language = _language(intent, state)

        plan = await self._generator.generate_plan(
            topic, age, language, state.context_summary
        )
        new_state = (
            state.without_data_collection()
            .without_batch()
            .evolve(
                step=Step.PLANNING,
                plan_text=plan,
                topic=topic,
                target_age=age,
                language=language,
                lesson=None,
            )
        )
        return ConversationResponse(
            message=plan,
            state=new_state,
            actions=suggested_actions(PLAN_ACTIONS, language),
        )


class EditPlanHandler(IntentHandler):
    """Applies a change request to the existing plan.

    Active after the "edit plan" action, or for an explicit ``edit_plan``
    intent while a plan exists.
    """

    name = "edit_plan"
    priority = 20

    def __init__(self, generator: ContentGenerator) -> None:
        self._generator = generator

    def can_handle(self, intent: IntentResult, state: ConversationState) -> bool:
        if state.step == Step.PLAN_EDITING:
            return True
        return intent.intent == IntentType.EDIT_PLAN and state.plan_text is not None

    async def handle(
        self, intent: IntentResult, state: ConversationState
    ) -> ConversationResponse:
        if state.plan_text is None:
            raise PlanNotFoundError("edit_plan")

        language = _language(intent, state)
        change_request = intent.parameters.instruction or intent.parameters.raw_message
        plan = await self._generator.rewrite_plan(state.plan_text, change_request)

        return ConversationResponse(
            message=f"{pick(PLAN_UPDATED_PREFIX, language)}\n\n{plan}",
            state=state.without_batch().evolve(
                step=Step.PLANNING, plan_text=plan, language=language
            ),
            actions=suggested_actions(("approve_plan", "edit_plan"), language),
        )


class EditItemHandler(IntentHandler):
    """Rewrites one generated item, after validating the selection."""

    name = "edit_item"
    priority = 30

    def __init__(self, generator: ContentGenerator, validator: ItemValidationHelper) -> None:
        self._generator = generator
        self._validator = validator

    def can_handle(self, intent: IntentResult, state: ConversationState) -> bool:
        return intent.intent == IntentType.EDIT_ITEM

    async def handle(
        self, intent: IntentResult, state: ConversationState
    ) -> ConversationResponse:
        params = intent.parameters
        clarification, index = await self._validator.validate(
            params.item_index,
            state,
            operation="edit",
            user_message=params.raw_message,
        )
        if clarification is not None:
            return ConversationResponse(message=clarification.message, state=state)

        lesson = state.lesson
        item = lesson.item_at(index)
        content = await self._generator.edit_item(
            item,
            params.instruction or params.raw_message,
            state.topic or lesson.title,
            state.target_age or "",
        )
        edited = item.model_copy(
            update={"rendered_content": content, "version": item.version + 1}
        )
        language = _language(intent, state)
        logger.info("Item %d edited (version %d)", index, edited.version)

        return ConversationResponse(
            message=pick(ITEM_UPDATED_MESSAGE, language).format(index=index, title=item.title),
            state=state.without_batch().evolve(
                step=Step.SLIDE_GENERATION,
                lesson=lesson.with_replaced_item(edited),
                language=language,
            ),
        )


class HelpHandler(IntentHandler):
    name = "help"
    priority = 40

    def can_handle(self, intent: IntentResult, state: ConversationState) -> bool:
        return intent.intent == IntentType.HELP

    async def handle(
        self, intent: IntentResult, state: ConversationState
    ) -> ConversationResponse:
        return ConversationResponse(message=pick(HELP_MESSAGE, _language(intent, state)), state=state)


class FreeConversationHandler(IntentHandler):
    """Catch-all: low confidence, free chat, and anything nobody else took."""

    name = "free_conversation"
    priority = 1000
    catch_all = True

    def can_handle(self, intent: IntentResult, state: ConversationState) -> bool:
        return True

    async def handle(
        self, intent: IntentResult, state: ConversationState
    ) -> ConversationResponse:
        language = _language(intent, state)
        return ConversationResponse(
            message=pick(NOT_UNDERSTOOD_MESSAGE, language),
            state=state,
            actions=suggested_actions(("help",), language),
        )


# ── Chain ─────────────────────────────────────────────────────


class HandlerChain:
    """Priority-ordered handlers ending in exactly one catch-all."""

    def __init__(
        self,
        handlers: Iterable[IntentHandler],
        *,
        confidence_threshold: float | None = None,
    ) -> None:
        self._handlers = tuple(sorted(handlers, key=lambda h: h.priority))
        self.confidence_threshold = (
            confidence_threshold
            if confidence_threshold is not None
            else get_settings().confidence_threshold
        )
        self._validate()

    def _validate(self) -> None:
        if not self._handlers:
            raise ChainConfigurationError("Handler chain is empty")

        priorities = [h.priority for h in self._handlers]
        duplicates = sorted({p for p in priorities if priorities.count(p) > 1})
        if duplicates:
            raise ChainConfigurationError(f"Duplicate handler priorities: {duplicates}")

        catch_alls = [h for h in self._handlers if h.catch_all]
        if len(catch_alls) != 1:
            raise ChainConfigurationError(
                f"Expected exactly one catch-all handler, found {len(catch_alls)}"
            )
        if self._handlers[-1] is not catch_alls[0]:
            raise ChainConfigurationError(
                f"Catch-all handler {catch_alls[0]!r} must have the largest priority"
            )

    @property
    def handlers(self) -> tuple[IntentHandler, ...]:
        return self._handlers

    def select(self, intent: IntentResult, state: ConversationState) -> IntentHandler:
        """Return the first handler accepting *intent* in *state*."""
        confident = intent.confidence >= self.confidence_threshold
        for handler in self._handlers:
            if not handler.catch_all and not confident:
                continue
            if handler.can_handle(intent, state):
                logger.info(
                    "Handler selected: %s (intent=%s confidence=%.2f step=%s)",
                    handler.name,
                    intent.intent,
                    intent.confidence,
                    state.step.value,
                )
                return handler
        raise NoHandlerFoundError(intent.intent, state.step.value)


def default_handlers(
    generator: ContentGenerator, validator: ItemValidationHelper
) -> list[IntentHandler]:
    return [
        CreateLessonHandler(generator),
        EditPlanHandler(generator),
        EditItemHandler(generator, validator),
        HelpHandler(),
        FreeConversationHandler(),
    ]
