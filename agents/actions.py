"""Named actions — button presses that bypass intent classification.

The table is fixed: ``approve_plan``, ``edit_plan``, ``regenerate_plan``,
``regenerate_item`` and ``help``.  Asking for anything else raises
:class:`UnknownActionError`.  ``regenerate_item`` targets the slide named by
the request's ``item_index``, checked by the validation helper first.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

from agents.handlers import PLAN_ACTIONS, suggested_actions
from config.prompts.messages import (
    BATCH_PARTIAL_SUFFIX,
    BATCH_SUMMARY_MESSAGE,
    EDIT_PLAN_INSTRUCTIONS,
    HELP_MESSAGE,
    ITEM_REGENERATED_MESSAGE,
    pick,
    resolve_language,
)
from errors.exceptions import PlanNotFoundError, UnknownActionError
from models.conversation import ConversationResponse, ConversationState, GeneratedItem, Step
from models.generation import ItemProgress
from services.collaborators import ContentGenerator
from services.parallel_generation import (
    GenerationCallbacks,
    ParallelGenerationEngine,
    new_lesson,
)
from services.plan_parser import extract_item_descriptions, render_description
from services.validation import ItemValidationHelper

logger = logging.getLogger(__name__)

ActionFn = Callable[..., Awaitable[ConversationResponse]]


class ActionTable:
    """Dispatches named actions against the current state."""

    def __init__(
        self,
        generator: ContentGenerator,
        engine: ParallelGenerationEngine,
        validator: ItemValidationHelper,
    ) -> None:
        self._generator = generator
        self._engine = engine
        self._validator = validator
        self._actions: dict[str, ActionFn] = {
            "approve_plan": self.approve_plan,
            "edit_plan": self.edit_plan,
            "regenerate_plan": self.regenerate_plan,
            "regenerate_item": self.regenerate_item,
            "help": self.help,
        }

    @property
    def names(self) -> list[str]:
        return list(self._actions)

    def get(self, action: str) -> ActionFn:
        try:
            return self._actions[action]
        except KeyError:
            raise UnknownActionError(action, self.names) from None

    # ── Actions ───────────────────────────────────────────────

    async def approve_plan(
        self,
        state: ConversationState,
        *,
        callbacks: GenerationCallbacks | None = None,
        cancel_event: asyncio.Event | None = None,
        **_,
    ) -> ConversationResponse:
        """Turn the plan into items and generate them all in parallel."""
        plan = _require_plan(state, "approve_plan")
        language = resolve_language(state.language)
        topic = state.topic or "Lesson"
        age = state.target_age or ""

        descriptions = extract_item_descriptions(plan)
        outcome = await self._engine.generate_all(
            descriptions,
            topic,
            age,
            callbacks=callbacks,
            lesson=new_lesson(topic),
            cancel_event=cancel_event,
        )
        stats = outcome.stats

        new_state = state.without_data_collection().evolve(
            step=Step.BULK_GENERATION,
            lesson=outcome.lesson,
            item_descriptions=descriptions,
            item_progress=outcome.progress,
        )
        message = _batch_message(stats.completed, stats.total, outcome.progress, language)

        if stats.total and stats.completed == 0:
            reasons = "; ".join(
                f"{p.index}: {p.error}" for p in outcome.progress if p.error
            )
            return ConversationResponse(
                success=False,
                message=message,
                state=new_state,
                actions=suggested_actions(("approve_plan", "edit_plan"), language),
                error=f"All {stats.total} items failed ({reasons})",
            )

        return ConversationResponse(message=message, state=new_state)

    async def edit_plan(self, state: ConversationState, **_) -> ConversationResponse:
        _require_plan(state, "edit_plan")
        language = resolve_language(state.language)
        return ConversationResponse(
            message=pick(EDIT_PLAN_INSTRUCTIONS, language),
            state=state.without_batch().evolve(step=Step.PLAN_EDITING),
        )

    async def regenerate_plan(self, state: ConversationState, **_) -> ConversationResponse:
        _require_plan(state, "regenerate_plan")
        language = resolve_language(state.language)
        plan = await self._generator.generate_plan(
            state.topic or "", state.target_age or "", language, state.context_summary
        )
        return ConversationResponse(
            message=plan,
            state=state.without_batch().evolve(step=Step.PLANNING, plan_text=plan, lesson=None),
            actions=suggested_actions(PLAN_ACTIONS, language),
        )

    async def regenerate_item(
        self,
        state: ConversationState,
        *,
        item_index: int | None = None,
        message: str = "",
        **_,
    ) -> ConversationResponse:
        """Generate a fresh version of one slide from its plan description."""
        clarification, index = await self._validator.validate(
            item_index, state, operation="regenerate", user_message=message
        )
        if clarification is not None:
            return ConversationResponse(message=clarification.message, state=state)

        lesson = state.lesson
        item = lesson.item_at(index)
        content = await self._generator.generate_item(
            _item_description(state, item),
            state.topic or lesson.title,
            state.target_age or "",
        )
        regenerated = item.model_copy(
            update={"rendered_content": content, "version": item.version + 1}
        )
        language = resolve_language(state.language, message)
        logger.info("Item %d regenerated (version %d)", index, regenerated.version)

        return ConversationResponse(
            message=pick(ITEM_REGENERATED_MESSAGE, language).format(index=index, title=item.title),
            state=state.without_batch().evolve(
                step=Step.SLIDE_GENERATION,
                lesson=lesson.with_replaced_item(regenerated),
            ),
            actions=suggested_actions(("regenerate_item",), language),
        )

    async def help(self, state: ConversationState, **_) -> ConversationResponse:
        return ConversationResponse(
            message=pick(HELP_MESSAGE, state.language), state=state
        )


def _require_plan(state: ConversationState, operation: str) -> str:
    if not state.plan_text:
        raise PlanNotFoundError(operation)
    return state.plan_text


def _item_description(state: ConversationState, item: GeneratedItem) -> str:
    """The plan description *item* was generated from, or its title when gone."""
    descriptions = state.item_descriptions
    if descriptions is None and state.plan_text:
        descriptions = extract_item_descriptions(state.plan_text)
    for desc in descriptions or []:
        if desc.index == item.index:
            return render_description(desc)
    return f"Slide {item.index}: {item.title}"


def _batch_message(
    completed: int, total: int, progress: list[ItemProgress], language: str
) -> str:
    message = pick(BATCH_SUMMARY_MESSAGE, language).format(completed=completed, total=total)
    failed = [p.title for p in progress if p.status == "error"]
    if failed and completed:
        message += pick(BATCH_PARTIAL_SUFFIX, language).format(titles=", ".join(failed))
    return message