"""Item validation helper — checks item-access preconditions.

Before a handler touches an existing generated item it asks this helper
whether the request can be served.  A failed precondition is not an error:
it becomes a warm clarification written by the text rewriter, falling back
to a static per-language template when the rewriter is unavailable.

Rules, first failing rule wins:
1. No lesson yet                                 → missing-lesson-context
2. No explicit index and more than one item     → unclear-selection
3. No generated item at the resolved plan index  → invalid-index

Indexes are plan positions (``GeneratedItem.index``), never positions in
``lesson.items``, which is kept in delivery order.
"""

from __future__ import annotations

import logging

from config.prompts.messages import CLARIFICATION_TEMPLATES, pick, resolve_language
from models.clarification import (
    Clarification,
    ClarificationContext,
    ClarificationScenario,
)
from models.conversation import ConversationState
from services.collaborators import TextRewriter

logger = logging.getLogger(__name__)


class ItemValidationHelper:
    """Validates item selection and renders clarifications."""

    def __init__(self, rewriter: TextRewriter) -> None:
        self._rewriter = rewriter

    async def validate(
        self,
        requested_index: int | None,
        state: ConversationState,
        *,
        operation: str = "edit",
        user_message: str = "",
    ) -> tuple[Clarification | None, int]:
        """Resolve the target item.

        Returns:
            ``(None, resolved_index)`` when the request can proceed, otherwise
            ``(clarification, 0)``.
        """
        context = ClarificationContext(
            operation=operation,
            user_message=user_message,
            lesson_topic=state.topic,
            requested_index=requested_index,
            language=resolve_language(state.language, user_message),
        )

        lesson = state.lesson
        if lesson is None:
            return await self._clarify(
                ClarificationScenario.MISSING_LESSON_CONTEXT, context
            ), 0

        ordered = lesson.items_by_index()
        context = context.model_copy(
            update={
                "available_items": len(ordered),
                "item_titles": [item.title or f"Slide {item.index}" for item in ordered],
                "item_indexes": [item.index for item in ordered],
            }
        )

        if requested_index is None and len(lesson.items) > 1:
            return await self._clarify(
                ClarificationScenario.UNCLEAR_SELECTION, context
            ), 0

        if requested_index is not None:
            resolved = requested_index
        else:
            resolved = ordered[0].index if ordered else 1
        if lesson.item_at(resolved) is None:
            return await self._clarify(
                ClarificationScenario.INVALID_INDEX,
                context.model_copy(update={"requested_index": resolved}),
            ), 0

        return None, resolved

    async def _clarify(
        self, scenario: ClarificationScenario, context: ClarificationContext
    ) -> Clarification:
        logger.info(
            "Clarification needed: scenario=%s operation=%s index=%s items=%d",
            scenario.value,
            context.operation,
            context.requested_index,
            context.available_items,
        )
        try:
            message = (await self._rewriter.clarify(scenario, context)).strip()
        except Exception:
            logger.warning(
                "Rewriter failed for %s, using template", scenario.value, exc_info=True
            )
            message = ""

        if not message:
            message = render_fallback(scenario, context)

        return Clarification(scenario=scenario, message=message, context=context)


def render_fallback(
    scenario: ClarificationScenario, context: ClarificationContext
) -> str:
    """Deterministic clarification text for *scenario*."""
    template = pick(CLARIFICATION_TEMPLATES[scenario.value], context.language)
    titles = "\n".join(context.numbered_titles())
    return template.format(
        operation=context.operation,
        requested=context.requested_index,
        available=context.available_items,
        titles=titles,
    )
