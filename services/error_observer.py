"""Error observer — rewrites failed responses before they reach the user.

Sits between anything that can produce a failed ``ConversationResponse`` and
the caller.  Successful responses pass through untouched.  Failed ones are
rewritten by the text rewriter into a short, encouraging message that never
talks about errors.  When that rewrite fails too, the original response is
returned as-is: its ``message`` is already user-facing copy.
"""

from __future__ import annotations

import logging

from config.prompts.messages import resolve_language
from models.clarification import FailureContext
from models.conversation import ConversationResponse, ConversationState, IntentResult
from services.collaborators import TextRewriter

logger = logging.getLogger(__name__)


class ErrorObserver:
    """Intercepts failed responses and softens them via the rewriter."""

    def __init__(self, rewriter: TextRewriter) -> None:
        self._rewriter = rewriter

    async def intercept(
        self,
        response: ConversationResponse,
        original_message: str,
        state: ConversationState | None = None,
        intent: IntentResult | None = None,
    ) -> ConversationResponse:
        if response.success:
            return response

        context = build_failure_context(response, original_message, state, intent)
        logger.info(
            "Intercepting failed response: operation=%s error=%.200s",
            context.operation,
            context.technical_error,
        )

        try:
            friendly = (await self._rewriter.soften(context.technical_error, context)).strip()
        except Exception:
            logger.exception("Failure rewrite failed; returning original response")
            return response

        if not friendly:
            logger.warning("Failure rewrite returned empty text; returning original response")
            return response

        return ConversationResponse(
            success=True,
            message=friendly,
            state=response.state,
            actions=list(response.actions),
        )


def build_failure_context(
    response: ConversationResponse,
    original_message: str,
    state: ConversationState | None,
    intent: IntentResult | None,
) -> FailureContext:
    """Collect the technical error plus light lesson context."""
    lesson = (state or response.state).lesson
    language = intent.language if intent else (state or response.state).language
    return FailureContext(
        technical_error=response.error or response.message,
        failed_message=response.message,
        user_message=original_message,
        operation=intent.intent if intent else None,
        lesson_title=lesson.title if lesson else None,
        item_count=len(lesson.items) if lesson else 0,
        language=resolve_language(language, original_message),
    )
