"""Orchestrator — one conversation turn, end to end.

Flow per turn::

    action given?  → action table (no classification)
    otherwise      → classify → confidence routing → new-topic reset
                   → data collection → handler chain
    failed response → Error Observer
    always         → append the turn to the compressed context summary

Only caller and configuration bugs (``UnknownActionError``,
``NoHandlerFoundError``) propagate; every other problem ends the turn as a
natural-language message.
"""

from __future__ import annotations

import asyncio
import logging

from agents.actions import ActionTable
from agents.handlers import HandlerChain, suggested_actions
from config.prompts.messages import (
    PLAN_MISSING_MESSAGE,
    START_OVER_MESSAGE,
    TRY_AGAIN_MESSAGE,
    missing_slots_question,
    pick,
    resolve_language,
)
from config.settings import get_settings
from errors.exceptions import PlanNotFoundError
from models.conversation import (
    PRODUCE_CONTENT_INTENTS,
    ConversationResponse,
    ConversationState,
    IntentResult,
    IntentType,
    Step,
)
from services.collaborators import IntentClassifier
from services.context_compressor import ContextCompressor, join_segments
from services.error_observer import ErrorObserver
from services.parallel_generation import GenerationCallbacks

logger = logging.getLogger(__name__)

# Assistant replies (plans especially) are clipped before entering the context
_CONTEXT_REPLY_CHARS = 300


class Orchestrator:
    """Routes a message (or a named action) to the right handler."""

    def __init__(
        self,
        classifier: IntentClassifier,
        chain: HandlerChain,
        actions: ActionTable,
        observer: ErrorObserver,
        compressor: ContextCompressor,
        *,
        confidence_threshold: float | None = None,
        max_data_collection_turns: int | None = None,
    ) -> None:
        settings = get_settings()
        self._classifier = classifier
        self._chain = chain
        self._actions = actions
        self._observer = observer
        self._compressor = compressor
        self.confidence_threshold = (
            confidence_threshold
            if confidence_threshold is not None
            else settings.confidence_threshold
        )
        self.max_data_collection_turns = (
            max_data_collection_turns
            if max_data_collection_turns is not None
            else settings.max_data_collection_turns
        )

    @property
    def action_names(self) -> list[str]:
        return self._actions.names

    async def handle(
        self,
        message: str,
        state: ConversationState | None = None,
        action: str | None = None,
        *,
        item_index: int | None = None,
        callbacks: GenerationCallbacks | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> ConversationResponse:
        """Process one turn and return the response with the next state."""
        state = state or ConversationState()

        if action:
            run = self._actions.get(action)
            logger.info("Action %s at step %s", action, state.step.value)
            try:
                response = await run(
                    state,
                    item_index=item_index,
                    message=message,
                    callbacks=callbacks,
                    cancel_event=cancel_event,
                )
            except Exception as exc:
                response = self._failed_response(state, exc)
            response = await self._observer.intercept(response, message, state)
            return await self._record_turn(response, message or f"[{action}]")

        try:
            intent = await self._classify_turn(message, state)
        except Exception as exc:
            response = self._failed_response(state, exc)
            response = await self._observer.intercept(response, message, state)
            return await self._record_turn(response, message)

        if intent.intent in PRODUCE_CONTENT_INTENTS:
            state = self._start_over_for_new_topic(intent, state)
            intent = self._merge_slots(intent, state)
            missing = self._missing_slots(intent)
            if missing:
                response = self._collect_data(intent, missing, state)
                return await self._record_turn(response, message)

        handler = self._chain.select(intent, state)
        try:
            response = await handler.handle(intent, state)
        except Exception as exc:
            response = self._failed_response(state, exc, intent)

        if not response.success:
            response = await self._observer.intercept(response, message, state, intent)
        return await self._record_turn(response, message)

    # ── Classification ────────────────────────────────────────

    async def _classify_turn(self, message: str, state: ConversationState) -> IntentResult:
        text = message
        if state.step == Step.DATA_COLLECTION and state.pending_intent is not None:
            original = state.pending_intent.parameters.raw_message
            text = f"{original} {message}".strip()
            logger.info("Data collection: re-classifying combined message (%d chars)", len(text))

        intent = await self._classifier.classify(text, state)
        if not intent.parameters.raw_message:
            intent = intent.model_copy(
                update={
                    "parameters": intent.parameters.model_copy(update={"raw_message": text})
                }
            )

        if intent.confidence < self.confidence_threshold and intent.intent != IntentType.FREE_CHAT:
            logger.info(
                "Low confidence %.2f for %s, rerouting to free_chat",
                intent.confidence,
                intent.intent,
            )
            intent = intent.model_copy(update={"intent": IntentType.FREE_CHAT.value})
        return intent

    # ── Data collection ───────────────────────────────────────

    @staticmethod
    def _start_over_for_new_topic(
        intent: IntentResult, state: ConversationState
    ) -> ConversationState:
        """A create request naming a topic, once a plan or lesson exists, starts fresh."""
        if not intent.parameters.topic or (state.plan_text is None and state.lesson is None):
            return state
        logger.info("New topic %.60s, discarding the current plan", intent.parameters.topic)
        return ConversationState(language=state.language, context_summary=state.context_summary)

    @staticmethod
    def _merge_slots(intent: IntentResult, state: ConversationState) -> IntentResult:
        """Fill required slots the message left out from pending intent or state."""
        params = intent.parameters
        pending = state.pending_intent.parameters if state.pending_intent else None
        topic = params.topic or (pending.topic if pending else None) or state.topic
        age = params.target_age or (pending.target_age if pending else None) or state.target_age
        if topic == params.topic and age == params.target_age:
            return intent
        return intent.model_copy(
            update={"parameters": params.model_copy(update={"topic": topic, "target_age": age})}
        )

    @staticmethod
    def _missing_slots(intent: IntentResult) -> list[str]:
        params = intent.parameters
        missing = [
            slot
            for slot, value in (("topic", params.topic), ("targetAge", params.target_age))
            if not value
        ]
        if not missing and not intent.is_data_sufficient:
            # Required slots are known; only slots beyond them can still be missing
            missing = [s for s in intent.missing_slots if s not in ("topic", "targetAge")]
        return missing

    def _collect_data(
        self, intent: IntentResult, missing: list[str], state: ConversationState
    ) -> ConversationResponse:
        language = resolve_language(intent.language, intent.parameters.raw_message)
        turns = state.clarification_turns + 1 if state.step == Step.DATA_COLLECTION else 1

        if turns > self.max_data_collection_turns:
            logger.info("Data collection abandoned after %d turns", state.clarification_turns)
            return ConversationResponse(
                message=pick(START_OVER_MESSAGE, language),
                state=ConversationState(language=language, context_summary=state.context_summary),
                actions=suggested_actions(("help",), language),
            )

        params = intent.parameters
        question = intent.suggested_question or missing_slots_question(
            missing, params.topic, language
        )
        logger.info("Data collection turn %d: missing=%s", turns, missing)
        return ConversationResponse(
            message=question,
            state=state.evolve(
                step=Step.DATA_COLLECTION,
                pending_intent=intent,
                missing_slots=missing,
                clarifying_question=question,
                clarification_turns=turns,
                topic=params.topic,
                target_age=params.target_age,
                language=language,
            ),
        )

    # ── Failures and bookkeeping ──────────────────────────────

    @staticmethod
    def _failed_response(
        state: ConversationState, exc: Exception, intent: IntentResult | None = None
    ) -> ConversationResponse:
        language = resolve_language(intent.language if intent else state.language)
        if isinstance(exc, PlanNotFoundError):
            logger.warning("%s", exc)
            message = pick(PLAN_MISSING_MESSAGE, language)
        else:
            logger.exception("Turn failed: %s", type(exc).__name__)
            message = pick(TRY_AGAIN_MESSAGE, language)
        return ConversationResponse(
            success=False,
            message=message,
            state=state,
            error=str(exc) or type(exc).__name__,
        )

    async def _record_turn(
        self, response: ConversationResponse, message: str
    ) -> ConversationResponse:
        """Append the turn to the context summary, compressing when over budget."""
        reply = response.message[:_CONTEXT_REPLY_CHARS]
        raw = join_segments(
            response.state.context_summary,
            f"User: {message}" if message else None,
            f"Assistant: {reply}" if reply else None,
        )
        prepared, compressed = await self._compressor.prepare(raw)
        if compressed:
            logger.info("Context summary compressed to %d chars", len(prepared))
        return response.model_copy(
            update={"state": response.state.evolve(context_summary=prepared or None)}
        )
