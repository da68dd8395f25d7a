"""PydanticAI intent classifier.

Classifies one teacher message into an :class:`IntentResult`.  The system
prompt gains a short state section once a conversation exists so follow-up
messages ("make it shorter") are read in context.
"""

from __future__ import annotations

import logging

from pydantic_ai import Agent

from agents.provider import create_model, run_agent
from config.llm_config import CLASSIFIER_LLM_CONFIG, LLMConfig
from config.prompts.intent import build_intent_prompt
from config.prompts.messages import resolve_language
from config.settings import get_settings
from models.conversation import ConversationState, IntentResult, IntentType
from services.collaborators import IntentClassifier

logger = logging.getLogger(__name__)

_KNOWN_INTENTS = {i.value for i in IntentType}


class PydanticAIIntentClassifier(IntentClassifier):
    """LLM-backed :class:`IntentClassifier`."""

    def __init__(
        self,
        model=None,
        *,
        llm_config: LLMConfig | None = None,
        timeout: float | None = None,
    ) -> None:
        settings = get_settings()
        self._llm_config = CLASSIFIER_LLM_CONFIG.merge(llm_config or LLMConfig())
        self._model = model or create_model(self._llm_config.model or settings.classifier_model)
        self._timeout = timeout or settings.collaborator_timeout

    def _build_agent(self, state: ConversationState | None) -> Agent[None, IntentResult]:
        prompt = build_intent_prompt()
        if state is not None:
            prompt = build_intent_prompt(
                step=state.step.value,
                topic=state.topic,
                target_age=state.target_age,
                has_plan=state.plan_text is not None,
                item_count=len(state.lesson.items) if state.lesson else 0,
            )
        return Agent(
            model=self._model,
            output_type=IntentResult,
            system_prompt=prompt,
            retries=1,
            defer_model_check=True,
        )

    async def classify(
        self, text: str, state: ConversationState | None = None
    ) -> IntentResult:
        result = await run_agent(
            self._build_agent(state),
            text,
            collaborator="intent_classifier",
            llm_config=self._llm_config,
            timeout=self._timeout,
        )
        result = _normalize(result, text)
        logger.info(
            "Intent classified: intent=%s confidence=%.2f sufficient=%s",
            result.intent,
            result.confidence,
            result.is_data_sufficient,
        )
        return result


def _normalize(result: IntentResult, text: str) -> IntentResult:
    """Coerce free-form model output onto the known intents and languages."""
    intent = result.intent.strip().lower()
    updates: dict = {"language": resolve_language(result.language, text)}
    if intent not in _KNOWN_INTENTS:
        logger.warning("Classifier returned unknown intent %r, treating as free_chat", intent)
        updates.update(intent=IntentType.FREE_CHAT.value, confidence=0.0)
    else:
        updates["intent"] = intent
    if not result.parameters.raw_message:
        updates["parameters"] = result.parameters.model_copy(update={"raw_message": text})
    return result.model_copy(update=updates)
