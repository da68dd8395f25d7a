"""Keyword intent classifier — deterministic, offline stand-in for the LLM.

Used when ``use_keyword_classifier`` is set (local development without
provider keys) and as a predictable classifier in end-to-end tests.  It only
understands the handful of phrasings below, English and Ukrainian.
"""

from __future__ import annotations

import logging
import re

from config.prompts.messages import missing_slots_question, resolve_language
from models.conversation import (
    ConversationState,
    IntentParameters,
    IntentResult,
    IntentType,
)
from services.collaborators import IntentClassifier

logger = logging.getLogger(__name__)

_EDIT_VERBS = r"(?:make|change|edit|rewrite|fix|update|improve|redo|зміни|зроби|відредагуй|виправ|перепиши|онови)"

_ITEM_WITH_INDEX = re.compile(r"\b(?:slide|слайд\w*)\s*(?:#|№)?\s*(\d+)", re.IGNORECASE)
_ITEM_WITHOUT_INDEX = re.compile(
    rf"\b{_EDIT_VERBS}\b.*\b(?:slide|слайд\w*)\b", re.IGNORECASE
)
_CREATE = re.compile(
    r"\b(?:create|make|build|generate|prepare|plan|design)\b.*\b(?:lesson|class)\b"
    r"|\bстворі?\w*\b.*\bурок\w*"
    r"|\bурок\w*\s+про\b",
    re.IGNORECASE,
)
_EDIT_PLAN = re.compile(rf"\b{_EDIT_VERBS}\b.*\b(?:plan|план\w*)\b", re.IGNORECASE)
_HELP = re.compile(
    r"\bhelp\b|\bwhat can you do\b|\bhow does this work\b|допомог|що ти вмієш",
    re.IGNORECASE,
)
_SMALLTALK = re.compile(
    r"^\s*(?:hi|hello|hey|thanks|thank you|привіт|вітаю|дякую)\b", re.IGNORECASE
)

_TOPIC = re.compile(
    r"\b(?:about|on)\s+(.+?)(?=\s+for\b|\s+to\b|[.,!?;]|$)"
    r"|\bпро\s+(.+?)(?=\s+для\b|[.,!?;]|$)",
    re.IGNORECASE,
)
_AGE = re.compile(
    r"(\d{1,2})(?:\s*[-–]\s*(\d{1,2}))?\s*-?\s*(?:year|yr|рок|рік|років)",
    re.IGNORECASE,
)


class KeywordIntentClassifier(IntentClassifier):
    """Regex-based classifier with slot extraction for topic and age."""

    async def classify(
        self, text: str, state: ConversationState | None = None
    ) -> IntentResult:
        message = text.strip()
        language = resolve_language(None, message)
        params = IntentParameters(raw_message=text)

        if match := _ITEM_WITH_INDEX.search(message):
            params.item_index = int(match.group(1))
            params.instruction = message
            return self._result(IntentType.EDIT_ITEM, 0.85, params, language)

        if _CREATE.search(message):
            params.topic = extract_topic(message)
            params.target_age = extract_age(message)
            missing = [
                slot
                for slot, value in (("topic", params.topic), ("targetAge", params.target_age))
                if not value
            ]
            result = self._result(IntentType.CREATE_LESSON, 0.9, params, language)
            if missing:
                result.is_data_sufficient = False
                result.missing_slots = missing
                result.suggested_question = missing_slots_question(
                    missing, params.topic, language
                )
            return result

        if _EDIT_PLAN.search(message):
            params.instruction = message
            return self._result(IntentType.EDIT_PLAN, 0.8, params, language)

        if _ITEM_WITHOUT_INDEX.search(message):
            params.instruction = message
            return self._result(IntentType.EDIT_ITEM, 0.75, params, language)

        if _HELP.search(message):
            return self._result(IntentType.HELP, 0.9, params, language)

        if _SMALLTALK.search(message):
            return self._result(IntentType.FREE_CHAT, 0.8, params, language)

        return self._result(IntentType.FREE_CHAT, 0.3, params, language)

    @staticmethod
    def _result(
        intent: IntentType, confidence: float, params: IntentParameters, language: str
    ) -> IntentResult:
        logger.debug("Keyword classifier: intent=%s confidence=%.2f", intent.value, confidence)
        return IntentResult(
            intent=intent.value,
            confidence=confidence,
            parameters=params,
            language=language,
        )


def extract_topic(text: str) -> str | None:
    match = _TOPIC.search(text)
    if not match:
        return None
    topic = (match.group(1) or match.group(2) or "").strip()
    return topic or None


def extract_age(text: str) -> str | None:
    match = _AGE.search(text)
    if not match:
        return None
    low, high = match.group(1), match.group(2)
    return f"{low}-{high}" if high else low
