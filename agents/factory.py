"""Orchestrator wiring — builds the full object graph from settings."""

from __future__ import annotations

import logging
from functools import lru_cache

from agents.actions import ActionTable
from agents.content_agent import PydanticAIContentGenerator
from agents.handlers import HandlerChain, default_handlers
from agents.intent_agent import PydanticAIIntentClassifier
from agents.orchestrator import Orchestrator
from agents.rewriter_agent import PydanticAIContextSummarizer, PydanticAITextRewriter
from config.settings import Settings, get_settings
from services.collaborators import (
    ContentGenerator,
    ContextSummarizer,
    IntentClassifier,
    TextRewriter,
)
from services.context_compressor import ContextCompressor
from services.error_observer import ErrorObserver
from services.keyword_classifier import KeywordIntentClassifier
from services.parallel_generation import ParallelGenerationEngine
from services.validation import ItemValidationHelper

logger = logging.getLogger(__name__)


def build_orchestrator(
    settings: Settings | None = None,
    *,
    classifier: IntentClassifier | None = None,
    generator: ContentGenerator | None = None,
    rewriter: TextRewriter | None = None,
    summarizer: ContextSummarizer | None = None,
) -> Orchestrator:
    """Assemble an :class:`Orchestrator`; any collaborator may be injected."""
    settings = settings or get_settings()

    if classifier is None:
        if settings.use_keyword_classifier:
            classifier = KeywordIntentClassifier()
        else:
            classifier = PydanticAIIntentClassifier(timeout=settings.collaborator_timeout)
    generator = generator or PydanticAIContentGenerator(timeout=settings.collaborator_timeout)
    rewriter = rewriter or PydanticAITextRewriter(timeout=settings.collaborator_timeout)
    summarizer = summarizer or PydanticAIContextSummarizer(timeout=settings.collaborator_timeout)

    engine = ParallelGenerationEngine(
        generator,
        item_timeout=settings.item_generation_timeout,
        max_concurrency=settings.max_concurrent_generations,
    )
    validator = ItemValidationHelper(rewriter)
    chain = HandlerChain(
        default_handlers(generator, validator),
        confidence_threshold=settings.confidence_threshold,
    )
    compressor = ContextCompressor(
        summarizer,
        max_tokens=settings.context_max_tokens,
        chars_per_token=settings.context_chars_per_token,
        summary_target_tokens=settings.context_summary_target_tokens,
        keep_recent=settings.context_keep_recent_segments,
    )

    logger.info(
        "Orchestrator built: classifier=%s handlers=%s",
        type(classifier).__name__,
        [h.name for h in chain.handlers],
    )
    return Orchestrator(
        classifier,
        chain,
        ActionTable(generator, engine, validator),
        ErrorObserver(rewriter),
        compressor,
        confidence_threshold=settings.confidence_threshold,
        max_data_collection_turns=settings.max_data_collection_turns,
    )


@lru_cache
def get_orchestrator() -> Orchestrator:
    """Process-wide orchestrator (FastAPI dependency)."""
    return build_orchestrator()


@lru_cache
def get_compressor() -> ContextCompressor:
    """Process-wide context compressor for the standalone compression endpoint."""
    settings = get_settings()
    return ContextCompressor(
        PydanticAIContextSummarizer(timeout=settings.collaborator_timeout),
    )
