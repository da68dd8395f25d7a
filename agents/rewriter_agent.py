"""PydanticAI text rewriter and context summarizer.

Both produce user- or model-facing prose, never structured data, so the
agents return plain ``str`` output.
"""

from __future__ import annotations

import logging

from pydantic_ai import Agent

from agents.provider import create_model, run_agent
from config.llm_config import LLMConfig, REWRITER_LLM_CONFIG, SUMMARIZER_LLM_CONFIG
from config.prompts.rewriter import (
    CLARIFY_SYSTEM_PROMPT,
    SOFTEN_SYSTEM_PROMPT,
    SUMMARIZE_SYSTEM_PROMPT,
    build_clarify_request,
    build_soften_request,
    build_summarize_request,
)
from config.settings import get_settings
from models.clarification import (
    ClarificationContext,
    ClarificationScenario,
    FailureContext,
)
from services.collaborators import ContextSummarizer, TextRewriter

logger = logging.getLogger(__name__)


class PydanticAITextRewriter(TextRewriter):
    """LLM-backed :class:`TextRewriter`."""

    def __init__(
        self,
        model=None,
        *,
        llm_config: LLMConfig | None = None,
        timeout: float | None = None,
    ) -> None:
        settings = get_settings()
        self._llm_config = REWRITER_LLM_CONFIG.merge(llm_config or LLMConfig())
        model = model or create_model(self._llm_config.model or settings.rewriter_model)
        self._timeout = timeout or settings.collaborator_timeout

        self._clarify_agent = Agent(
            model=model,
            output_type=str,
            system_prompt=CLARIFY_SYSTEM_PROMPT,
            retries=1,
            defer_model_check=True,
        )
        self._soften_agent = Agent(
            model=model,
            output_type=str,
            system_prompt=SOFTEN_SYSTEM_PROMPT,
            retries=1,
            defer_model_check=True,
        )

    async def clarify(
        self, scenario: ClarificationScenario, context: ClarificationContext
    ) -> str:
        text = await run_agent(
            self._clarify_agent,
            build_clarify_request(scenario, context),
            collaborator="text_rewriter.clarify",
            llm_config=self._llm_config,
            timeout=self._timeout,
        )
        return text.strip()

    async def soften(self, failure: str, context: FailureContext) -> str:
        text = await run_agent(
            self._soften_agent,
            build_soften_request(failure, context),
            collaborator="text_rewriter.soften",
            llm_config=self._llm_config,
            timeout=self._timeout,
        )
        return text.strip()


class PydanticAIContextSummarizer(ContextSummarizer):
    """LLM-backed :class:`ContextSummarizer`."""

    def __init__(
        self,
        model=None,
        *,
        llm_config: LLMConfig | None = None,
        timeout: float | None = None,
    ) -> None:
        settings = get_settings()
        self._llm_config = SUMMARIZER_LLM_CONFIG.merge(llm_config or LLMConfig())
        model = model or create_model(self._llm_config.model or settings.rewriter_model)
        self._timeout = timeout or settings.collaborator_timeout
        self._agent = Agent(
            model=model,
            output_type=str,
            system_prompt=SUMMARIZE_SYSTEM_PROMPT,
            retries=1,
            defer_model_check=True,
        )

    async def summarize(self, context: str, target_tokens: int) -> str:
        logger.info("Summarizing %d chars to ~%d tokens", len(context), target_tokens)
        text = await run_agent(
            self._agent,
            build_summarize_request(context, target_tokens),
            collaborator="context_summarizer",
            llm_config=self._llm_config.merge(LLMConfig(max_tokens=target_tokens)),
            timeout=self._timeout,
        )
        return text.strip()
