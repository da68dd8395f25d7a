"""PydanticAI content generator — plans, slides, plan rewrites, slide edits."""

from __future__ import annotations

import logging

from pydantic_ai import Agent

from agents.provider import create_model, run_agent
from config.llm_config import CONTENT_LLM_CONFIG, LLMConfig
from config.prompts.content import (
    EDIT_ITEM_SYSTEM_PROMPT,
    ITEM_SYSTEM_PROMPT,
    PLAN_SYSTEM_PROMPT,
    REWRITE_PLAN_SYSTEM_PROMPT,
    build_edit_item_request,
    build_item_request,
    build_plan_request,
    build_rewrite_plan_request,
)
from config.settings import get_settings
from models.conversation import GeneratedItem
from services.collaborators import ContentGenerator

logger = logging.getLogger(__name__)


def _text_agent(model, system_prompt: str) -> Agent[None, str]:
    return Agent(
        model=model,
        output_type=str,
        system_prompt=system_prompt,
        retries=1,
        defer_model_check=True,
    )


class PydanticAIContentGenerator(ContentGenerator):
    """LLM-backed :class:`ContentGenerator`."""

    def __init__(
        self,
        model=None,
        *,
        llm_config: LLMConfig | None = None,
        timeout: float | None = None,
    ) -> None:
        settings = get_settings()
        self._llm_config = CONTENT_LLM_CONFIG.merge(llm_config or LLMConfig())
        model = model or create_model(self._llm_config.model or settings.content_model)
        self._timeout = timeout or settings.collaborator_timeout

        self._plan_agent = _text_agent(model, PLAN_SYSTEM_PROMPT)
        self._item_agent = _text_agent(model, ITEM_SYSTEM_PROMPT)
        self._rewrite_plan_agent = _text_agent(model, REWRITE_PLAN_SYSTEM_PROMPT)
        self._edit_item_agent = _text_agent(model, EDIT_ITEM_SYSTEM_PROMPT)

    async def _run(
        self, agent: Agent[None, str], prompt: str, task: str, *, timed: bool = True
    ) -> str:
        text = await run_agent(
            agent,
            prompt,
            collaborator=f"content_generator.{task}",
            llm_config=self._llm_config,
            timeout=self._timeout if timed else None,
        )
        return text.strip()

    async def generate_plan(
        self,
        topic: str,
        age: str,
        language: str = "en",
        context: str | None = None,
    ) -> str:
        logger.info("Generating plan: topic=%.60s age=%s language=%s", topic, age, language)
        return await self._run(
            self._plan_agent, build_plan_request(topic, age, language, context), "plan"
        )

    # Item timeouts are enforced by the generation engine
    async def generate_item(self, description: str, topic: str, age: str) -> str:
        return await self._run(
            self._item_agent, build_item_request(description, topic, age), "item", timed=False
        )

    async def rewrite_plan(self, current_plan: str, change_request: str) -> str:
        logger.info("Rewriting plan: change=%.80s", change_request)
        return await self._run(
            self._rewrite_plan_agent,
            build_rewrite_plan_request(current_plan, change_request),
            "rewrite_plan",
        )

    async def edit_item(
        self, item: GeneratedItem, instruction: str, topic: str, age: str
    ) -> str:
        logger.info("Editing item %d (%s): %.80s", item.index, item.title, instruction)
        return await self._run(
            self._edit_item_agent,
            build_edit_item_request(item.title, item.rendered_content, instruction, topic, age),
            "edit_item",
        )
