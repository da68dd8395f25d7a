"""Agent provider — model instances from ``provider/model`` names, plus a guarded agent runner."""

from __future__ import annotations

import logging
from typing import TypeVar

import httpx
from pydantic_ai import Agent
from pydantic_ai.models.openai import OpenAIChatModel
from pydantic_ai.providers.alibaba import AlibabaProvider
from pydantic_ai.providers.openai import OpenAIProvider

from config.llm_config import LLMConfig
from config.settings import get_settings
from errors.exceptions import CollaboratorUnavailableError
from services.concurrency import rate_limited_llm_call

logger = logging.getLogger(__name__)

OutputT = TypeVar("OutputT")

# Provider prefix → (base_url, settings_key_attr) for OpenAI-compatible endpoints
_PROVIDER_MAP: dict[str, tuple[str, str]] = {
    "dashscope": ("https://dashscope.aliyuncs.com/compatible-mode/v1", "dashscope_api_key"),
}


def _create_http_client() -> httpx.AsyncClient:
    """Shared-timeout httpx client; the per-call timeout is enforced by callers too."""
    return httpx.AsyncClient(timeout=httpx.Timeout(get_settings().collaborator_timeout))


def create_model(model_name: str | None = None):
    """Build a PydanticAI model instance.

    Parses the ``"provider/model"`` format (e.g. ``"openai/gpt-4o-mini"``,
    ``"anthropic/claude-sonnet-4-5"``) and creates the appropriate model.

    - ``anthropic/*`` → native :class:`AnthropicModel`
    - ``gemini/*`` → native :class:`GoogleModel`
    - ``dashscope/*`` → :class:`OpenAIChatModel` via :class:`AlibabaProvider`
    - ``openai/*`` or bare name → :class:`OpenAIChatModel` with OpenAI API

    Args:
        model_name: Model identifier in ``"provider/model"`` format.
                    Defaults to ``settings.default_model``.
    """
    settings = get_settings()
    name = model_name or settings.default_model

    if "/" in name:
        prefix, model_id = name.split("/", 1)

        if prefix == "anthropic":
            from pydantic_ai.models.anthropic import AnthropicModel
            from pydantic_ai.providers.anthropic import AnthropicProvider

            provider = AnthropicProvider(api_key=settings.anthropic_api_key)
            return AnthropicModel(model_id, provider=provider)

        if prefix == "gemini":
            from pydantic_ai.models.google import GoogleModel
            from pydantic_ai.providers.google import GoogleProvider

            provider = GoogleProvider(api_key=settings.gemini_api_key)
            return GoogleModel(model_id, provider=provider)

        if prefix in _PROVIDER_MAP:
            base_url, key_attr = _PROVIDER_MAP[prefix]
            provider = AlibabaProvider(
                api_key=getattr(settings, key_attr, ""),
                base_url=base_url,
                http_client=_create_http_client(),
            )
            return OpenAIChatModel(model_id, provider=provider)

    # Fallback: OpenAI with OPENAI_API_KEY; strip "openai/" prefix if present
    model_id = name.split("/", 1)[1] if "/" in name else name
    logger.debug("Creating OpenAI model %s", model_id)
    provider = OpenAIProvider(
        api_key=settings.openai_api_key,
        http_client=_create_http_client(),
    )
    return OpenAIChatModel(model_id, provider=provider)


async def run_agent(
    agent: Agent[None, OutputT],
    prompt: str,
    *,
    collaborator: str,
    llm_config: LLMConfig,
    timeout: float | None,
) -> OutputT:
    """Run *agent* under the global LLM semaphore and a per-call timeout.

    Raises:
        CollaboratorUnavailableError: on provider, network, validation or timeout failure.
    """
    try:
        result = await rate_limited_llm_call(
            agent.run,
            prompt,
            model_settings=llm_config.to_model_settings(),
            timeout=timeout,
        )
    except TimeoutError as exc:
        logger.warning("%s timed out after %.0fs", collaborator, timeout)
        raise CollaboratorUnavailableError(
            collaborator, f"timed out after {timeout:g}s"
        ) from exc
    except Exception as exc:
        logger.exception("%s call failed", collaborator)
        raise CollaboratorUnavailableError(collaborator, str(exc) or type(exc).__name__) from exc
    return result.output
