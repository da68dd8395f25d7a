"""Pydantic Settings — typed configuration with .env auto-loading."""

from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

from config.llm_config import LLMConfig


class Settings(BaseSettings):
    """Application configuration loaded from environment / .env file."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # ── Service ──────────────────────────────────────────────
    service_port: int = 5000
    cors_origins: list[str] = ["*"]
    debug: bool = False
    log_level: str = "INFO"

    # ── LLM ──────────────────────────────────────────────────
    default_model: str = "openai/gpt-4o-mini"
    classifier_model: str = "openai/gpt-4o-mini"  # Fast, low-temperature intent detection
    content_model: str = "openai/gpt-4o"  # Plans and rendered lesson items
    rewriter_model: str = "openai/gpt-4o-mini"  # Clarifications, softened failures, summaries
    max_tokens: int = 4096

    # Provider API keys
    openai_api_key: str = ""
    anthropic_api_key: str = ""
    gemini_api_key: str = ""
    dashscope_api_key: str = ""

    # ── Routing ──────────────────────────────────────────────
    confidence_threshold: float = 0.5
    max_data_collection_turns: int = 3
    use_keyword_classifier: bool = False  # Offline/dev: regex classifier instead of the LLM

    # ── Context budget ───────────────────────────────────────
    context_max_tokens: int = 4000
    context_chars_per_token: int = 4
    context_summary_target_tokens: int = 1500
    context_keep_recent_segments: int = 3

    # ── Timeouts / concurrency ───────────────────────────────
    collaborator_timeout: float = 60.0  # seconds, per external call
    item_generation_timeout: float = 90.0  # seconds, per generated item
    max_concurrent_generations: int = 6  # per batch
    max_concurrent_llm: int = 10  # per worker process

    # ── Helpers ───────────────────────────────────────────────

    def get_default_llm_config(self) -> LLMConfig:
        """Build an :class:`LLMConfig` from global .env defaults."""
        return LLMConfig(
            model=self.default_model,
            max_tokens=self.max_tokens,
            timeout=self.collaborator_timeout,
        )


@lru_cache
def get_settings() -> Settings:
    """Singleton accessor for application settings."""
    return Settings()
