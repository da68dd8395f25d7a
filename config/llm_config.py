"""Reusable LLM generation parameters.

LLMConfig is a standalone Pydantic model that can be:
- built from Settings as the global default,
- declared per collaborator for task-specific tuning (presets below),
- merged with per-call overrides.

Priority chain (low → high):
    .env global defaults  →  collaborator preset  →  per-call overrides
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class LLMConfig(BaseModel):
    """LLM generation parameters shared by every collaborator agent.

    All fields are optional.  ``None`` means "use the model's default".
    """

    model: str | None = Field(default=None, description="'provider/model' identifier")
    max_tokens: int | None = Field(default=None, description="Max tokens to generate")
    temperature: float | None = Field(default=None, ge=0.0, le=2.0)
    top_p: float | None = Field(default=None, ge=0.0, le=1.0)
    seed: int | None = Field(default=None, description="Random seed for reproducibility")
    stop: list[str] | None = Field(default=None, description="Stop sequences")
    timeout: float | None = Field(default=None, gt=0, description="Request timeout (seconds)")

    def merge(self, overrides: LLMConfig) -> LLMConfig:
        """Return a new LLMConfig: *self* as base, *overrides* wins on non-None fields."""
        base = self.model_dump(exclude_none=True)
        base.update(overrides.model_dump(exclude_none=True))
        return LLMConfig(**base)

    def to_model_settings(self) -> dict:
        """Convert to a PydanticAI ``ModelSettings`` dict."""
        kw: dict = {}
        for field in ("max_tokens", "temperature", "top_p", "seed", "timeout"):
            val = getattr(self, field)
            if val is not None:
                kw[field] = val
        if self.stop:
            kw["stop_sequences"] = list(self.stop)
        return kw


# ── Per-collaborator presets ─────────────────────────────────

# Classification must be stable across identical inputs
CLASSIFIER_LLM_CONFIG = LLMConfig(temperature=0.1, max_tokens=1000)

# Plans and lesson items benefit from some variety
CONTENT_LLM_CONFIG = LLMConfig(temperature=0.7)

# Clarifications and softened failures: short, warm
REWRITER_LLM_CONFIG = LLMConfig(temperature=0.5, max_tokens=400)

# Summaries must not invent anything
SUMMARIZER_LLM_CONFIG = LLMConfig(temperature=0.1)
