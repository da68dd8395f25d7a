"""Context budget compressor — keeps accumulated conversation context bounded.

Conversation context is a ``" | "``-separated list of segments; the first
segment anchors the topic, the last ones are the most recent turns.

Policy:
- Estimate tokens from character length (fixed ratio).
- Under the ceiling → pass through unchanged.
- Over the ceiling → summarize older segments with the AI summarizer and keep
  the most recent segments verbatim.
- Summarizer unavailable (or summary still too large) → keep the first
  segment plus the last K segments, hard-capped to the ceiling.
"""

from __future__ import annotations

import logging
import math

from config.settings import get_settings
from services.collaborators import ContextSummarizer

logger = logging.getLogger(__name__)

SEGMENT_SEPARATOR = " | "
OMISSION_MARKER = "[…]"


def join_segments(*parts: str | None) -> str:
    """Join non-empty context parts with the segment separator."""
    return SEGMENT_SEPARATOR.join(p for p in parts if p)


class ContextCompressor:
    """Prepares conversation context before it is sent anywhere else."""

    def __init__(
        self,
        summarizer: ContextSummarizer | None = None,
        *,
        max_tokens: int | None = None,
        chars_per_token: int | None = None,
        summary_target_tokens: int | None = None,
        keep_recent: int | None = None,
    ) -> None:
        settings = get_settings()
        self._summarizer = summarizer
        self.max_tokens = max_tokens or settings.context_max_tokens
        self.chars_per_token = chars_per_token or settings.context_chars_per_token
        self.summary_target_tokens = (
            summary_target_tokens or settings.context_summary_target_tokens
        )
        self.keep_recent = keep_recent or settings.context_keep_recent_segments

    @property
    def max_chars(self) -> int:
        return self.max_tokens * self.chars_per_token

    def estimate_tokens(self, text: str) -> int:
        return math.ceil(len(text) / self.chars_per_token)

    def should_compress(self, text: str) -> bool:
        return self.estimate_tokens(text) > self.max_tokens

    async def prepare(self, raw_context: str) -> tuple[str, bool]:
        """Return ``(prepared_context, was_compressed)``.

        The prepared context never exceeds ``max_tokens`` (estimated).
        """
        if not self.should_compress(raw_context):
            return raw_context, False

        segments = [s for s in raw_context.split(SEGMENT_SEPARATOR) if s]
        logger.info(
            "Context over budget: ~%d tokens (max %d), %d segments",
            self.estimate_tokens(raw_context),
            self.max_tokens,
            len(segments),
        )

        summarized = await self._summarize(segments)
        if summarized is not None:
            return summarized, True

        return self._truncate(segments), True

    async def _summarize(self, segments: list[str]) -> str | None:
        """AI summarization of the older segments; None when unusable."""
        if self._summarizer is None or len(segments) <= 1:
            return None

        if len(segments) > self.keep_recent:
            older = segments[: -self.keep_recent]
            recent = segments[-self.keep_recent:]
        else:
            older, recent = segments, []

        try:
            summary = await self._summarizer.summarize(
                SEGMENT_SEPARATOR.join(older), self.summary_target_tokens
            )
        except Exception:
            logger.warning("Context summarizer failed, truncating instead", exc_info=True)
            return None

        summary = (summary or "").strip()
        if not summary:
            logger.warning("Context summarizer returned empty text, truncating instead")
            return None

        prepared = join_segments(summary, *recent)
        if self.should_compress(prepared):
            logger.warning(
                "Summary still over budget (~%d tokens), truncating instead",
                self.estimate_tokens(prepared),
            )
            return None

        logger.info("Context summarized: %d → %d chars", len(SEGMENT_SEPARATOR.join(segments)), len(prepared))
        return prepared

    def _truncate(self, segments: list[str]) -> str:
        """Keep the anchor segment and the last K segments, capped to budget."""
        limit = self.max_chars
        if len(segments) == 1:
            return segments[0][:limit]

        anchor = segments[0]
        tail = segments[1:][-self.keep_recent:]
        dropped = len(segments) - 1 - len(tail)
        parts = [anchor, OMISSION_MARKER, *tail] if dropped else [anchor, *tail]
        prepared = SEGMENT_SEPARATOR.join(parts)

        if len(prepared) > limit:
            # Anchor keeps its head, recent turns keep their tail
            anchor = anchor[: limit // 4]
            glue = SEGMENT_SEPARATOR + OMISSION_MARKER + SEGMENT_SEPARATOR
            budget = max(limit - len(anchor) - len(glue), 0)
            recent = SEGMENT_SEPARATOR.join(tail)[-budget:] if budget else ""
            prepared = f"{anchor}{glue}{recent}"[:limit]

        logger.info(
            "Context truncated: kept anchor + %d recent segments, dropped %d",
            len(tail),
            dropped,
        )
        return prepared
