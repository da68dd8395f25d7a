"""Data Stream Protocol encoder — Vercel AI SDK UI Message Stream v1.

Encodes conversation and batch-generation events as SSE lines
(``"data: {json}\\n\\n"``) for ``useChat`` on the frontend.  Batch events
are custom data parts:

- ``data-progress``    — full per-item progress list
- ``data-item-ready``  — one generated item, as soon as it is aggregated
- ``data-item-error``  — one failed item and its reason
- ``data-complete``    — batch statistics
- ``data-response``    — the final ``ConversationResponse`` (with state)

Required response header: ``x-vercel-ai-ui-message-stream: v1``
Termination marker: ``data: [DONE]\\n\\n``
"""

from __future__ import annotations

import json
import uuid
from typing import Any

from models.conversation import ConversationResponse, GeneratedItem
from models.generation import GenerationStats, ItemProgress

STREAM_HEADERS = {
    "x-vercel-ai-ui-message-stream": "v1",
    "Cache-Control": "no-cache, no-transform",
    "X-Accel-Buffering": "no",
}

HEARTBEAT = ": heartbeat\n\n"


class DataStreamEncoder:
    """Every public method returns a ready-to-yield SSE string."""

    @staticmethod
    def _sse(payload: dict[str, Any]) -> str:
        return f"data: {json.dumps(payload, ensure_ascii=False, default=str)}\n\n"

    @staticmethod
    def _id() -> str:
        return uuid.uuid4().hex[:8]

    # ── Message control ──────────────────────────────────────────

    def start(self, message_id: str | None = None) -> str:
        return self._sse({"type": "start", "messageId": message_id or self._id()})

    def finish(self) -> str:
        return self._sse({"type": "finish"}) + "data: [DONE]\n\n"

    # ── Text ─────────────────────────────────────────────────────

    def text(self, content: str, text_id: str | None = None) -> str:
        """A complete text part (start, one delta, end)."""
        tid = text_id or self._id()
        return (
            self._sse({"type": "text-start", "id": tid})
            + self._sse({"type": "text-delta", "id": tid, "delta": content})
            + self._sse({"type": "text-end", "id": tid})
        )

    # ── Custom data ──────────────────────────────────────────────

    def data(self, name: str, payload: Any) -> str:
        return self._sse({"type": f"data-{name}", "data": payload})

    def progress(self, progress: list[ItemProgress]) -> str:
        return self.data("progress", [p.model_dump(by_alias=True) for p in progress])

    def item_ready(self, item: GeneratedItem, item_count: int) -> str:
        return self.data(
            "item-ready",
            {"item": item.model_dump(by_alias=True), "itemCount": item_count},
        )

    def item_error(self, index: int, reason: str) -> str:
        return self.data("item-error", {"index": index, "error": reason})

    def complete(self, stats: GenerationStats) -> str:
        return self.data("complete", stats.model_dump(by_alias=True))

    def response(self, response: ConversationResponse) -> str:
        return self.data("response", response.model_dump(mode="json", by_alias=True))

    # ── Error ────────────────────────────────────────────────────

    def error(self, text: str) -> str:
        return self._sse({"type": "error", "errorText": text})
