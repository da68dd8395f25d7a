"""Batch generation models — item descriptions, per-item progress, stats."""

from __future__ import annotations

from typing import Literal

from pydantic import Field

from models.base import CamelModel, FrozenCamelModel

ItemKind = Literal["welcome", "content", "activity", "summary"]
ProgressStatus = Literal["pending", "generating", "completed", "error"]

# pending → generating → {completed | error}; terminal states never change
_STATUS_RANK: dict[str, int] = {
    "pending": 0,
    "generating": 1,
    "completed": 2,
    "error": 2,
}


class ItemDescription(FrozenCamelModel):
    """One item of a plan, as extracted from the plan text."""

    index: int  # 1-based
    title: str
    kind: ItemKind = "content"
    goal: str = ""
    content: str = ""


class ItemProgress(CamelModel):
    """Generation progress of a single item."""

    index: int
    title: str
    status: ProgressStatus = "pending"
    percent: int = Field(default=0, ge=0, le=100)
    error: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status in ("completed", "error")

    def can_move_to(self, status: str) -> bool:
        """True if *status* does not regress this entry."""
        if self.is_terminal:
            return False
        return _STATUS_RANK[status] > _STATUS_RANK[self.status]


class GenerationStats(CamelModel):
    """Aggregate outcome of one batch."""

    total: int
    completed: int = 0
    failed: int = 0
    elapsed_ms: float = 0.0
    cancelled: bool = False
