"""Context compression request / response models."""

from __future__ import annotations

from models.base import CamelModel


class CompressContextRequest(CamelModel):
    """POST /api/compress-context — request body."""

    context: str


class CompressContextResponse(CamelModel):
    """POST /api/compress-context — response body."""

    compressed: str
    was_compressed: bool
    original_tokens: int
    estimated_tokens: int
