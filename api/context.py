"""Context compression endpoint — lets clients keep their own context bounded."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from agents.factory import get_compressor
from models.context import CompressContextRequest, CompressContextResponse
from services.context_compressor import ContextCompressor

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["context"])


@router.post("/compress-context", response_model=CompressContextResponse)
async def compress_context(
    req: CompressContextRequest,
    compressor: ContextCompressor = Depends(get_compressor),
):
    """Compress *context* to the configured token budget when it exceeds it."""
    original_tokens = compressor.estimate_tokens(req.context)
    compressed, was_compressed = await compressor.prepare(req.context)
    if was_compressed:
        logger.info(
            "Compressed context: ~%d → ~%d tokens",
            original_tokens,
            compressor.estimate_tokens(compressed),
        )
    return CompressContextResponse(
        compressed=compressed,
        was_compressed=was_compressed,
        original_tokens=original_tokens,
        estimated_tokens=compressor.estimate_tokens(compressed),
    )
