"""Global concurrency and timeout control for outbound LLM calls.

Bulk generation fans out one call per lesson item, so a few simultaneous
batches could easily exceed provider rate limits.  Every collaborator call
goes through :func:`rate_limited_llm_call`, which caps *concurrent* calls
per worker process with an ``asyncio.Semaphore`` and enforces a per-call
timeout.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable

from config.settings import get_settings

logger = logging.getLogger(__name__)

_llm_semaphore: asyncio.Semaphore | None = None


def _get_semaphore() -> asyncio.Semaphore:
    """Lazy-init to ensure semaphore is bound to the running event loop."""
    global _llm_semaphore
    if _llm_semaphore is None:
        limit = get_settings().max_concurrent_llm
        _llm_semaphore = asyncio.Semaphore(limit)
        logger.info("LLM concurrency semaphore initialized (max=%d)", limit)
    return _llm_semaphore


async def rate_limited_llm_call(
    func: Callable[..., Awaitable[Any]],
    *args: Any,
    timeout: float | None = None,
    **kwargs: Any,
) -> Any:
    """Execute an async LLM function with concurrency limiting and a timeout.

    Usage::

        result = await rate_limited_llm_call(agent.run, prompt, timeout=30)

    Raises:
        TimeoutError: if the call does not finish within *timeout* seconds.
    """
    sem = _get_semaphore()
    async with sem:
        if timeout is None:
            return await func(*args, **kwargs)
        return await asyncio.wait_for(func(*args, **kwargs), timeout=timeout)
