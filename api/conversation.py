"""Conversation API — the single entry point for teacher turns.

The service is stateless: the client sends the ``ConversationState`` it got
back from the previous turn with every request.

Endpoints:
- ``POST /api/conversation``         — JSON response
- ``POST /api/conversation/stream``  — SSE Data Stream Protocol; streams batch
  progress and items while a plan is being generated
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import AsyncGenerator

from fastapi import APIRouter, Depends, HTTPException, Request
from starlette.responses import StreamingResponse

from agents.factory import get_orchestrator
from agents.orchestrator import Orchestrator
from errors.exceptions import (
    ChainConfigurationError,
    NoHandlerFoundError,
    UnknownActionError,
)
from models.conversation import ConversationRequest, ConversationResponse
from services.datastream import HEARTBEAT, STREAM_HEADERS, DataStreamEncoder
from services.parallel_generation import GenerationCallbacks

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["conversation"])

_SSE_HEARTBEAT_INTERVAL = 15  # seconds
_POLL_INTERVAL = 1.0  # seconds between disconnect checks


@router.post("/conversation", response_model=ConversationResponse)
async def conversation(
    req: ConversationRequest,
    orchestrator: Orchestrator = Depends(get_orchestrator),
):
    """Process one turn: a free-text message or a named action."""
    try:
        return await orchestrator.handle(
            req.message, req.state, req.action, item_index=req.item_index
        )
    except UnknownActionError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except (NoHandlerFoundError, ChainConfigurationError) as e:
        logger.exception("Conversation routing misconfigured")
        raise HTTPException(
            status_code=500, detail="Conversation routing is misconfigured"
        ) from e


# ── SSE streaming endpoint ──────────────────────────────────────


@router.post("/conversation/stream")
async def conversation_stream(
    req: ConversationRequest,
    request: Request,
    orchestrator: Orchestrator = Depends(get_orchestrator),
):
    """Same turn as ``/conversation``, streamed.

    Bulk generation emits ``data-progress``, ``data-item-ready``,
    ``data-item-error`` and ``data-complete`` parts as items settle; every
    turn ends with the reply text, a ``data-response`` part and ``[DONE]``.
    Disconnecting cancels the remaining items of a running batch.
    """
    if req.action and req.action not in orchestrator.action_names:
        raise HTTPException(
            status_code=400, detail=str(UnknownActionError(req.action, orchestrator.action_names))
        )
    return StreamingResponse(
        _conversation_stream_generator(req, request, orchestrator),
        media_type="text/event-stream",
        headers=STREAM_HEADERS,
    )


async def _conversation_stream_generator(
    req: ConversationRequest,
    request: Request,
    orchestrator: Orchestrator,
) -> AsyncGenerator[str, None]:
    enc = DataStreamEncoder()
    events: asyncio.Queue[str] = asyncio.Queue()
    cancel_event = asyncio.Event()

    callbacks = GenerationCallbacks(
        on_progress=lambda progress: events.put_nowait(enc.progress(progress)),
        on_item_ready=lambda item, lesson: events.put_nowait(
            enc.item_ready(item, len(lesson.items))
        ),
        on_error=lambda index, reason: events.put_nowait(enc.item_error(index, reason)),
        on_complete=lambda lesson, stats: events.put_nowait(enc.complete(stats)),
    )
    turn = asyncio.create_task(
        orchestrator.handle(
            req.message,
            req.state,
            req.action,
            item_index=req.item_index,
            callbacks=callbacks,
            cancel_event=cancel_event,
        )
    )

    yield enc.start()
    try:
        last_heartbeat = time.monotonic()
        while not (turn.done() and events.empty()):
            getter = asyncio.ensure_future(events.get())
            await asyncio.wait(
                {getter, turn},
                timeout=_POLL_INTERVAL,
                return_when=asyncio.FIRST_COMPLETED,
            )
            if getter.done():
                yield getter.result()
                last_heartbeat = time.monotonic()
                continue
            getter.cancel()

            if not turn.done() and not cancel_event.is_set() and await request.is_disconnected():
                logger.info("Client disconnected, cancelling generation")
                cancel_event.set()
            if time.monotonic() - last_heartbeat > _SSE_HEARTBEAT_INTERVAL:
                yield HEARTBEAT
                last_heartbeat = time.monotonic()

        response = turn.result()
        yield enc.text(response.message)
        yield enc.response(response)
    except Exception:
        logger.exception("Conversation stream failed")
        yield enc.error("Conversation processing failed")
    finally:
        if not turn.done():
            cancel_event.set()
            turn.cancel()

    yield enc.finish()
