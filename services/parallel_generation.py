"""Parallel generation engine — fan out one generation task per lesson item.

Every item is generated by its own asyncio task; tasks never wait for each
other and a failing task never cancels its siblings.  Partial batches are a
normal outcome.

Tasks do not touch shared state.  They push events onto a queue drained by a
single aggregator coroutine, which is the only writer of the progress list,
the lesson and the counters, and the only caller of the user callbacks.
``on_item_ready`` therefore fires as soon as an item is aggregated, without
waiting for the rest of the batch.

Per-item progress only moves forward::

    pending → generating → completed | error
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Literal

from config.settings import get_settings
from models.conversation import GeneratedItem, GenerationOutcome, Lesson
from models.generation import GenerationStats, ItemDescription, ItemProgress
from services.collaborators import ContentGenerator
from services.plan_parser import render_description

logger = logging.getLogger(__name__)

CANCELLED_REASON = "cancelled"
GENERATING_PERCENT = 25

# Description kind → rendered item kind
_KIND_MAP = {
    "welcome": "title",
    "content": "content",
    "activity": "interactive",
    "summary": "summary",
}


@dataclass
class GenerationCallbacks:
    """Optional hooks invoked by the aggregator; sync or async callables."""

    on_progress: Callable[[list[ItemProgress]], Any] | None = None
    on_item_ready: Callable[[GeneratedItem, Lesson], Any] | None = None
    on_error: Callable[[int, str], Any] | None = None
    on_complete: Callable[[Lesson, GenerationStats], Any] | None = None


@dataclass(frozen=True)
class _TaskEvent:
    kind: Literal["generating", "ready", "failed"]
    slot: int  # Position in the batch (0-based)
    item: GeneratedItem | None = None
    reason: str = ""


class _BatchCancelled(Exception):
    pass


def new_lesson(title: str) -> Lesson:
    return Lesson(id=f"lesson_{uuid.uuid4().hex[:12]}", title=title, items=[])


async def _invoke(callback: Callable[..., Any] | None, *args: Any) -> None:
    if callback is None:
        return
    try:
        result = callback(*args)
        if inspect.isawaitable(result):
            await result
    except Exception:
        logger.exception("Generation callback %s failed", getattr(callback, "__name__", callback))


class _BatchAggregator:
    """Single writer for progress, lesson and counters of one batch."""

    def __init__(
        self,
        descriptions: list[ItemDescription],
        lesson: Lesson,
        callbacks: GenerationCallbacks,
    ) -> None:
        self.progress = [ItemProgress(index=d.index, title=d.title) for d in descriptions]
        self.lesson = lesson
        self.completed = 0
        self.failed = 0
        self._callbacks = callbacks

    async def run(self, queue: asyncio.Queue[_TaskEvent | None]) -> None:
        while (event := await queue.get()) is not None:
            await self.apply(event)

    async def apply(self, event: _TaskEvent) -> None:
        entry = self.progress[event.slot]

        if event.kind == "generating":
            if not entry.can_move_to("generating"):
                return
            self.progress[event.slot] = entry.model_copy(
                update={"status": "generating", "percent": GENERATING_PERCENT}
            )
            await self.publish_progress()
            return

        if event.kind == "ready":
            if not entry.can_move_to("completed") or event.item is None:
                return
            self.lesson = self.lesson.with_item(event.item)
            self.progress[event.slot] = entry.model_copy(
                update={"status": "completed", "percent": 100}
            )
            self.completed += 1
            await self.publish_progress()
            await _invoke(self._callbacks.on_item_ready, event.item, self.lesson)
            return

        if not entry.can_move_to("error"):
            return
        self.progress[event.slot] = entry.model_copy(
            update={"status": "error", "error": event.reason}
        )
        self.failed += 1
        await self.publish_progress()
        await _invoke(self._callbacks.on_error, entry.index, event.reason)

    async def publish_progress(self) -> None:
        await _invoke(self._callbacks.on_progress, list(self.progress))


class ParallelGenerationEngine:
    """Generates every item of a batch concurrently."""

    def __init__(
        self,
        generator: ContentGenerator,
        *,
        item_timeout: float | None = None,
        max_concurrency: int | None = None,
    ) -> None:
        settings = get_settings()
        self._generator = generator
        self.item_timeout = item_timeout or settings.item_generation_timeout
        self.max_concurrency = max_concurrency or settings.max_concurrent_generations

    async def generate_all(
        self,
        items: list[ItemDescription],
        topic: str,
        age: str,
        *,
        callbacks: GenerationCallbacks | None = None,
        lesson: Lesson | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> GenerationOutcome:
        """Generate all *items*; returns once every task has settled."""
        callbacks = callbacks or GenerationCallbacks()
        cancel_event = cancel_event or asyncio.Event()
        started = time.perf_counter()

        aggregator = _BatchAggregator(items, lesson or new_lesson(topic), callbacks)
        await aggregator.publish_progress()

        logger.info(
            "Starting parallel generation: %d items, topic=%.60s, max_concurrency=%d",
            len(items),
            topic,
            self.max_concurrency,
        )

        queue: asyncio.Queue[_TaskEvent | None] = asyncio.Queue()
        consumer = asyncio.create_task(aggregator.run(queue))
        semaphore = asyncio.Semaphore(self.max_concurrency)
        workers = [
            asyncio.create_task(
                self._generate_one(slot, desc, topic, age, queue, semaphore, cancel_event)
            )
            for slot, desc in enumerate(items)
        ]
        try:
            await asyncio.gather(*workers)
        finally:
            await queue.put(None)
            await consumer

        stats = GenerationStats(
            total=len(items),
            completed=aggregator.completed,
            failed=aggregator.failed,
            elapsed_ms=round((time.perf_counter() - started) * 1000, 1),
            cancelled=cancel_event.is_set(),
        )
        logger.info(
            "Parallel generation finished: %d/%d completed, %d failed in %.0fms%s",
            stats.completed,
            stats.total,
            stats.failed,
            stats.elapsed_ms,
            " (cancelled)" if stats.cancelled else "",
        )

        await _invoke(callbacks.on_complete, aggregator.lesson, stats)
        return GenerationOutcome(
            stats=stats, lesson=aggregator.lesson, progress=list(aggregator.progress)
        )

    async def _generate_one(
        self,
        slot: int,
        desc: ItemDescription,
        topic: str,
        age: str,
        queue: asyncio.Queue[_TaskEvent | None],
        semaphore: asyncio.Semaphore,
        cancel_event: asyncio.Event,
    ) -> None:
        if cancel_event.is_set():
            await queue.put(_TaskEvent("failed", slot, reason=CANCELLED_REASON))
            return

        async with semaphore:
            if cancel_event.is_set():
                await queue.put(_TaskEvent("failed", slot, reason=CANCELLED_REASON))
                return

            await queue.put(_TaskEvent("generating", slot))
            try:
                content = await self._run_cancellable(
                    self._generator.generate_item(render_description(desc), topic, age),
                    cancel_event,
                )
            except _BatchCancelled:
                reason = CANCELLED_REASON
            except TimeoutError:
                reason = f"timed out after {self.item_timeout:g}s"
            except Exception as exc:
                reason = str(exc) or type(exc).__name__
            else:
                item = GeneratedItem(
                    id=f"item_{desc.index}_{uuid.uuid4().hex[:9]}",
                    index=desc.index,
                    title=desc.title,
                    kind=_KIND_MAP.get(desc.kind, "content"),
                    rendered_content=content,
                )
                await queue.put(_TaskEvent("ready", slot, item=item))
                return

        logger.warning("Item %d (%s) failed: %s", desc.index, desc.title, reason)
        await queue.put(_TaskEvent("failed", slot, reason=reason))

    async def _run_cancellable(self, coro, cancel_event: asyncio.Event) -> str:
        """Await *coro* under the item timeout, aborting when the batch is cancelled."""
        generation = asyncio.ensure_future(asyncio.wait_for(coro, self.item_timeout))
        stop = asyncio.ensure_future(cancel_event.wait())
        try:
            done, _ = await asyncio.wait(
                {generation, stop}, return_when=asyncio.FIRST_COMPLETED
            )
        except asyncio.CancelledError:
            generation.cancel()
            raise
        finally:
            stop.cancel()

        if generation in done:
            return generation.result()

        generation.cancel()
        await asyncio.gather(generation, return_exceptions=True)
        raise _BatchCancelled()
