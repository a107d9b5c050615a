"""In-process event bus.

Routes publish a SystemEvent for every secret lifecycle change and return
immediately; a background worker fans events out to subscribers so slow
consumers (webhook delivery) never hold up a request.

Usage:
    from nullvault.events import event_bus

    await event_bus.emit(SystemEvent(event_type=EventType.SECRET_CREATED, secret_id=7))

    event_bus.subscribe(handler, event_types=[EventType.SECRET_REVEALED])
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable, Coroutine
from typing import Any

from nullvault.schemas.events import EventType, SystemEvent

logger = logging.getLogger(__name__)

EventHandler = Callable[[SystemEvent], Coroutine[Any, Any, None]]


class EventBus:
    """Queue-backed pub/sub with per-type and catch-all subscribers."""

    def __init__(self) -> None:
        self._catch_all: list[EventHandler] = []
        self._by_type: dict[EventType, list[EventHandler]] = {}
        self._queue: asyncio.Queue[SystemEvent] | None = None
        self._worker: asyncio.Task[None] | None = None

    # ── Subscriptions ────────────────────────────────────────────────

    def subscribe(self, handler: EventHandler, event_types: list[EventType] | None = None) -> None:
        """Register `handler` for the given types, or for everything when None."""
        if event_types is None:
            self._catch_all.append(handler)
        else:
            for et in event_types:
                self._by_type.setdefault(et, []).append(handler)
        logger.info(
            "Subscribed %s to %s",
            handler.__name__,
            "all events" if event_types is None else [t.value for t in event_types],
        )

    def unsubscribe(self, handler: EventHandler) -> None:
        if handler in self._catch_all:
            self._catch_all.remove(handler)
        for handlers in self._by_type.values():
            if handler in handlers:
                handlers.remove(handler)

    def handlers_for(self, event_type: EventType) -> list[EventHandler]:
        return [*self._catch_all, *self._by_type.get(event_type, [])]

    # ── Publishing ───────────────────────────────────────────────────

    async def emit(self, event: SystemEvent) -> None:
        """Queue an event for background dispatch."""
        if self._queue is None:
            self.start()
        assert self._queue is not None
        await self._queue.put(event)
        logger.debug("Event emitted: %s (secret=%s)", event.event_type.value, event.secret_id)

    async def dispatch(self, event: SystemEvent) -> None:
        """Deliver one event to every matching handler concurrently.

        A failing handler is logged and does not affect the others.
        """
        handlers = self.handlers_for(event.event_type)
        if not handlers:
            return
        results = await asyncio.gather(*(h(event) for h in handlers), return_exceptions=True)
        for handler, result in zip(handlers, results):
            if isinstance(result, Exception):
                logger.error(
                    "Handler %s failed for %s: %s", handler.__name__, event.event_type.value, result
                )

    async def _run(self) -> None:
        assert self._queue is not None
        queue = self._queue
        while True:
            event = await queue.get()
            try:
                await self.dispatch(event)
            except Exception:
                logger.exception("Error dispatching %s", event.event_type.value)
            finally:
                queue.task_done()

    # ── Lifecycle ────────────────────────────────────────────────────

    def start(self) -> None:
        """Create the queue and worker task. Must run inside an event loop."""
        if self._queue is None:
            self._queue = asyncio.Queue()
        if self._worker is None or self._worker.done():
            self._worker = asyncio.create_task(self._run())
            logger.info("Event worker started")

    async def stop(self) -> None:
        """Drain pending events, then cancel the worker."""
        if self._queue is not None:
            await self._queue.join()
        if self._worker is not None and not self._worker.done():
            self._worker.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._worker
        self._worker = None
        self._queue = None
        logger.info("Event system stopped")


# Module-level singleton
event_bus = EventBus()
