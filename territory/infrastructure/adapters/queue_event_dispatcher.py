"""Asyncio queue notification dispatcher.

Implements TerritoryEventPublisherProtocol by putting payloads on a
bounded asyncio.Queue without waiting. A background task fans each
payload out to the registered subscribers (webhook senders, live map
pushers and so on). A failing subscriber is logged and does not stop
delivery to the others; a full queue drops the payload with a warning.
The allocation engine therefore never blocks on, or fails because of,
notification delivery.
"""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Awaitable, Callable
from typing import Optional

from territory.application.ports.territory_event_publisher import (
    TerritoryEventPublisherProtocol,
)
from territory.domain.events.territory_changed import TerritoryChangedPayload
from territory.infrastructure.observability.logging import get_logger_for_service

Subscriber = Callable[[TerritoryChangedPayload], Awaitable[None]]

DEFAULT_MAX_QUEUE_SIZE = 1_000


class QueueEventDispatcher(TerritoryEventPublisherProtocol):
    """Fire-and-forget publisher with background fan-out.

    Attributes:
        delivered: Successful subscriber deliveries.
        failed: Subscriber deliveries that raised.
        dropped: Payloads discarded because the queue was full.

    Example:
        >>> dispatcher = QueueEventDispatcher()
        >>> dispatcher.subscribe(send_webhooks)
        >>> await dispatcher.start()
        >>> engine = AllocationEngine(store, clock, publisher=dispatcher)
    """

    def __init__(self, max_queue_size: int = DEFAULT_MAX_QUEUE_SIZE) -> None:
        self._queue: asyncio.Queue[TerritoryChangedPayload] = asyncio.Queue(
            maxsize=max_queue_size
        )
        self._subscribers: list[Subscriber] = []
        self._running = False
        self._task: Optional[asyncio.Task[None]] = None
        self._log = get_logger_for_service(
            "queue_event_dispatcher", component="notification"
        )
        self.delivered = 0
        self.failed = 0
        self.dropped = 0

    @property
    def running(self) -> bool:
        """Check if the fan-out task is running."""
        return self._running

    @property
    def pending(self) -> int:
        """Payloads waiting to be delivered."""
        return self._queue.qsize()

    def subscribe(self, subscriber: Subscriber) -> None:
        """Register an async callable to receive every payload."""
        self._subscribers.append(subscriber)

    async def publish(self, payload: TerritoryChangedPayload) -> None:
        try:
            self._queue.put_nowait(payload)
        except asyncio.QueueFull:
            self.dropped += 1
            self._log.warning(
                "notification_dropped_queue_full",
                event_type=payload.event_type,
                sequence=payload.sequence,
            )

    async def start(self) -> None:
        """Start the fan-out task. Idempotent."""
        if self._running:
            return
        self._running = True
        self._task = asyncio.create_task(self._run_loop())
        self._log.info("notification_dispatcher_started", subscribers=len(self._subscribers))

    async def stop(self, drain: bool = True) -> None:
        """Stop the fan-out task.

        Args:
            drain: Let the running task finish every queued payload, including
                the one it is delivering, then deliver anything left inline.
                Without it the in-flight payload may be cut short.
        """
        task, self._task = self._task, None
        if drain and task is not None and not task.done():
            await self._queue.join()
        self._running = False
        if task is not None:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        if drain:
            await self.drain()
        self._log.info("notification_dispatcher_stopped", pending=self.pending)

    async def drain(self) -> int:
        """Deliver every queued payload now.

        Returns:
            Number of payloads processed.
        """
        processed = 0
        while not self._queue.empty():
            payload = self._queue.get_nowait()
            try:
                await self._deliver(payload)
            finally:
                self._queue.task_done()
            processed += 1
        return processed

    async def _run_loop(self) -> None:
        while self._running:
            payload = await self._queue.get()
            try:
                await self._deliver(payload)
            finally:
                self._queue.task_done()

    async def _deliver(self, payload: TerritoryChangedPayload) -> None:
        for subscriber in self._subscribers:
            try:
                await subscriber(payload)
                self.delivered += 1
            except asyncio.CancelledError:
                raise
            except Exception as e:
                self.failed += 1
                self._log.warning(
                    "notification_dispatch_failed",
                    event_type=payload.event_type,
                    sequence=payload.sequence,
                    error=str(e),
                )
