"""Fan-out of tracker events to attached observers.

Every subscriber gets its own bounded queue. The first item on a new
subscription is a ``ResyncSnapshot`` of the current state, so a late
observer converges without replaying history. Delivery uses
``put_nowait`` and never blocks the poller: when a subscriber falls
behind far enough to fill its queue, its backlog is replaced with a
fresh snapshot.
"""
from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Callable

from agentwatch.adapters.events import ResyncSnapshot, TrackerEvent

logger = logging.getLogger(__name__)

SnapshotProvider = Callable[[], ResyncSnapshot]


class Subscription:
    """One observer's view of the event stream."""

    def __init__(self, broadcaster: Broadcaster, maxsize: int, name: str = "") -> None:
        self._broadcaster = broadcaster
        self._queue: asyncio.Queue[TrackerEvent] = asyncio.Queue(maxsize=max(1, maxsize))
        self._closed = False
        self.name = name
        self.resyncs = 0

    @property
    def closed(self) -> bool:
        return self._closed

    def qsize(self) -> int:
        return self._queue.qsize()

    def _offer(self, event: TrackerEvent) -> None:
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            self.resyncs += 1
            logger.warning(
                "Subscriber %s queue full (%d), dropping backlog and resyncing",
                self.name or id(self), self._queue.qsize(),
            )
            self._discard_backlog()
            self._queue.put_nowait(self._broadcaster.snapshot())

    def _discard_backlog(self) -> None:
        while not self._queue.empty():
            try:
                self._queue.get_nowait()
            except asyncio.QueueEmpty:
                break

    async def get(self) -> TrackerEvent:
        return await self._queue.get()

    def drain(self) -> list[TrackerEvent]:
        """Return every queued event without waiting."""
        events: list[TrackerEvent] = []
        while True:
            try:
                events.append(self._queue.get_nowait())
            except asyncio.QueueEmpty:
                return events

    async def consume(self) -> AsyncIterator[TrackerEvent]:
        """Yield events as they arrive. Stops on close()."""
        while not self._closed:
            try:
                event = await asyncio.wait_for(self._queue.get(), timeout=0.5)
                yield event
            except asyncio.TimeoutError:
                continue
            except asyncio.CancelledError:
                break

    def close(self) -> None:
        """Detach from the broadcaster permanently."""
        if self._closed:
            return
        self._closed = True
        self._broadcaster.unsubscribe(self)


class Broadcaster:
    """Explicit subscriber set with snapshot-on-subscribe."""

    def __init__(self, snapshot_provider: SnapshotProvider, queue_size: int = 1000) -> None:
        self._snapshot_provider = snapshot_provider
        self._queue_size = queue_size
        self._subscribers: list[Subscription] = []

    def snapshot(self) -> ResyncSnapshot:
        return self._snapshot_provider()

    def subscribe(self, name: str = "") -> Subscription:
        subscription = Subscription(self, self._queue_size, name=name)
        subscription._offer(self.snapshot())
        self._subscribers.append(subscription)
        logger.info(
            "Subscriber %s attached (subscribers=%d)",
            name or id(subscription), len(self._subscribers),
        )
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        if subscription in self._subscribers:
            self._subscribers.remove(subscription)
            logger.info(
                "Subscriber %s detached (subscribers=%d)",
                subscription.name or id(subscription), len(self._subscribers),
            )

    def publish(self, event: TrackerEvent) -> None:
        for subscription in list(self._subscribers):
            subscription._offer(event)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)
