"""
Per-subscriber fan-out for the push channel.

Each subscriber gets its own bounded queue drained by its own writer task,
so a slow client only fills its own queue. A subscriber whose queue is full
or whose send fails is dropped; the others are unaffected.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from forkwatch.core.control import protocol
from forkwatch.core.units.models import UnitsSnapshot

logger = logging.getLogger(__name__)

DEFAULT_QUEUE_SIZE = 64

SendFn = Callable[[dict[str, Any]], Awaitable[None]]

_CLOSE = object()


class Subscriber:
    """One connected client."""

    _ids = itertools.count(1)

    def __init__(self, send: SendFn, max_queue: int) -> None:
        self.id = next(self._ids)
        self.send = send
        self.queue: asyncio.Queue[Any] = asyncio.Queue(maxsize=max_queue)
        self.task: asyncio.Task[None] | None = None
        self.closed = False

    def __repr__(self) -> str:
        return f"Subscriber(id={self.id})"


class SubscriberHub:
    """
    Set of push-channel subscribers.

    Example:
        >>> hub = SubscriberHub()
        >>> subscriber = await hub.connect(websocket.send_json)
        >>> hub.publish(protocol.unit_changed("Widget", "Versions changed"))
    """

    def __init__(self, max_queue: int = DEFAULT_QUEUE_SIZE) -> None:
        self.max_queue = max_queue
        self._subscribers: dict[int, Subscriber] = {}

    def __len__(self) -> int:
        return len(self._subscribers)

    async def connect(self, send: SendFn) -> Subscriber:
        subscriber = Subscriber(send, self.max_queue)
        subscriber.task = asyncio.create_task(self._writer(subscriber))
        self._subscribers[subscriber.id] = subscriber
        logger.debug("Subscriber %d connected (%d total)", subscriber.id, len(self))
        return subscriber

    def send(self, subscriber: Subscriber, message: dict[str, Any]) -> bool:
        """Queue a message for one subscriber; drops it if its queue is full."""
        if subscriber.closed:
            return False
        try:
            subscriber.queue.put_nowait(message)
        except asyncio.QueueFull:
            logger.warning("Subscriber %d is not keeping up; dropping it", subscriber.id)
            self._drop(subscriber)
            return False
        return True

    def publish(self, message: dict[str, Any]) -> int:
        """Queue a message for every subscriber. Returns how many accepted it."""
        return sum(self.send(subscriber, message) for subscriber in list(self._subscribers.values()))

    async def notify_unit_changed(self, unit: str, message: str, snapshot: UnitsSnapshot) -> None:
        """Orchestrator listener: targeted change notice followed by a full snapshot."""
        self.publish(protocol.unit_changed(unit, message))
        self.publish(protocol.units_snapshot(snapshot))

    async def disconnect(self, subscriber: Subscriber) -> None:
        """Flush what is queued, then stop the subscriber's writer."""
        if subscriber.closed:
            return
        self._subscribers.pop(subscriber.id, None)
        subscriber.closed = True
        try:
            subscriber.queue.put_nowait(_CLOSE)
        except asyncio.QueueFull:
            if subscriber.task is not None:
                subscriber.task.cancel()
        if subscriber.task is not None:
            await asyncio.gather(subscriber.task, return_exceptions=True)
        logger.debug("Subscriber %d disconnected (%d left)", subscriber.id, len(self))

    async def close(self) -> None:
        for subscriber in list(self._subscribers.values()):
            await self.disconnect(subscriber)

    def _drop(self, subscriber: Subscriber) -> None:
        self._subscribers.pop(subscriber.id, None)
        subscriber.closed = True
        if subscriber.task is not None and subscriber.task is not asyncio.current_task():
            subscriber.task.cancel()

    async def _writer(self, subscriber: Subscriber) -> None:
        while True:
            message = await subscriber.queue.get()
            if message is _CLOSE:
                return
            try:
                await subscriber.send(message)
            except Exception as e:
                logger.warning("Send to subscriber %d failed (%s); dropping it", subscriber.id, e)
                self._drop(subscriber)
                return
