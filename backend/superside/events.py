from __future__ import annotations

import asyncio
import itertools
import logging
from typing import AsyncIterator, List, Set

from superside.logging_setup import log_event
from superside.schemas import Notification

logger = logging.getLogger(__name__)

DEFAULT_MAILBOX_SIZE = 100

_CLOSED = object()
_ids = itertools.count(1)


class SubscriberClosed(Exception):
    """Raised by Subscriber.receive once the mailbox is closed and drained."""


class Subscriber:
    """Bounded mailbox owned by a single streaming connection."""

    __slots__ = ("id", "_queue", "_closed")

    def __init__(self, maxsize: int = DEFAULT_MAILBOX_SIZE) -> None:
        self.id = next(_ids)
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self._closed = False

    def __repr__(self) -> str:
        return f"<Subscriber {self.id} pending={self._queue.qsize()} closed={self._closed}>"

    @property
    def closed(self) -> bool:
        return self._closed

    def pending(self) -> int:
        return self._queue.qsize()

    def offer(self, notification: Notification) -> bool:
        """Enqueue without waiting. Returns False if the mailbox is full or closed."""
        if self._closed:
            return False
        try:
            self._queue.put_nowait(notification)
        except asyncio.QueueFull:
            return False
        return True

    async def receive(self) -> Notification:
        if self._closed and self._queue.empty():
            raise SubscriberClosed()
        item = await self._queue.get()
        if item is _CLOSED:
            raise SubscriberClosed()
        return item

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        # A blocked reader implies an empty queue, so the marker always fits
        # when it is needed. A full queue gets drained first and then
        # receive() sees the closed flag.
        try:
            self._queue.put_nowait(_CLOSED)
        except asyncio.QueueFull:
            pass

    async def __aiter__(self) -> AsyncIterator[Notification]:
        while True:
            try:
                yield await self.receive()
            except SubscriberClosed:
                return


class SubscriberRegistry:
    """Live set of subscribers; safe to mutate while a broadcast is in flight."""

    def __init__(self, mailbox_size: int = DEFAULT_MAILBOX_SIZE) -> None:
        self._mailbox_size = mailbox_size
        self._subscribers: Set[Subscriber] = set()
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._subscribers)

    async def register(self) -> Subscriber:
        subscriber = Subscriber(maxsize=self._mailbox_size)
        async with self._lock:
            self._subscribers.add(subscriber)
        log_event(
            logger,
            "subscriber registered",
            plane="data",
            extra={"subscriber_id": subscriber.id, "subscribers": len(self._subscribers)},
        )
        return subscriber

    async def unregister(self, subscriber: Subscriber) -> None:
        async with self._lock:
            registered = subscriber in self._subscribers
            self._subscribers.discard(subscriber)
        subscriber.close()
        if not registered:
            return
        log_event(
            logger,
            "subscriber unregistered",
            plane="data",
            extra={"subscriber_id": subscriber.id, "subscribers": len(self._subscribers)},
        )

    async def subscribers(self) -> List[Subscriber]:
        async with self._lock:
            return list(self._subscribers)

    async def close_all(self) -> None:
        async with self._lock:
            subscribers = list(self._subscribers)
            self._subscribers.clear()
        for subscriber in subscribers:
            subscriber.close()


class Broadcaster:
    """Best-effort fan-out: a full mailbox loses the notification, nobody waits."""

    def __init__(self, registry: SubscriberRegistry) -> None:
        self._registry = registry

    async def publish(self, notification: Notification) -> int:
        """Publish notification to all subscribers. Returns the number delivered."""
        delivered = 0
        for subscriber in await self._registry.subscribers():
            if subscriber.offer(notification):
                delivered += 1
            elif not subscriber.closed:
                log_event(
                    logger,
                    "subscriber mailbox full, dropping notification",
                    plane="data",
                    extra={"subscriber_id": subscriber.id},
                    level=logging.DEBUG,
                )
        return delivered
