from __future__ import annotations

import asyncio
import contextlib
import logging
from datetime import datetime, timezone
from typing import List, Optional

from superside.events import DEFAULT_MAILBOX_SIZE, Broadcaster, Subscriber, SubscriberRegistry
from superside.history import DEFAULT_HISTORY_SIZE, HistoryBuffer
from superside.logging_setup import log_event
from superside.schemas import Notification, StateChangedEvent, notification_from_event

logger = logging.getLogger(__name__)

DEFAULT_INBOUND_QUEUE_SIZE = 25


class EventRelay:
    """Linearizes incoming state changes into history and live fan-out.

    HTTP handlers call ``submit`` concurrently; a single task drains the
    inbound queue and, for every event in FIFO order, records it in the
    history buffer before publishing it. A listener therefore never receives
    a notification that a later ``snapshot`` would not contain.
    """

    def __init__(
        self,
        *,
        history_size: int = DEFAULT_HISTORY_SIZE,
        inbound_queue_size: int = DEFAULT_INBOUND_QUEUE_SIZE,
        mailbox_size: int = DEFAULT_MAILBOX_SIZE,
    ) -> None:
        self.history = HistoryBuffer(history_size)
        self.registry = SubscriberRegistry(mailbox_size=mailbox_size)
        self.broadcaster = Broadcaster(self.registry)
        self._inbound: asyncio.Queue = asyncio.Queue(maxsize=inbound_queue_size)
        self._task: Optional[asyncio.Task] = None
        self.last_changed: Optional[datetime] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def submit(self, event: StateChangedEvent) -> None:
        # Waits while the inbound queue is full; upstream senders get backpressure.
        await self._inbound.put(event)

    async def process(self, event: StateChangedEvent) -> Notification:
        self.history.insert(event)
        notification = notification_from_event(event)
        delivered = await self.broadcaster.publish(notification)
        self.last_changed = datetime.now(timezone.utc)
        log_event(
            logger,
            "state change relayed",
            plane="data",
            extra={
                "cluster": notification.cluster_name,
                "service": notification.event.service.name,
                "previous_status": notification.event.previous_status,
                "status": notification.event.service.status,
                "delivered": delivered,
            },
            level=logging.DEBUG,
        )
        return notification

    async def run(self) -> None:
        while True:
            event = await self._inbound.get()
            try:
                await self.process(event)
            except Exception:
                logger.exception("failed to relay state change")
            finally:
                self._inbound.task_done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self.run(), name="superside-ingest")
        log_event(
            logger,
            "relay started",
            plane="control",
            extra={
                "history_size": self.history.capacity,
                "inbound_queue_size": self._inbound.maxsize,
            },
        )

    async def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None
        await self.registry.close_all()
        log_event(logger, "relay stopped", plane="control")

    async def join(self) -> None:
        """Wait until every submitted event has been relayed."""
        await self._inbound.join()

    def pending(self) -> int:
        return self._inbound.qsize()

    def snapshot(self) -> List[Notification]:
        return self.history.snapshot()

    async def subscribe(self) -> Subscriber:
        return await self.registry.register()

    async def unsubscribe(self, subscriber: Subscriber) -> None:
        await self.registry.unregister(subscriber)
