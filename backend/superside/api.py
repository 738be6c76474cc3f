from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import AsyncIterator, List

from fastapi import APIRouter, Depends, Request, WebSocket, WebSocketDisconnect
from fastapi.responses import StreamingResponse

from superside.events import Subscriber
from superside.logging_setup import log_event
from superside.relay import EventRelay
from superside.schemas import ApiMessage, ApiStatus, Notification, StateChangedEvent


logger = logging.getLogger(__name__)

router = APIRouter()


def get_relay(request: Request) -> EventRelay:
    return request.app.state.relay


# ============================================================
# Health / state
# ============================================================

@router.get("/health", response_model=ApiStatus)
async def health(relay: EventRelay = Depends(get_relay)):
    return ApiStatus(message="Healthy!", last_changed=relay.last_changed)


@router.get("/state", response_model=List[Notification])
async def state(relay: EventRelay = Depends(get_relay)):
    """Retained notifications, oldest first."""
    return relay.snapshot()


# ============================================================
# Ingestion
# ============================================================

@router.post("/update", response_model=ApiMessage)
async def update(event: StateChangedEvent, relay: EventRelay = Depends(get_relay)):
    await relay.submit(event)
    return ApiMessage(message="OK")


# ============================================================
# Websocket listeners
# ============================================================

async def _close_on_disconnect(websocket: WebSocket, subscriber: Subscriber) -> None:
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                return
    finally:
        subscriber.close()


@router.websocket("/listen")
async def listen(websocket: WebSocket):
    relay: EventRelay = websocket.app.state.relay
    # Register before accepting so the client sees everything after the handshake.
    subscriber = await relay.subscribe()
    watcher = None
    try:
        await websocket.accept()
        watcher = asyncio.create_task(_close_on_disconnect(websocket, subscriber))
        async for notification in subscriber:
            await websocket.send_text(notification.to_json())
    except WebSocketDisconnect as e:
        log_event(
            logger,
            "listener went away",
            plane="data",
            extra={"subscriber_id": subscriber.id, "code": e.code},
            level=logging.WARNING,
        )
    finally:
        try:
            if watcher is not None:
                watcher.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await watcher
        finally:
            await relay.unsubscribe(subscriber)


# ============================================================
# SSE events
# ============================================================

async def _event_stream(relay: EventRelay) -> AsyncIterator[str]:
    subscriber = await relay.subscribe()
    try:
        async for notification in subscriber:
            yield f"event: notification\ndata: {notification.to_json()}\n\n"
    finally:
        await relay.unsubscribe(subscriber)


@router.get("/events")
async def events(relay: EventRelay = Depends(get_relay)):
    return StreamingResponse(
        _event_stream(relay),
        media_type="text/event-stream",
    )
