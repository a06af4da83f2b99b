# backend/calendar_booking/routers/realtime.py
"""
Real-time channel.

WS /ws — pushes {"event": ..., "data": ...} for every committed slot or
booking change. Incoming client messages are read and ignored; they only
serve to notice disconnects while no events flow.
"""

import asyncio
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from ..services import EventBroadcaster, Subscription

logger = logging.getLogger(__name__)

router = APIRouter(tags=["realtime"])


async def _pump_events(websocket: WebSocket, sub: Subscription) -> None:
    while True:
        event = await sub.get()
        await websocket.send_json(event.to_dict())


async def _drain_client(websocket: WebSocket) -> None:
    while True:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            return


@router.websocket("/ws")
async def events_socket(websocket: WebSocket):
    broadcaster: EventBroadcaster = websocket.app.state.broadcaster

    # register before accept so nothing committed after the handshake is missed
    sub = broadcaster.subscribe()
    try:
        await websocket.accept()

        pump = asyncio.create_task(_pump_events(websocket, sub))
        drain = asyncio.create_task(_drain_client(websocket))
        done, pending = await asyncio.wait({pump, drain}, return_when=asyncio.FIRST_COMPLETED)

        for task in pending:
            task.cancel()
        for task in pending:
            try:
                await task
            except asyncio.CancelledError:
                pass
        for task in done:
            exc = task.exception()
            if exc is not None and not isinstance(exc, WebSocketDisconnect):
                logger.warning(f"Subscriber {sub.id} closed with error: {exc!r}")
    finally:
        broadcaster.unsubscribe(sub)
