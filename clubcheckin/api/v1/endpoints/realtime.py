"""Realtime WebSocket endpoint for live check-in updates."""
import asyncio
from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status
from pydantic import ValidationError

from clubcheckin.api.deps import authenticate_websocket, get_db_context
from clubcheckin.core.logging_config import get_logger
from clubcheckin.realtime.broadcaster import Broadcaster, Subscriber
from clubcheckin.realtime.messages import (
    ErrorFrame,
    Joined,
    JoinEvent,
    Left,
    client_message_adapter,
)
from clubcheckin.services.directory import can_follow_event

logger = get_logger(__name__)
router = APIRouter()


async def _pump(websocket: WebSocket, subscriber: Subscriber) -> None:
    """Write queued frames to the socket in order until the subscriber is dropped."""
    while True:
        frame = await subscriber.next_frame()
        if frame is None:
            await websocket.close(code=status.WS_1013_TRY_AGAIN_LATER)
            return
        await websocket.send_json(frame)


async def _read(
    websocket: WebSocket,
    subscriber: Subscriber,
    broadcaster: Broadcaster,
) -> None:
    """Apply join/leave requests from the client until it disconnects."""
    while True:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            raise WebSocketDisconnect(message.get("code", status.WS_1000_NORMAL_CLOSURE))

        raw = message.get("text")
        request = None
        if raw is not None:
            try:
                request = client_message_adapter.validate_json(raw)
            except ValidationError:
                pass
        if request is None:
            subscriber.deliver(ErrorFrame(detail="Unrecognized message").model_dump(mode="json"))
            continue

        if isinstance(request, JoinEvent):
            # Short-lived session: idle connections must not hold a pooled connection
            with get_db_context() as db:
                allowed = can_follow_event(db, subscriber.user, request.event_id)
            if not allowed:
                subscriber.deliver(
                    ErrorFrame(detail="Not allowed to follow this event").model_dump(mode="json")
                )
                continue
            broadcaster.join(subscriber, request.event_id)
            reply = Joined(event_id=request.event_id)
        else:
            broadcaster.leave(subscriber, request.event_id)
            reply = Left(event_id=request.event_id)

        subscriber.deliver(reply.model_dump(mode="json"))


@router.websocket("/ws/checkin")
async def checkin_socket(websocket: WebSocket):
    """
    Live check-in feed.

    The handshake must carry an access token (``token`` query parameter,
    ``access_token`` cookie or bearer header); without one the socket is
    closed with 1008 before it is accepted. After connecting, the client
    sends ``join-event`` / ``leave-event`` frames and receives
    ``session-started``, ``session-ended``, ``session-updated`` and
    ``check-in-success`` frames for the events it joined. Nothing is
    replayed: after a reconnect the client re-joins and reconciles through
    the check-in HTTP endpoints.
    """
    user = authenticate_websocket(websocket)
    if user is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    broadcaster: Broadcaster = websocket.app.state.broadcaster

    await websocket.accept()
    subscriber = broadcaster.register(user)
    logger.info("realtime_connected", user_id=user.user_id)

    reader = asyncio.create_task(_read(websocket, subscriber, broadcaster))
    writer = asyncio.create_task(_pump(websocket, subscriber))
    try:
        done, pending = await asyncio.wait(
            {reader, writer}, return_when=asyncio.FIRST_COMPLETED
        )
        for task in pending:
            task.cancel()
        for task in done:
            exc = task.exception()
            if exc is not None and not isinstance(exc, WebSocketDisconnect):
                logger.error("realtime_connection_error", user_id=user.user_id, error=str(exc))
    finally:
        for task in (reader, writer):
            if not task.done():
                task.cancel()
        broadcaster.unregister(subscriber)
        logger.info("realtime_disconnected", user_id=user.user_id)
