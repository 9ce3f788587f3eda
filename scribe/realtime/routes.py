"""WebSocket endpoint streaming a principal's notifications as they are created."""

import asyncio
import logging

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect
from starlette.concurrency import run_in_threadpool

from scribe.core.database import SessionLocal
from scribe.core.errors import InvalidTokenError
from scribe.core.tokens import TokenType
from scribe.models import User
from scribe.realtime.channels import ChannelRegistry, Subscription

logger = logging.getLogger(__name__)
router = APIRouter()

# Application-defined close code for failed authentication.
WS_CLOSE_AUTH_FAILED = 4001


def _principal_exists(principal_id: str) -> bool:
    try:
        user_id = int(principal_id)
    except (TypeError, ValueError):
        return False
    db = SessionLocal()
    try:
        return db.get(User, user_id) is not None
    finally:
        db.close()


async def _forward(websocket: WebSocket, subscription: Subscription) -> None:
    while True:
        message = await subscription.queue.get()
        await websocket.send_json(message)


@router.websocket("/notifications")
async def notifications_socket(
    websocket: WebSocket,
    token: str = Query(..., description="Access token"),
) -> None:
    """
    Live notification stream. Connect with ws://host/api/v1/ws/notifications?token=<access token>.

    Outgoing frames: {"event": "new_notification", "data": {...notification...}}.
    Incoming frames are ignored except for disconnect detection.
    """
    token_service = websocket.app.state.token_service
    channels: ChannelRegistry = websocket.app.state.channels
    try:
        payload = token_service.verify(token, TokenType.ACCESS)
    except InvalidTokenError as e:
        logger.info("WebSocket auth rejected", extra={"reason": e.message})
        await websocket.close(code=WS_CLOSE_AUTH_FAILED, reason=e.message)
        return
    if not await run_in_threadpool(_principal_exists, payload.principal_id):
        await websocket.close(code=WS_CLOSE_AUTH_FAILED, reason="User not found")
        return

    # Subscribed before the handshake completes so nothing published after
    # accept is missed.
    subscription = channels.subscribe(payload.principal_id)
    sender: asyncio.Task | None = None
    try:
        await websocket.accept()
        sender = asyncio.create_task(_forward(websocket, subscription))
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.debug("WebSocket disconnected", extra={"principal_id": payload.principal_id})
    finally:
        if sender is not None:
            sender.cancel()
        channels.unsubscribe(subscription)
