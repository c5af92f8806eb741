"""
Realtime WebSocket endpoint.

    ws://.../api/v1/realtime?token=<jwt>&table=tasks&filter=project_id=eq.<uuid>

Each connection gets its own subscription on the in-process change feed
and receives `{table, event, record_id, ...keys}` messages for committed
changes.  Notification events only reach the notification's owner and
developers only receive task events for tasks assigned to them.
"""

from __future__ import annotations

import asyncio
import contextlib

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status

from app.api.deps import resolve_user
from app.core.logging import get_logger
from app.core.security import decode_access_token
from app.db import session as db_session
from app.realtime.feed import change_feed, parse_filter

router = APIRouter(tags=["Realtime"])
logger = get_logger(__name__)


@router.websocket("/realtime")
async def realtime(
    websocket: WebSocket,
    token: str | None = None,
    table: str | None = None,
    filter: str | None = None,  # noqa: A002 - query parameter name
) -> None:
    payload = decode_access_token(token) if token else None
    if payload is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason="Invalid or expired token")
        return

    try:
        parse_filter(filter)
    except ValueError as exc:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason=str(exc))
        return

    async with db_session.async_session() as db:
        user = await resolve_user(db, payload)
    if user is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason="Invalid or inactive user")
        return

    await websocket.accept()
    subscription = change_feed.subscribe(
        user.id, role=user.role, table=table, filter_expression=filter
    )
    logger.info("Realtime connection opened", user_id=str(user.id), table=table, filter=filter)

    async def forward() -> None:
        while True:
            message = await subscription.queue.get()
            await websocket.send_json(message)

    sender = asyncio.create_task(forward())
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.info("Realtime connection closed", user_id=str(user.id))
    finally:
        sender.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sender
        change_feed.unsubscribe(subscription)
