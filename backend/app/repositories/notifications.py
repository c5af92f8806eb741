"""Notification repository — every query is scoped to the owning user."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.notification import Notification


async def create_notification(db: AsyncSession, **fields: object) -> Notification:
    notification = Notification(**fields)
    db.add(notification)
    await db.flush()
    return notification


async def list_for_user(db: AsyncSession, user_id: uuid.UUID, *, limit: int = 50) -> list[Notification]:
    """Most recent notifications for a user."""
    stmt = (
        select(Notification)
        .where(Notification.user_id == user_id)
        .order_by(Notification.created_at.desc())
        .limit(limit)
    )
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def count_unread(db: AsyncSession, user_id: uuid.UUID) -> int:
    stmt = (
        select(func.count())
        .select_from(Notification)
        .where(Notification.user_id == user_id, Notification.is_read.is_(False))
    )
    result = await db.execute(stmt)
    return result.scalar_one()


async def mark_read(db: AsyncSession, notification_id: uuid.UUID, user_id: uuid.UUID) -> bool:
    stmt = (
        update(Notification)
        .where(Notification.id == notification_id, Notification.user_id == user_id)
        .values(is_read=True)
    )
    result = await db.execute(stmt)
    await db.flush()
    return result.rowcount > 0


async def mark_all_read(db: AsyncSession, user_id: uuid.UUID) -> int:
    stmt = (
        update(Notification)
        .where(Notification.user_id == user_id, Notification.is_read.is_(False))
        .values(is_read=True)
    )
    result = await db.execute(stmt)
    await db.flush()
    return result.rowcount


async def delete_notification(db: AsyncSession, notification_id: uuid.UUID, user_id: uuid.UUID) -> bool:
    stmt = delete(Notification).where(
        Notification.id == notification_id,
        Notification.user_id == user_id,
    )
    result = await db.execute(stmt)
    await db.flush()
    return result.rowcount > 0


async def delete_read(db: AsyncSession, user_id: uuid.UUID) -> int:
    stmt = delete(Notification).where(
        Notification.user_id == user_id,
        Notification.is_read.is_(True),
    )
    result = await db.execute(stmt)
    await db.flush()
    return result.rowcount


async def exists_since(
    db: AsyncSession,
    *,
    user_id: uuid.UUID,
    type: str,
    entity_id: uuid.UUID,
    since: datetime,
) -> bool:
    """True when the user already got a `type` notification for the entity since `since`."""
    stmt = select(Notification.id).where(
        Notification.user_id == user_id,
        Notification.type == type,
        Notification.entity_id == entity_id,
        Notification.created_at >= since,
    )
    result = await db.execute(stmt)
    return result.first() is not None
