"""In-app notifications: emission helpers and the per-user inbox."""

from __future__ import annotations

import uuid
from collections.abc import Iterable

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.constants import ChangeEvent, NotificationType
from app.core.errors import NotFoundError
from app.core.logging import get_logger
from app.db.models.notification import Notification
from app.realtime.feed import record_change
from app.repositories import notifications as notification_repository
from app.repositories import users as user_repository

logger = get_logger(__name__)


async def notify(
    db: AsyncSession,
    user_ids: Iterable[uuid.UUID | None],
    *,
    type: NotificationType,
    title: str,
    message: str,
    entity_type: str | None = None,
    entity_id: uuid.UUID | None = None,
    action_url: str | None = None,
    created_by: uuid.UUID | None = None,
    exclude: uuid.UUID | None = None,
) -> list[Notification]:
    """Create one notification per distinct recipient (None and `exclude` skipped)."""
    recipients = [uid for uid in dict.fromkeys(user_ids) if uid is not None and uid != exclude]
    created = []
    for user_id in recipients:
        notification = await notification_repository.create_notification(
            db,
            user_id=user_id,
            type=type.value,
            title=title,
            message=message,
            entity_type=entity_type,
            entity_id=entity_id,
            action_url=action_url,
            created_by=created_by,
        )
        record_change(db, "notifications", ChangeEvent.INSERT, notification.id, user_id=user_id)
        created.append(notification)

    if created:
        logger.info("Notifications created", type=type.value, recipients=len(created))
    return created


async def notify_roles(
    db: AsyncSession,
    roles: Iterable[str],
    **kwargs,
) -> list[Notification]:
    """Notify every active user holding one of `roles`."""
    user_ids = await user_repository.list_user_ids_by_roles(db, roles)
    return await notify(db, user_ids, **kwargs)


# ─── Inbox ────────────────────────────────────

async def list_notifications(db: AsyncSession, user_id: uuid.UUID) -> list[Notification]:
    return await notification_repository.list_for_user(
        db, user_id, limit=settings.NOTIFICATIONS_LIST_LIMIT
    )


async def unread_count(db: AsyncSession, user_id: uuid.UUID) -> int:
    return await notification_repository.count_unread(db, user_id)


async def mark_read(db: AsyncSession, notification_id: uuid.UUID, user_id: uuid.UUID) -> None:
    if not await notification_repository.mark_read(db, notification_id, user_id):
        raise NotFoundError("Notification not found", details={"notification_id": str(notification_id)})
    record_change(db, "notifications", ChangeEvent.UPDATE, notification_id, user_id=user_id)


async def mark_all_read(db: AsyncSession, user_id: uuid.UUID) -> int:
    count = await notification_repository.mark_all_read(db, user_id)
    if count:
        record_change(db, "notifications", ChangeEvent.UPDATE, "*", user_id=user_id)
    return count


async def delete_notification(db: AsyncSession, notification_id: uuid.UUID, user_id: uuid.UUID) -> None:
    if not await notification_repository.delete_notification(db, notification_id, user_id):
        raise NotFoundError("Notification not found", details={"notification_id": str(notification_id)})
    record_change(db, "notifications", ChangeEvent.DELETE, notification_id, user_id=user_id)


async def delete_read(db: AsyncSession, user_id: uuid.UUID) -> int:
    count = await notification_repository.delete_read(db, user_id)
    if count:
        record_change(db, "notifications", ChangeEvent.DELETE, "*", user_id=user_id)
    return count
