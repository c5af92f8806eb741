"""
Task comments: posting, time-boxed edits/deletes and unread tracking.

Edit and delete are open to the author only, and only while
`now - created_at <= COMMENT_EDIT_WINDOW_MINUTES` (the boundary itself
is still allowed).  Deletes are soft: `deleted_at` is stamped and the
content is blanked when the thread is read back.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.constants import ChangeEvent, NotificationType
from app.core.errors import (
    ConflictError,
    DomainValidationError,
    EditWindowExpiredError,
    NotFoundError,
    PermissionDeniedError,
)
from app.core.logging import get_logger
from app.db.models.base import ensure_utc, utcnow
from app.db.models.task_comment import TaskComment
from app.db.models.user import User
from app.realtime.feed import record_change
from app.repositories import comments as comment_repository
from app.services import board
from app.services import notifications as notification_service
from app.services import tasks as task_service

logger = get_logger(__name__)


def can_edit_comment(created_at: datetime, now: datetime | None = None) -> bool:
    """True while the comment is inside its edit window (inclusive)."""
    now = now or utcnow()
    window = timedelta(minutes=settings.COMMENT_EDIT_WINDOW_MINUTES)
    return ensure_utc(now) - ensure_utc(created_at) <= window


def format_relative_time(moment: datetime, now: datetime | None = None) -> str:
    """Human 'time ago' label: 'Just now', '3 minutes ago', 'Yesterday', ..."""
    now = now or utcnow()
    seconds = int((ensure_utc(now) - ensure_utc(moment)).total_seconds())

    def plural(count: int, unit: str) -> str:
        return f"{count} {unit}{'' if count == 1 else 's'} ago"

    if seconds < 60:
        return "Just now"
    if seconds < 3600:
        return plural(seconds // 60, "minute")
    if seconds < 86400:
        return plural(seconds // 3600, "hour")

    days = seconds // 86400
    if days == 1:
        return "Yesterday"
    if days < 7:
        return plural(days, "day")
    if days < 30:
        return plural(days // 7, "week")
    if days < 365:
        return plural(days // 30, "month")
    return plural(days // 365, "year")


def _clean_content(content: str | None) -> str:
    text = (content or "").strip()
    if not text:
        raise DomainValidationError("Comment cannot be empty", details={"field": "content"})
    return text


def _record(db: AsyncSession, event: ChangeEvent, comment: TaskComment) -> None:
    record_change(db, "task_comments", event, comment.id, task_id=comment.task_id)


async def list_comments(db: AsyncSession, user: User, task_id: uuid.UUID) -> list[TaskComment]:
    """Thread oldest-first; authorless comments dropped, deleted ones blanked."""
    await task_service.get_visible_task(db, user, task_id)
    comments = await comment_repository.list_comments(db, task_id)

    visible = []
    for comment in comments:
        if comment.user_id is None or comment.author is None:
            continue
        if comment.deleted_at is not None:
            # Detach so blanking the content never reaches the database
            db.expunge(comment)
            comment.content = ""
        visible.append(comment)
    return visible


async def create_comment(
    db: AsyncSession,
    user: User,
    task_id: uuid.UUID,
    content: str,
) -> TaskComment:
    task = await task_service.get_visible_task(db, user, task_id)
    text = _clean_content(content)

    comment = await comment_repository.create_comment(
        db, task_id=task.id, user_id=user.id, content=text
    )
    _record(db, ChangeEvent.INSERT, comment)
    logger.info("Comment added", task_id=str(task.id), comment_id=str(comment.id))

    await notification_service.notify(
        db,
        [task.assigned_to, task.created_by],
        type=NotificationType.TASK_COMMENTED,
        title="New comment",
        message=f'{user.full_name} commented on "{task.title}"',
        entity_type="task",
        entity_id=task.id,
        action_url=f"/tasks?task={task.id}",
        created_by=user.id,
        exclude=user.id,
    )
    return comment


async def _get_own_comment_in_window(
    db: AsyncSession,
    user: User,
    comment_id: uuid.UUID,
    *,
    action: str,
) -> TaskComment:
    comment = await comment_repository.get_comment(db, comment_id)
    if comment is None:
        raise NotFoundError("Comment not found", details={"comment_id": str(comment_id)})
    if comment.user_id != user.id:
        raise PermissionDeniedError(
            f"You do not have permission to {action} this comment",
            details={"comment_id": str(comment_id)},
        )
    if comment.deleted_at is not None:
        raise ConflictError("Comment already deleted", details={"comment_id": str(comment_id)})
    if not can_edit_comment(comment.created_at):
        raise EditWindowExpiredError(
            f"You can no longer {action} this comment "
            f"(limit: {settings.COMMENT_EDIT_WINDOW_MINUTES} minutes)",
            window_minutes=settings.COMMENT_EDIT_WINDOW_MINUTES,
            details={"comment_id": str(comment_id)},
        )
    return comment


async def edit_comment(
    db: AsyncSession,
    user: User,
    comment_id: uuid.UUID,
    content: str,
) -> TaskComment:
    comment = await _get_own_comment_in_window(db, user, comment_id, action="edit")
    comment.content = _clean_content(content)
    comment.is_edited = True
    comment.updated_at = utcnow()
    comment = await comment_repository.save(db, comment)
    _record(db, ChangeEvent.UPDATE, comment)
    return comment


async def delete_comment(db: AsyncSession, user: User, comment_id: uuid.UUID) -> TaskComment:
    comment = await _get_own_comment_in_window(db, user, comment_id, action="delete")
    comment.deleted_at = utcnow()
    comment = await comment_repository.save(db, comment)
    _record(db, ChangeEvent.UPDATE, comment)
    logger.info("Comment deleted", comment_id=str(comment.id))
    return comment


async def mark_read(
    db: AsyncSession,
    user: User,
    task_id: uuid.UUID,
    comment_ids: list[uuid.UUID],
) -> int:
    """Add the caller to read_by of the listed comments on the task."""
    if not comment_ids:
        return 0
    await task_service.get_visible_task(db, user, task_id)
    wanted = set(comment_ids)
    comments = [c for c in await comment_repository.list_comments(db, task_id) if c.id in wanted]
    return await comment_repository.add_reader(db, comments, user.id)


async def unread_count(db: AsyncSession, user: User, task_id: uuid.UUID) -> int:
    await task_service.get_visible_task(db, user, task_id)
    comments = await comment_repository.list_comments(db, task_id)
    return sum(1 for c in comments if board.is_unread_comment(c, user.id))
