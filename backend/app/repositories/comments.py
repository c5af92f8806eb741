"""Task comment repository."""

from __future__ import annotations

import uuid
from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.task_comment import TaskComment


async def create_comment(
    db: AsyncSession,
    *,
    task_id: uuid.UUID,
    user_id: uuid.UUID,
    content: str,
) -> TaskComment:
    comment = TaskComment(
        task_id=task_id,
        user_id=user_id,
        content=content,
        read_by=[str(user_id)],
    )
    db.add(comment)
    await db.flush()
    return await get_comment(db, comment.id)


async def get_comment(db: AsyncSession, comment_id: uuid.UUID) -> TaskComment | None:
    stmt = (
        select(TaskComment)
        .where(TaskComment.id == comment_id)
        .execution_options(populate_existing=True)
    )
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def list_comments(db: AsyncSession, task_id: uuid.UUID) -> list[TaskComment]:
    """All comments on a task, oldest first, including soft-deleted ones."""
    stmt = (
        select(TaskComment)
        .where(TaskComment.task_id == task_id)
        .order_by(TaskComment.created_at.asc())
    )
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def list_live_comments_for_tasks(
    db: AsyncSession,
    task_ids: Iterable[uuid.UUID],
) -> list[TaskComment]:
    """Non-deleted comments across several tasks."""
    ids = list(task_ids)
    if not ids:
        return []
    stmt = select(TaskComment).where(
        TaskComment.task_id.in_(ids),
        TaskComment.deleted_at.is_(None),
    )
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def save(db: AsyncSession, comment: TaskComment) -> TaskComment:
    await db.flush()
    return await get_comment(db, comment.id)


async def add_reader(db: AsyncSession, comments: Iterable[TaskComment], user_id: uuid.UUID) -> int:
    """Add `user_id` to read_by of each comment that lacks it. Returns rows touched."""
    reader = str(user_id)
    touched = 0
    for comment in comments:
        read_by = list(comment.read_by or [])
        if reader in read_by:
            continue
        # Reassign so the JSON column is flagged dirty
        comment.read_by = [*read_by, reader]
        touched += 1
    await db.flush()
    return touched
