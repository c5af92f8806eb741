"""Task attachment repository (metadata only; bytes live in object storage)."""

from __future__ import annotations

import uuid

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.task_attachment import TaskAttachment


async def create_attachment(db: AsyncSession, **fields: object) -> TaskAttachment:
    attachment = TaskAttachment(**fields)
    db.add(attachment)
    await db.flush()
    return await get_attachment(db, attachment.id)


async def get_attachment(db: AsyncSession, attachment_id: uuid.UUID) -> TaskAttachment | None:
    stmt = (
        select(TaskAttachment)
        .where(TaskAttachment.id == attachment_id)
        .execution_options(populate_existing=True)
    )
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def list_attachments(db: AsyncSession, task_id: uuid.UUID) -> list[TaskAttachment]:
    """Attachments of a task, newest first."""
    stmt = (
        select(TaskAttachment)
        .where(TaskAttachment.task_id == task_id)
        .order_by(TaskAttachment.created_at.desc())
    )
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def list_paths(db: AsyncSession, task_id: uuid.UUID) -> list[str]:
    stmt = select(TaskAttachment.file_path).where(TaskAttachment.task_id == task_id)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def update_attachment(
    db: AsyncSession,
    attachment_id: uuid.UUID,
    **fields: object,
) -> TaskAttachment | None:
    attachment = await db.get(TaskAttachment, attachment_id)
    if attachment is None:
        return None
    for key, value in fields.items():
        setattr(attachment, key, value)
    await db.flush()
    return await get_attachment(db, attachment_id)


async def delete_attachment(db: AsyncSession, attachment_id: uuid.UUID) -> bool:
    result = await db.execute(delete(TaskAttachment).where(TaskAttachment.id == attachment_id))
    await db.flush()
    return result.rowcount > 0
