"""
Task repository — data access for kanban tasks.

Repository rules:
- Pure data-access logic only
- Every function receives AsyncSession explicitly
- Functions flush, but never commit
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.constants import TaskStatus
from app.db.models.task import Task

TASK_FIELDS = {
    "project_id",
    "title",
    "description",
    "status",
    "priority",
    "assigned_to",
    "due_date",
    "tags",
    "completed_at",
    "archived_at",
    "review_status",
    "review_notes",
    "dev_notes",
    "dev_notes_timestamp",
    "observation_read_by_pm",
    "observation_updated_at",
    "rejection_reason",
    "rejection_timestamp",
    "rejection_read_by_dev",
    "rejection_updated_at",
    "has_new_attachments_for_pm",
    "has_new_attachments_for_dev",
    "last_attachment_by",
    "last_attachment_at",
}


async def create_task(db: AsyncSession, *, created_by: uuid.UUID | None, **fields: object) -> Task:
    task = Task(
        created_by=created_by,
        **{k: v for k, v in fields.items() if k in TASK_FIELDS},
    )
    db.add(task)
    await db.flush()
    return await get_task(db, task.id)


async def get_task(db: AsyncSession, task_id: uuid.UUID) -> Task | None:
    """Fetch a task, refreshing any stale copy held by the session."""
    stmt = (
        select(Task)
        .where(Task.id == task_id)
        .execution_options(populate_existing=True)
    )
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def list_tasks(
    db: AsyncSession,
    *,
    project_id: uuid.UUID | None = None,
    assigned_to: uuid.UUID | None = None,
    include_archived: bool = False,
) -> list[Task]:
    """List tasks newest first. Archived tasks are excluded unless asked for."""
    stmt = select(Task).order_by(Task.created_at.desc())
    if project_id is not None:
        stmt = stmt.where(Task.project_id == project_id)
    if assigned_to is not None:
        stmt = stmt.where(Task.assigned_to == assigned_to)
    if not include_archived:
        stmt = stmt.where(Task.status != TaskStatus.ARCHIVED.value)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def update_task(db: AsyncSession, task_id: uuid.UUID, **fields: object) -> Task | None:
    """Apply `fields` (unknown keys ignored, None allowed to clear) and return the task."""
    values = {k: v for k, v in fields.items() if k in TASK_FIELDS}
    task = await db.get(Task, task_id)
    if task is None:
        return None
    for key, value in values.items():
        setattr(task, key, value)
    await db.flush()
    return await get_task(db, task_id)


async def delete_task(db: AsyncSession, task_id: uuid.UUID) -> bool:
    result = await db.execute(delete(Task).where(Task.id == task_id))
    await db.flush()
    return result.rowcount > 0


# ─── Archive ──────────────────────────────────

async def list_archived(
    db: AsyncSession,
    *,
    search: str | None = None,
    project_id: uuid.UUID | None = None,
    assigned_to: uuid.UUID | None = None,
    offset: int = 0,
    limit: int = 10,
) -> tuple[list[Task], int]:
    """Archived tasks, most recently archived first, plus the unpaged total."""
    conditions = [Task.status == TaskStatus.ARCHIVED.value]
    if search:
        pattern = f"%{search.strip().lower()}%"
        conditions.append(
            or_(
                func.lower(Task.title).like(pattern),
                func.lower(func.coalesce(Task.description, "")).like(pattern),
            )
        )
    if project_id is not None:
        conditions.append(Task.project_id == project_id)
    if assigned_to is not None:
        conditions.append(Task.assigned_to == assigned_to)

    total_stmt = select(func.count()).select_from(Task).where(*conditions)
    total = (await db.execute(total_stmt)).scalar_one()

    stmt = (
        select(Task)
        .where(*conditions)
        .order_by(Task.archived_at.desc(), Task.id)
        .offset(offset)
        .limit(limit)
    )
    result = await db.execute(stmt)
    return list(result.scalars().all()), total


async def list_archivable(db: AsyncSession, *, completed_before: datetime) -> list[Task]:
    """Done tasks completed before the cutoff that have not been archived yet."""
    stmt = select(Task).where(
        Task.status == TaskStatus.DONE.value,
        Task.completed_at.is_not(None),
        Task.completed_at < completed_before,
        Task.archived_at.is_(None),
    )
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def archive_tasks(db: AsyncSession, task_ids: list[uuid.UUID], *, archived_at: datetime) -> int:
    if not task_ids:
        return 0
    stmt = (
        update(Task)
        .where(Task.id.in_(task_ids))
        .values(status=TaskStatus.ARCHIVED.value, archived_at=archived_at, updated_at=archived_at)
        .execution_options(synchronize_session=False)
    )
    result = await db.execute(stmt)
    await db.flush()
    return result.rowcount
