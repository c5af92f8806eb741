"""
Task service — visibility, updates, kanban moves and listings.

Visibility:
    dev                — only tasks assigned to them
    admin / pm / advisor — every task

Writes:
    admin / pm — any field
    dev        — own tasks, `status` and `dev_notes` only
"""

from __future__ import annotations

import math
import uuid
from collections import Counter
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.constants import (
    MANAGER_ROLES,
    ChangeEvent,
    NotificationType,
    ReviewStatus,
    TaskStatus,
    UserRole,
)
from app.core.errors import (
    DomainValidationError,
    NotFoundError,
    PermissionDeniedError,
    StorageError,
)
from app.core.logging import get_logger
from app.db.models.base import utcnow
from app.db.models.task import Task
from app.db.models.user import User
from app.realtime.feed import record_change
from app.repositories import attachments as attachment_repository
from app.repositories import comments as comment_repository
from app.repositories import projects as project_repository
from app.repositories import tasks as task_repository
from app.services import board
from app.services import notifications as notification_service
from app.storage.object_store import ObjectStore

logger = get_logger(__name__)

DEV_EDITABLE_FIELDS = {"status", "dev_notes"}


def _record(db: AsyncSession, event: ChangeEvent, task: Task) -> None:
    record_change(
        db,
        "tasks",
        event,
        task.id,
        project_id=task.project_id,
        assigned_to=task.assigned_to,
    )


def can_view(user: User, task: Task) -> bool:
    if user.role == UserRole.DEV:
        return task.assigned_to == user.id
    return True


async def get_visible_task(db: AsyncSession, user: User, task_id: uuid.UUID) -> Task:
    """Load a task the user may see, else raise NotFoundError."""
    task = await task_repository.get_task(db, task_id)
    if task is None or not can_view(user, task):
        raise NotFoundError("Task not found", details={"task_id": str(task_id)})
    return task


async def list_tasks(
    db: AsyncSession,
    user: User,
    *,
    project_id: uuid.UUID | None = None,
    include_archived: bool = False,
) -> list[Task]:
    return await task_repository.list_tasks(
        db,
        project_id=project_id,
        assigned_to=user.id if user.role == UserRole.DEV else None,
        include_archived=include_archived,
    )


async def create_task(db: AsyncSession, user: User, data: dict[str, Any]) -> Task:
    project = await project_repository.get_project(db, data["project_id"])
    if project is None:
        raise NotFoundError("Project not found", details={"project_id": str(data["project_id"])})

    data = {**data}
    data.setdefault("tags", [])
    data.setdefault("dev_notes", "")
    if data.get("tags") is None:
        data["tags"] = []
    if data.get("status") == TaskStatus.DONE:
        data.setdefault("completed_at", utcnow())

    task = await task_repository.create_task(db, created_by=user.id, **data)
    _record(db, ChangeEvent.INSERT, task)
    logger.info("Task created", task_id=str(task.id), project_id=str(task.project_id))

    if task.assigned_to is not None:
        await _notify_assigned(db, task, actor=user)
    return task


async def update_task(
    db: AsyncSession,
    user: User,
    task_id: uuid.UUID,
    changes: dict[str, Any],
) -> Task:
    """Apply a partial update, running kanban move rules when the status changes."""
    task = await get_visible_task(db, user, task_id)

    if user.role == UserRole.DEV:
        forbidden = set(changes) - DEV_EDITABLE_FIELDS - {"rejection_reason"}
        if forbidden:
            raise PermissionDeniedError(
                "Developers can only update status and notes",
                details={"fields": sorted(forbidden)},
            )
    elif user.role not in MANAGER_ROLES:
        raise PermissionDeniedError("Your role cannot update tasks", details={"role": user.role})

    now = utcnow()
    values = {k: v for k, v in changes.items() if k != "rejection_reason"}

    if "status" in values and values["status"] is not None:
        values.update(
            board.move_changes(
                task,
                role=user.role,
                new_status=TaskStatus(values["status"]),
                now=now,
                rejection_reason=changes.get("rejection_reason"),
            )
        )

    if "dev_notes" in values and values["dev_notes"] != task.dev_notes:
        values["dev_notes"] = values["dev_notes"] or ""
        values.update(
            dev_notes_timestamp=now,
            observation_updated_at=now,
            observation_read_by_pm=False,
        )

    return await _save(db, user, task, values)


async def move_task(
    db: AsyncSession,
    user: User,
    task_id: uuid.UUID,
    *,
    status: TaskStatus,
    rejection_reason: str | None = None,
) -> Task:
    """Drag-and-drop a task into another column."""
    task = await get_visible_task(db, user, task_id)
    if user.role not in (*MANAGER_ROLES, UserRole.DEV):
        raise PermissionDeniedError("Your role cannot move tasks", details={"role": user.role})

    values = board.move_changes(
        task,
        role=user.role,
        new_status=status,
        now=utcnow(),
        rejection_reason=rejection_reason,
    )
    if not values:
        return task
    return await _save(db, user, task, values)


async def _save(db: AsyncSession, user: User, task: Task, values: dict[str, Any]) -> Task:
    old_status = task.status
    old_assignee = task.assigned_to

    updated = await task_repository.update_task(db, task.id, **values)
    _record(db, ChangeEvent.UPDATE, updated)

    if updated.status != old_status:
        logger.info(
            "Task moved",
            task_id=str(updated.id),
            from_status=old_status,
            to_status=updated.status,
            actor=str(user.id),
        )
        await _notify_status_change(db, updated, old_status=old_status, actor=user)

    if updated.assigned_to is not None and updated.assigned_to != old_assignee:
        await _notify_assigned(db, updated, actor=user)

    return updated


async def archive_task(db: AsyncSession, user: User, task_id: uuid.UUID) -> Task:
    task = await get_visible_task(db, user, task_id)
    now = utcnow()
    updated = await task_repository.update_task(
        db, task.id, status=TaskStatus.ARCHIVED.value, archived_at=now
    )
    _record(db, ChangeEvent.UPDATE, updated)
    logger.info("Task archived", task_id=str(task.id))
    return updated


async def mark_observation_read(db: AsyncSession, user: User, task_id: uuid.UUID) -> Task:
    if user.role not in MANAGER_ROLES:
        raise PermissionDeniedError("Only a project manager can acknowledge developer notes")
    task = await get_visible_task(db, user, task_id)
    updated = await task_repository.update_task(db, task.id, observation_read_by_pm=True)
    _record(db, ChangeEvent.UPDATE, updated)
    return updated


async def mark_rejection_read(db: AsyncSession, user: User, task_id: uuid.UUID) -> Task:
    task = await get_visible_task(db, user, task_id)
    if user.role == UserRole.DEV and task.assigned_to != user.id:
        raise PermissionDeniedError("Only the assignee can acknowledge a rejection")
    updated = await task_repository.update_task(db, task.id, rejection_read_by_dev=True)
    _record(db, ChangeEvent.UPDATE, updated)
    return updated


async def delete_task(
    db: AsyncSession,
    user: User,
    task_id: uuid.UUID,
    store: ObjectStore,
) -> None:
    """Remove stored attachment files, then the task row (children cascade)."""
    task = await get_visible_task(db, user, task_id)

    paths = await attachment_repository.list_paths(db, task.id)
    if paths:
        try:
            await store.remove(paths)
        except StorageError as exc:
            logger.warning(
                "Attachment files not removed",
                task_id=str(task.id),
                paths=paths,
                error=exc.message,
            )

    await task_repository.delete_task(db, task.id)
    _record(db, ChangeEvent.DELETE, task)
    logger.info("Task deleted", task_id=str(task.id), attachments=len(paths))


# ─── Read models ──────────────────────────────

async def unread_comment_counts(
    db: AsyncSession,
    task_ids: list[uuid.UUID],
    user_id: uuid.UUID,
) -> dict[uuid.UUID, int]:
    comments = await comment_repository.list_live_comments_for_tasks(db, task_ids)
    counts: Counter = Counter()
    for comment in comments:
        if board.is_unread_comment(comment, user_id):
            counts[comment.task_id] += 1
    return dict(counts)


async def get_board(
    db: AsyncSession,
    user: User,
    *,
    project_id: uuid.UUID | None = None,
) -> list[board.BoardColumn]:
    tasks = await list_tasks(db, user, project_id=project_id)
    unread = await unread_comment_counts(db, [t.id for t in tasks], user.id)
    return board.build_board(
        tasks,
        role=user.role,
        user_id=user.id,
        today=utcnow().date(),
        unread_by_task=unread,
    )


async def task_stats(db: AsyncSession, user: User) -> dict[str, int]:
    """Task counts per status plus the number of overdue tasks."""
    tasks = await list_tasks(db, user, include_archived=True)
    today = utcnow().date()
    counts = Counter(t.status for t in tasks)
    stats = {status.value: counts.get(status.value, 0) for status in TaskStatus}
    stats["total"] = sum(stats.values())
    stats["overdue"] = sum(1 for t in tasks if board.is_overdue(t, today))
    return stats


async def list_archived(
    db: AsyncSession,
    user: User,
    *,
    search: str | None = None,
    project_id: uuid.UUID | None = None,
    assigned_to: uuid.UUID | None = None,
    page: int = 1,
    page_size: int = 10,
) -> dict[str, Any]:
    """One page of archived tasks plus paging metadata."""
    if page_size not in settings.ARCHIVED_PAGE_SIZES:
        raise DomainValidationError(
            "Unsupported page size",
            details={"page_size": page_size, "allowed": settings.ARCHIVED_PAGE_SIZES},
        )
    if page < 1:
        raise DomainValidationError("Page must be 1 or greater", details={"page": page})

    if user.role == UserRole.DEV:
        assigned_to = user.id

    rows, total = await task_repository.list_archived(
        db,
        search=search,
        project_id=project_id,
        assigned_to=assigned_to,
        offset=(page - 1) * page_size,
        limit=page_size,
    )
    return {
        "data": rows,
        "total": total,
        "page": page,
        "page_size": page_size,
        "total_pages": math.ceil(total / page_size) if total else 0,
    }


# ─── Notifications ────────────────────────────

async def _notify_assigned(db: AsyncSession, task: Task, *, actor: User) -> None:
    await notification_service.notify(
        db,
        [task.assigned_to],
        type=NotificationType.TASK_ASSIGNED,
        title="New task assigned",
        message=f'You have been assigned "{task.title}"',
        entity_type="task",
        entity_id=task.id,
        action_url=f"/tasks?task={task.id}",
        created_by=actor.id,
        exclude=actor.id,
    )


async def _notify_status_change(db: AsyncSession, task: Task, *, old_status: str, actor: User) -> None:
    if actor.role == UserRole.DEV and task.status == TaskStatus.REVIEW:
        await notification_service.notify(
            db,
            [task.created_by],
            type=NotificationType.TASK_READY_REVIEW,
            title="Task ready for review",
            message=f'"{task.title}" is ready for review',
            entity_type="task",
            entity_id=task.id,
            action_url=f"/tasks?task={task.id}",
            created_by=actor.id,
            exclude=actor.id,
        )
    elif old_status == TaskStatus.REVIEW and task.review_status == ReviewStatus.APPROVED:
        await notification_service.notify(
            db,
            [task.assigned_to],
            type=NotificationType.TASK_APPROVED,
            title="Task approved",
            message=f'"{task.title}" was approved',
            entity_type="task",
            entity_id=task.id,
            action_url=f"/tasks?task={task.id}",
            created_by=actor.id,
            exclude=actor.id,
        )
    elif old_status == TaskStatus.REVIEW and task.review_status == ReviewStatus.REJECTED:
        await notification_service.notify(
            db,
            [task.assigned_to],
            type=NotificationType.TASK_REJECTED,
            title="Changes requested",
            message=f'"{task.title}" needs changes: {task.rejection_reason}',
            entity_type="task",
            entity_id=task.id,
            action_url=f"/tasks?task={task.id}",
            created_by=actor.id,
            exclude=actor.id,
        )
