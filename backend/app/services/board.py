"""
Kanban board layout and drag-and-drop transition rules.

Everything here is pure: callers pass the task, the actor's role and the
clock, and get back the columns to render or the field changes to
persist.  The task service owns loading, permission checks and saving.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any

from app.core.constants import ReviewStatus, TaskStatus, UserRole
from app.core.errors import DomainValidationError, PermissionDeniedError
from app.db.models.task import Task


@dataclass(frozen=True)
class ColumnSpec:
    """One board column: the status a drop sets and the statuses it shows."""

    status: TaskStatus
    title: str
    shows: tuple[TaskStatus, ...]


DEV_COLUMNS = (
    ColumnSpec(TaskStatus.TODO, "To do", (TaskStatus.TODO,)),
    ColumnSpec(TaskStatus.IN_PROGRESS, "In progress", (TaskStatus.IN_PROGRESS,)),
    ColumnSpec(TaskStatus.REVIEW, "Ready for review", (TaskStatus.REVIEW,)),
)

PM_COLUMNS = (
    ColumnSpec(TaskStatus.TODO, "Assigned", (TaskStatus.TODO, TaskStatus.IN_PROGRESS)),
    ColumnSpec(TaskStatus.REVIEW, "To review", (TaskStatus.REVIEW,)),
    ColumnSpec(TaskStatus.DONE, "Completed", (TaskStatus.DONE,)),
)


@dataclass
class BoardCard:
    task: Task
    is_overdue: bool
    unread_comments: int = 0


@dataclass
class BoardColumn:
    status: TaskStatus
    title: str
    cards: list[BoardCard] = field(default_factory=list)


def is_unread_comment(comment: Any, user_id: Any) -> bool:
    """A live comment by someone else that `user_id` has not read yet."""
    if comment.deleted_at is not None or comment.user_id is None:
        return False
    if comment.user_id == user_id:
        return False
    return str(user_id) not in (comment.read_by or [])


def columns_for_role(role: str) -> tuple[ColumnSpec, ...]:
    return DEV_COLUMNS if role == UserRole.DEV else PM_COLUMNS


def is_overdue(task: Task, today: date) -> bool:
    """Due date strictly before today (date-only), ignoring finished tasks."""
    if task.due_date is None:
        return False
    if task.status in (TaskStatus.DONE, TaskStatus.ARCHIVED):
        return False
    return task.due_date < today


def build_board(
    tasks: list[Task],
    *,
    role: str,
    user_id: Any,
    today: date,
    unread_by_task: dict[Any, int] | None = None,
) -> list[BoardColumn]:
    """Group tasks into the role's columns, keeping the incoming task order."""
    unread_by_task = unread_by_task or {}
    if role == UserRole.DEV:
        tasks = [t for t in tasks if t.assigned_to == user_id]

    columns = []
    for definition in columns_for_role(role):
        column = BoardColumn(status=definition.status, title=definition.title)
        for task in tasks:
            if task.status in definition.shows:
                column.cards.append(
                    BoardCard(
                        task=task,
                        is_overdue=is_overdue(task, today),
                        unread_comments=unread_by_task.get(task.id, 0),
                    )
                )
        columns.append(column)
    return columns


def move_changes(
    task: Task,
    *,
    role: str,
    new_status: TaskStatus,
    now: datetime,
    rejection_reason: str | None = None,
) -> dict[str, Any]:
    """
    Field changes for dragging `task` into the `new_status` column.

    Returns an empty dict when the status does not change.

    Raises:
        PermissionDeniedError: a developer drops into done/archived.
        DomainValidationError: a rejection without a reason.
    """
    old_status = TaskStatus(task.status)
    if old_status == new_status:
        return {}

    changes: dict[str, Any] = {"status": new_status.value}
    if old_status == TaskStatus.ARCHIVED:
        changes["archived_at"] = None

    if role == UserRole.DEV:
        if new_status in (TaskStatus.DONE, TaskStatus.ARCHIVED):
            raise PermissionDeniedError(
                "Developers cannot move tasks to this column",
                details={"status": new_status.value},
            )
        if old_status == TaskStatus.TODO and new_status == TaskStatus.IN_PROGRESS:
            changes.update(review_status=None, rejection_reason=None, rejection_timestamp=None)
        return changes

    if old_status == TaskStatus.REVIEW and new_status == TaskStatus.TODO:
        reason = (rejection_reason or "").strip()
        if not reason:
            raise DomainValidationError(
                "A rejection reason is required",
                details={"field": "rejection_reason"},
            )
        changes.update(
            review_status=ReviewStatus.REJECTED.value,
            rejection_reason=reason,
            rejection_timestamp=now,
            rejection_updated_at=now,
            rejection_read_by_dev=False,
        )
    elif old_status == TaskStatus.REVIEW and new_status == TaskStatus.DONE:
        changes.update(
            review_status=ReviewStatus.APPROVED.value,
            completed_at=now,
            rejection_reason=None,
            rejection_timestamp=None,
        )
    elif new_status == TaskStatus.ARCHIVED:
        changes["archived_at"] = now
    elif old_status == TaskStatus.DONE:
        changes.update(review_status=None, completed_at=None)
    elif new_status == TaskStatus.DONE and task.completed_at is None:
        # Done without passing review still needs a completion time for the archive sweep
        changes["completed_at"] = now

    return changes
