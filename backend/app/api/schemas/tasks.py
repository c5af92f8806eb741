"""Task, board and archive schemas."""

from __future__ import annotations

import uuid
from datetime import date, datetime

from pydantic import BaseModel, Field

from app.api.schemas.common import ProjectBrief, UserBrief
from app.core.constants import ReviewStatus, TaskPriority, TaskStatus


class TaskCreateRequest(BaseModel):
    project_id: uuid.UUID
    title: str = Field(..., min_length=2, max_length=500)
    description: str | None = None
    status: TaskStatus = TaskStatus.TODO
    priority: TaskPriority = TaskPriority.MEDIUM
    assigned_to: uuid.UUID | None = None
    due_date: date | None = None
    tags: list[str] = Field(default_factory=list)


class TaskUpdateRequest(BaseModel):
    """Partial update; only fields present in the request body are applied."""

    title: str | None = Field(None, min_length=2, max_length=500)
    description: str | None = None
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    assigned_to: uuid.UUID | None = None
    due_date: date | None = None
    tags: list[str] | None = None
    review_notes: str | None = None
    dev_notes: str | None = None
    rejection_reason: str | None = None


class TaskMoveRequest(BaseModel):
    status: TaskStatus
    rejection_reason: str | None = None


class TaskResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: uuid.UUID
    project_id: uuid.UUID
    project: ProjectBrief | None = None
    title: str
    description: str | None = None
    status: TaskStatus
    priority: TaskPriority
    assigned_to: uuid.UUID | None = None
    assignee: UserBrief | None = None
    due_date: date | None = None
    tags: list[str] = Field(default_factory=list)
    completed_at: datetime | None = None
    archived_at: datetime | None = None
    review_status: ReviewStatus | None = None
    review_notes: str | None = None
    dev_notes: str = ""
    dev_notes_timestamp: datetime | None = None
    observation_read_by_pm: bool
    observation_updated_at: datetime | None = None
    rejection_reason: str | None = None
    rejection_timestamp: datetime | None = None
    rejection_read_by_dev: bool
    rejection_updated_at: datetime | None = None
    has_new_attachments_for_pm: bool
    has_new_attachments_for_dev: bool
    last_attachment_by: uuid.UUID | None = None
    last_attachment_at: datetime | None = None
    created_by: uuid.UUID | None = None
    created_at: datetime
    updated_at: datetime


class BoardCardResponse(TaskResponse):
    is_overdue: bool
    unread_comments: int = 0


class BoardColumnResponse(BaseModel):
    status: TaskStatus
    title: str
    tasks: list[BoardCardResponse]


class TaskStatsResponse(BaseModel):
    todo: int = 0
    in_progress: int = 0
    review: int = 0
    done: int = 0
    archived: int = 0
    total: int = 0
    overdue: int = 0


class ArchivedTasksPage(BaseModel):
    data: list[TaskResponse]
    total: int
    page: int
    page_size: int
    total_pages: int


class ArchivedTaskRef(BaseModel):
    id: uuid.UUID
    title: str


class AutoArchiveResponse(BaseModel):
    success: bool
    archived_count: int
    archived_tasks: list[ArchivedTaskRef]
    message: str
