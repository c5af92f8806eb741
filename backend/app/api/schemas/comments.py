"""Task comment schemas."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, Field, computed_field

from app.api.schemas.common import UserBrief
from app.services.comments import can_edit_comment, format_relative_time


class CommentCreateRequest(BaseModel):
    content: str = Field(..., max_length=10_000)


class CommentUpdateRequest(BaseModel):
    content: str = Field(..., max_length=10_000)


class MarkCommentsReadRequest(BaseModel):
    comment_ids: list[uuid.UUID] = Field(default_factory=list)


class CommentResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: uuid.UUID
    task_id: uuid.UUID
    user_id: uuid.UUID | None = None
    author: UserBrief | None = None
    content: str
    is_edited: bool
    read_by: list[str] = Field(default_factory=list)
    deleted_at: datetime | None = None
    created_at: datetime
    updated_at: datetime

    @computed_field
    @property
    def editable(self) -> bool:
        """Still inside the author's edit/delete window."""
        return self.deleted_at is None and can_edit_comment(self.created_at)

    @computed_field
    @property
    def relative_time(self) -> str:
        return format_relative_time(self.created_at)
