"""Notification schemas."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel

from app.core.constants import NotificationType


class NotificationResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: uuid.UUID
    user_id: uuid.UUID
    type: NotificationType
    title: str
    message: str
    entity_type: str | None = None
    entity_id: uuid.UUID | None = None
    action_url: str | None = None
    is_read: bool
    created_by: uuid.UUID | None = None
    created_at: datetime
