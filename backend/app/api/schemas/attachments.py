"""Task attachment schemas."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, computed_field

from app.api.schemas.common import UserBrief
from app.services.attachments import format_file_size, is_image_file


class AttachmentResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: uuid.UUID
    task_id: uuid.UUID
    file_name: str
    file_path: str
    file_size: int
    file_type: str
    uploaded_by: uuid.UUID | None = None
    uploader: UserBrief | None = None
    viewed_by_pm: bool
    viewed_by_dev: bool
    viewed_by_pm_at: datetime | None = None
    viewed_by_dev_at: datetime | None = None
    created_at: datetime

    @computed_field
    @property
    def size_label(self) -> str:
        return format_file_size(self.file_size)

    @computed_field
    @property
    def is_image(self) -> bool:
        return is_image_file(self.file_type)


class SignedUrlResponse(BaseModel):
    url: str
    expires_in: int
