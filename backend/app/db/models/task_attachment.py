"""TaskAttachment — metadata for a file stored in object storage."""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import BigInteger, Boolean, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.models.base import Base, UTCDateTime, generate_uuid, utcnow
from app.db.models.user import User


class TaskAttachment(Base):
    __tablename__ = "task_attachments"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=generate_uuid)
    task_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True
    )
    file_name: Mapped[str] = mapped_column(String(500), nullable=False)
    file_path: Mapped[str] = mapped_column(Text, nullable=False)  # object key in the bucket
    file_size: Mapped[int] = mapped_column(BigInteger, nullable=False)
    file_type: Mapped[str] = mapped_column(String(255), nullable=False)
    uploaded_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    viewed_by_pm: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    viewed_by_dev: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    viewed_by_pm_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime, nullable=True)
    viewed_by_dev_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime, nullable=True)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime, default=utcnow, onupdate=utcnow, nullable=False
    )

    uploader: Mapped[Optional[User]] = relationship(lazy="selectin")

    def __repr__(self) -> str:
        return f"<TaskAttachment id={self.id} {self.file_name} size={self.file_size}>"
