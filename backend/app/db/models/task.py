"""
Task model — a kanban card.

Status flow:
    todo → in_progress → review → done → archived

Review/rejection and observation columns carry the PM ⇄ dev hand-off:
    - dev_notes / observation_*   — dev notes the PM has (not) read
    - rejection_*                 — PM rejection the dev has (not) read
    - has_new_attachments_for_*   — unseen uploads from the other side
"""

import uuid
from datetime import date, datetime
from typing import Optional

from sqlalchemy import JSON, Boolean, Date, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.models.base import Base, UTCDateTime, generate_uuid, utcnow
from app.db.models.project import Project
from app.db.models.user import User


class Task(Base):
    __tablename__ = "tasks"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=generate_uuid)
    project_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="todo", index=True)
    priority: Mapped[str] = mapped_column(String(20), nullable=False, default="medium")
    assigned_to: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )
    due_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    tags: Mapped[list] = mapped_column(JSON, default=list, nullable=False)

    # ── Lifecycle ────────────────────────────
    completed_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime, nullable=True)
    archived_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime, nullable=True, index=True)

    # ── Review ───────────────────────────────
    review_status: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    review_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # ── Dev observations ─────────────────────
    dev_notes: Mapped[str] = mapped_column(Text, default="", nullable=False)
    dev_notes_timestamp: Mapped[Optional[datetime]] = mapped_column(UTCDateTime, nullable=True)
    observation_read_by_pm: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    observation_updated_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime, nullable=True)

    # ── Rejection ────────────────────────────
    rejection_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    rejection_timestamp: Mapped[Optional[datetime]] = mapped_column(UTCDateTime, nullable=True)
    rejection_read_by_dev: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    rejection_updated_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime, nullable=True)

    # ── Attachment flags ─────────────────────
    has_new_attachments_for_pm: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    has_new_attachments_for_dev: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    last_attachment_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    last_attachment_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime, nullable=True)

    created_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, nullable=False, index=True)
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime, default=utcnow, onupdate=utcnow, nullable=False
    )

    project: Mapped[Project] = relationship(lazy="selectin")
    assignee: Mapped[Optional[User]] = relationship(foreign_keys=[assigned_to], lazy="selectin")

    def __repr__(self) -> str:
        return f"<Task id={self.id} status={self.status} title={self.title!r}>"
