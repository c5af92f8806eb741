"""
Project model — a piece of client work that owns tasks, members and finances.
"""

import uuid
from datetime import date, datetime
from typing import Optional

from sqlalchemy import JSON, Date, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.models.base import Base, UTCDateTime, generate_uuid, utcnow
from app.db.models.client import Client


class Project(Base):
    __tablename__ = "projects"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=generate_uuid)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    client_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("clients.id", ondelete="SET NULL"), nullable=True, index=True
    )
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        String(30), nullable=False, default="planning", index=True
    )

    start_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    end_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    # ── Delivery ─────────────────────────────
    repo_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    staging_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    prod_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    deployment_platform: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    domain_platform: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    tech_stack: Mapped[list] = mapped_column(JSON, default=list, nullable=False)

    created_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime, default=utcnow, onupdate=utcnow, nullable=False
    )

    client: Mapped[Optional[Client]] = relationship(lazy="selectin")

    def __repr__(self) -> str:
        return f"<Project id={self.id} {self.name} status={self.status}>"
