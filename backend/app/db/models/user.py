"""
User model — profiles used for authentication and role-based access.

Roles:
    admin    — Full access (users, settings, finance)
    pm       — Manages projects, tasks and reviews
    dev      — Works assigned tasks on member projects
    advisor  — Read/write access to finance
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base, UTCDateTime, generate_uuid, utcnow


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=generate_uuid
    )
    email: Mapped[str] = mapped_column(
        String(320), unique=True, nullable=False, index=True
    )
    hashed_password: Mapped[str] = mapped_column(Text, nullable=False)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(
        String(20), nullable=False, default="dev", index=True
    )  # admin | pm | dev | advisor
    avatar_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime, default=utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime, default=utcnow, onupdate=utcnow, nullable=False
    )
    last_login_at: Mapped[Optional[datetime]] = mapped_column(
        UTCDateTime, nullable=True
    )

    def __repr__(self) -> str:
        return f"<User id={self.id} {self.email} role={self.role} active={self.is_active}>"
