"""
Payment — money received from (or paid for) a project.

Net value of a payment is `amount - hosting_cost - domain_cost - other_cost`.
Rows are soft-deleted via `deleted_at` and can be restored.
"""

import uuid
from datetime import date, datetime
from typing import Optional

from sqlalchemy import Date, Float, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.models.base import Base, UTCDateTime, generate_uuid, utcnow
from app.db.models.project import Project


class Payment(Base):
    __tablename__ = "payments"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=generate_uuid)
    project_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True
    )

    # ── Amounts ──────────────────────────────
    amount: Mapped[float] = mapped_column(Float, nullable=False)
    hosting_cost: Mapped[float] = mapped_column(Float, default=0, nullable=False)
    domain_cost: Mapped[float] = mapped_column(Float, default=0, nullable=False)
    other_cost: Mapped[float] = mapped_column(Float, default=0, nullable=False)
    other_cost_description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    payment_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending", index=True)
    type: Mapped[str] = mapped_column(String(20), nullable=False, default="income")
    payment_method: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    reference: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime, default=utcnow, onupdate=utcnow, nullable=False
    )

    # ── Soft delete ──────────────────────────
    deleted_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime, nullable=True, index=True)
    deleted_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    deleted_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    project: Mapped[Project] = relationship(lazy="selectin")

    @property
    def net_amount(self) -> float:
        return (
            (self.amount or 0)
            - (self.hosting_cost or 0)
            - (self.domain_cost or 0)
            - (self.other_cost or 0)
        )

    def __repr__(self) -> str:
        return f"<Payment id={self.id} amount={self.amount} status={self.status}>"
