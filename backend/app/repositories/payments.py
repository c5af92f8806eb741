"""
Payment and project-cost repository.

Payments are soft-deleted: every read except the deleted-history list
filters on `deleted_at IS NULL`.
"""

from __future__ import annotations

import uuid
from datetime import date

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.base import utcnow
from app.db.models.payment import Payment
from app.db.models.project_cost import ProjectCost

PAYMENT_FIELDS = {
    "project_id",
    "amount",
    "hosting_cost",
    "domain_cost",
    "other_cost",
    "other_cost_description",
    "payment_date",
    "status",
    "type",
    "payment_method",
    "reference",
    "notes",
}

COST_FIELDS = {"project_id", "description", "amount", "category", "cost_date", "is_recurring"}


# ─── Payments ─────────────────────────────────

async def create_payment(db: AsyncSession, *, created_by: uuid.UUID | None, **fields: object) -> Payment:
    payment = Payment(
        created_by=created_by,
        **{k: v for k, v in fields.items() if k in PAYMENT_FIELDS},
    )
    db.add(payment)
    await db.flush()
    return await get_payment(db, payment.id)


async def get_payment(db: AsyncSession, payment_id: uuid.UUID) -> Payment | None:
    stmt = (
        select(Payment)
        .where(Payment.id == payment_id)
        .execution_options(populate_existing=True)
    )
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def list_payments(
    db: AsyncSession,
    *,
    project_id: uuid.UUID | None = None,
    status: str | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
) -> list[Payment]:
    """Live (not soft-deleted) payments, latest payment date first."""
    stmt = (
        select(Payment)
        .where(Payment.deleted_at.is_(None))
        .order_by(Payment.payment_date.desc(), Payment.created_at.desc())
    )
    if project_id is not None:
        stmt = stmt.where(Payment.project_id == project_id)
    if status is not None:
        stmt = stmt.where(Payment.status == status)
    if start_date is not None:
        stmt = stmt.where(Payment.payment_date >= start_date)
    if end_date is not None:
        stmt = stmt.where(Payment.payment_date <= end_date)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def list_deleted_payments(db: AsyncSession) -> list[Payment]:
    stmt = (
        select(Payment)
        .where(Payment.deleted_at.is_not(None))
        .order_by(Payment.deleted_at.desc())
    )
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def update_payment(db: AsyncSession, payment_id: uuid.UUID, **fields: object) -> Payment | None:
    payment = await db.get(Payment, payment_id)
    if payment is None or payment.deleted_at is not None:
        return None
    for key, value in fields.items():
        if key in PAYMENT_FIELDS:
            setattr(payment, key, value)
    await db.flush()
    return await get_payment(db, payment_id)


async def soft_delete_payment(
    db: AsyncSession,
    payment_id: uuid.UUID,
    *,
    deleted_by: uuid.UUID,
    reason: str | None,
) -> Payment | None:
    payment = await db.get(Payment, payment_id)
    if payment is None or payment.deleted_at is not None:
        return None
    payment.deleted_at = utcnow()
    payment.deleted_by = deleted_by
    payment.deleted_reason = reason
    await db.flush()
    return await get_payment(db, payment_id)


async def restore_payment(db: AsyncSession, payment_id: uuid.UUID) -> Payment | None:
    payment = await db.get(Payment, payment_id)
    if payment is None or payment.deleted_at is None:
        return None
    payment.deleted_at = None
    payment.deleted_by = None
    payment.deleted_reason = None
    await db.flush()
    return await get_payment(db, payment_id)


async def delete_payment(db: AsyncSession, payment_id: uuid.UUID) -> bool:
    result = await db.execute(delete(Payment).where(Payment.id == payment_id))
    await db.flush()
    return result.rowcount > 0


# ─── Costs ────────────────────────────────────

async def create_cost(db: AsyncSession, *, created_by: uuid.UUID | None, **fields: object) -> ProjectCost:
    cost = ProjectCost(
        created_by=created_by,
        **{k: v for k, v in fields.items() if k in COST_FIELDS},
    )
    db.add(cost)
    await db.flush()
    return cost


async def list_costs(
    db: AsyncSession,
    *,
    project_id: uuid.UUID | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
) -> list[ProjectCost]:
    """Project costs, latest cost date first."""
    stmt = select(ProjectCost).order_by(ProjectCost.cost_date.desc())
    if project_id is not None:
        stmt = stmt.where(ProjectCost.project_id == project_id)
    if start_date is not None:
        stmt = stmt.where(ProjectCost.cost_date >= start_date)
    if end_date is not None:
        stmt = stmt.where(ProjectCost.cost_date <= end_date)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def total_costs(db: AsyncSession) -> float:
    result = await db.execute(select(func.coalesce(func.sum(ProjectCost.amount), 0)))
    return float(result.scalar_one())
