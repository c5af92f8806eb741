"""Recurring charge repository. Cancelled charges keep their row."""

from __future__ import annotations

import uuid
from datetime import date

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.base import utcnow
from app.db.models.recurring_charge import RecurringCharge

CHARGE_FIELDS = {
    "project_id",
    "description",
    "amount",
    "period",
    "custom_days",
    "start_date",
    "next_due_date",
    "last_payment_date",
    "is_active",
    "type",
}


async def create_charge(db: AsyncSession, *, created_by: uuid.UUID | None, **fields: object) -> RecurringCharge:
    charge = RecurringCharge(
        created_by=created_by,
        **{k: v for k, v in fields.items() if k in CHARGE_FIELDS},
    )
    db.add(charge)
    await db.flush()
    return await get_charge(db, charge.id)


async def get_charge(db: AsyncSession, charge_id: uuid.UUID) -> RecurringCharge | None:
    stmt = (
        select(RecurringCharge)
        .where(RecurringCharge.id == charge_id)
        .execution_options(populate_existing=True)
    )
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


def _live():
    return (RecurringCharge.is_active.is_(True), RecurringCharge.cancelled_at.is_(None))


async def list_active(db: AsyncSession, *, project_id: uuid.UUID | None = None) -> list[RecurringCharge]:
    """Active, non-cancelled charges ordered by next due date."""
    stmt = select(RecurringCharge).where(*_live()).order_by(RecurringCharge.next_due_date.asc())
    if project_id is not None:
        stmt = stmt.where(RecurringCharge.project_id == project_id)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def list_for_project(db: AsyncSession, project_id: uuid.UUID) -> list[RecurringCharge]:
    """Every non-cancelled charge of a project, active or paused."""
    stmt = (
        select(RecurringCharge)
        .where(RecurringCharge.project_id == project_id, RecurringCharge.cancelled_at.is_(None))
        .order_by(RecurringCharge.next_due_date.asc())
    )
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def list_cancelled(db: AsyncSession) -> list[RecurringCharge]:
    stmt = (
        select(RecurringCharge)
        .where(RecurringCharge.cancelled_at.is_not(None))
        .order_by(RecurringCharge.cancelled_at.desc())
    )
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def list_due_between(
    db: AsyncSession,
    *,
    start: date | None,
    end: date,
) -> list[RecurringCharge]:
    """Live charges with `start <= next_due_date <= end` (no lower bound when start is None)."""
    stmt = select(RecurringCharge).where(*_live(), RecurringCharge.next_due_date <= end)
    if start is not None:
        stmt = stmt.where(RecurringCharge.next_due_date >= start)
    stmt = stmt.order_by(RecurringCharge.next_due_date.asc())
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def next_due(db: AsyncSession) -> RecurringCharge | None:
    stmt = (
        select(RecurringCharge)
        .where(*_live())
        .order_by(RecurringCharge.next_due_date.asc())
        .limit(1)
    )
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def update_charge(db: AsyncSession, charge_id: uuid.UUID, **fields: object) -> RecurringCharge | None:
    charge = await db.get(RecurringCharge, charge_id)
    if charge is None:
        return None
    for key, value in fields.items():
        if key in CHARGE_FIELDS:
            setattr(charge, key, value)
    await db.flush()
    return await get_charge(db, charge_id)


async def cancel_charge(
    db: AsyncSession,
    charge_id: uuid.UUID,
    *,
    cancelled_by: uuid.UUID,
    reason: str | None,
) -> RecurringCharge | None:
    charge = await db.get(RecurringCharge, charge_id)
    if charge is None or charge.cancelled_at is not None:
        return None
    charge.cancelled_at = utcnow()
    charge.cancelled_by = cancelled_by
    charge.cancelled_reason = reason
    charge.is_active = False
    await db.flush()
    return await get_charge(db, charge_id)


async def restore_charge(db: AsyncSession, charge_id: uuid.UUID) -> RecurringCharge | None:
    charge = await db.get(RecurringCharge, charge_id)
    if charge is None or charge.cancelled_at is None:
        return None
    charge.cancelled_at = None
    charge.cancelled_by = None
    charge.cancelled_reason = None
    charge.is_active = True
    await db.flush()
    return await get_charge(db, charge_id)


async def delete_charge(db: AsyncSession, charge_id: uuid.UUID) -> bool:
    result = await db.execute(delete(RecurringCharge).where(RecurringCharge.id == charge_id))
    await db.flush()
    return result.rowcount > 0
