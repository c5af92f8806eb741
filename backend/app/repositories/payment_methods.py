"""Payment method repository."""

from __future__ import annotations

import uuid

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.payment_method import PaymentMethod


async def create_method(
    db: AsyncSession,
    *,
    name: str,
    description: str | None = None,
    is_active: bool = True,
    created_by: uuid.UUID | None = None,
) -> PaymentMethod:
    method = PaymentMethod(
        name=name,
        description=description,
        is_active=is_active,
        created_by=created_by,
    )
    db.add(method)
    await db.flush()
    return method


async def list_methods(db: AsyncSession) -> list[PaymentMethod]:
    """All payment methods, newest first."""
    stmt = select(PaymentMethod).order_by(PaymentMethod.created_at.desc())
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def update_method(db: AsyncSession, method_id: uuid.UUID, **fields: object) -> PaymentMethod | None:
    method = await db.get(PaymentMethod, method_id)
    if method is None:
        return None
    for key in ("name", "description", "is_active"):
        if key in fields and fields[key] is not None:
            setattr(method, key, fields[key])
    await db.flush()
    return method


async def delete_method(db: AsyncSession, method_id: uuid.UUID) -> bool:
    result = await db.execute(delete(PaymentMethod).where(PaymentMethod.id == method_id))
    await db.flush()
    return result.rowcount > 0
