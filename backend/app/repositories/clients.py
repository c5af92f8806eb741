"""Client repository."""

from __future__ import annotations

import uuid

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.client import Client

CLIENT_FIELDS = {
    "name",
    "contact_name",
    "contact_email",
    "contact_phone",
    "address",
    "notes",
    "is_active",
}


async def create_client(db: AsyncSession, *, created_by: uuid.UUID | None, **fields: object) -> Client:
    client = Client(created_by=created_by, **{k: v for k, v in fields.items() if k in CLIENT_FIELDS})
    db.add(client)
    await db.flush()
    return client


async def get_client(db: AsyncSession, client_id: uuid.UUID) -> Client | None:
    return await db.get(Client, client_id)


async def list_clients(db: AsyncSession, *, is_active: bool | None = None) -> list[Client]:
    """List clients ordered by name."""
    stmt = select(Client).order_by(Client.name)
    if is_active is not None:
        stmt = stmt.where(Client.is_active == is_active)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def update_client(db: AsyncSession, client_id: uuid.UUID, **fields: object) -> Client | None:
    client = await get_client(db, client_id)
    if client is None:
        return None
    for key, value in fields.items():
        if key in CLIENT_FIELDS:
            setattr(client, key, value)
    await db.flush()
    return client


async def delete_client(db: AsyncSession, client_id: uuid.UUID) -> bool:
    result = await db.execute(delete(Client).where(Client.id == client_id))
    await db.flush()
    return result.rowcount > 0
