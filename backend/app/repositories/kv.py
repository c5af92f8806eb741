"""Key/value settings repository."""

from __future__ import annotations

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.kv_entry import KVEntry


async def get_value(db: AsyncSession, key: str) -> Any | None:
    entry = await db.get(KVEntry, key)
    return None if entry is None else entry.value


async def set_value(db: AsyncSession, key: str, value: Any) -> KVEntry:
    """Insert or replace the value stored under `key`."""
    entry = await db.get(KVEntry, key)
    if entry is None:
        entry = KVEntry(key=key, value=value)
        db.add(entry)
    else:
        entry.value = value
    await db.flush()
    return entry
