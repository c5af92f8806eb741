"""Shared application settings stored in the key/value table."""

from __future__ import annotations

import copy
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.constants import DEFAULT_KANBAN_COLORS, KANBAN_COLORS_KEY, ChangeEvent
from app.realtime.feed import record_change
from app.repositories import kv as kv_repository


async def get_kanban_colors(db: AsyncSession) -> dict[str, dict[str, str]]:
    """Admin column colours, falling back to the built-in defaults."""
    value = await kv_repository.get_value(db, KANBAN_COLORS_KEY)
    if not value:
        return copy.deepcopy(DEFAULT_KANBAN_COLORS)
    return value


async def set_kanban_colors(db: AsyncSession, colors: dict[str, dict[str, str]]) -> dict[str, Any]:
    entry = await kv_repository.set_value(db, KANBAN_COLORS_KEY, colors)
    record_change(db, "kv_entries", ChangeEvent.UPDATE, KANBAN_COLORS_KEY)
    return entry.value
