"""Shared application settings."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, get_db, require_roles
from app.api.schemas.settings import KanbanColorsPayload
from app.core.constants import UserRole
from app.db.models.user import User
from app.services import settings as settings_service

router = APIRouter(prefix="/settings", tags=["Settings"])


@router.get("/kanban-colors", response_model=KanbanColorsPayload)
async def get_kanban_colors(
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user),
) -> KanbanColorsPayload:
    return KanbanColorsPayload(colors=await settings_service.get_kanban_colors(db))


@router.put("/kanban-colors", response_model=KanbanColorsPayload)
async def set_kanban_colors(
    payload: KanbanColorsPayload,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_roles(UserRole.ADMIN)),
) -> KanbanColorsPayload:
    """Replace the admin column colours used as the board default."""
    return KanbanColorsPayload(colors=await settings_service.set_kanban_colors(db, payload.colors))
