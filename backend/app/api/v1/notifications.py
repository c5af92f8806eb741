"""In-app notification inbox for the current user."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, get_db
from app.api.schemas.common import CountResponse, SuccessResponse
from app.api.schemas.notifications import NotificationResponse
from app.db.models.user import User
from app.services import notifications as notification_service

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("", response_model=list[NotificationResponse])
async def list_notifications(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> list[NotificationResponse]:
    """Newest first, capped at the configured list limit."""
    rows = await notification_service.list_notifications(db, current_user.id)
    return [NotificationResponse.model_validate(n) for n in rows]


@router.get("/unread-count", response_model=CountResponse)
async def unread_count(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> CountResponse:
    return CountResponse(count=await notification_service.unread_count(db, current_user.id))


@router.post("/read-all", response_model=CountResponse)
async def mark_all_read(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> CountResponse:
    return CountResponse(count=await notification_service.mark_all_read(db, current_user.id))


@router.delete("/read", response_model=CountResponse)
async def delete_read(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> CountResponse:
    return CountResponse(count=await notification_service.delete_read(db, current_user.id))


@router.post("/{notification_id}/read", response_model=SuccessResponse)
async def mark_read(
    notification_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> SuccessResponse:
    await notification_service.mark_read(db, notification_id, current_user.id)
    return SuccessResponse(message="Notification marked as read")


@router.delete("/{notification_id}", response_model=SuccessResponse)
async def delete_notification(
    notification_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> SuccessResponse:
    await notification_service.delete_notification(db, notification_id, current_user.id)
    return SuccessResponse(message="Notification deleted")
