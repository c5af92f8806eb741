"""User provisioning (admin only at the API layer)."""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.constants import ChangeEvent, NotificationType, UserRole
from app.core.errors import ConflictError, NotFoundError
from app.core.logging import get_logger
from app.core.security import hash_password
from app.db.models.user import User
from app.realtime.feed import record_change
from app.repositories import users as user_repository
from app.services import notifications as notification_service

logger = get_logger(__name__)

DUPLICATE_EMAIL_MESSAGE = "A user with this email already exists"


async def create_user(db: AsyncSession, actor: User, data: dict[str, Any]) -> User:
    """Create an active user; the account is usable immediately."""
    if await user_repository.get_user_by_email(db, data["email"]) is not None:
        raise ConflictError(DUPLICATE_EMAIL_MESSAGE, details={"email": data["email"].lower().strip()})

    user = await user_repository.create_user(
        db,
        email=data["email"],
        hashed_password=hash_password(data["password"]),
        full_name=data["full_name"],
        role=str(data["role"]),
        avatar_url=data.get("avatar_url"),
    )
    record_change(db, "users", ChangeEvent.INSERT, user.id)
    logger.info("User created", user_id=str(user.id), role=user.role, actor=str(actor.id))

    await notification_service.notify_roles(
        db,
        [UserRole.ADMIN],
        type=NotificationType.USER_REGISTERED,
        title="New user",
        message=f"{user.full_name} ({user.role}) was added",
        entity_type="user",
        entity_id=user.id,
        action_url="/users",
        created_by=actor.id,
        exclude=actor.id,
    )
    return user


async def get_user(db: AsyncSession, user_id: uuid.UUID) -> User:
    user = await user_repository.get_user_by_id(db, user_id)
    if user is None:
        raise NotFoundError("User not found", details={"user_id": str(user_id)})
    return user


async def update_user(db: AsyncSession, user_id: uuid.UUID, changes: dict[str, Any]) -> User:
    email = changes.get("email")
    if email:
        existing = await user_repository.get_user_by_email(db, email)
        if existing is not None and existing.id != user_id:
            raise ConflictError(DUPLICATE_EMAIL_MESSAGE, details={"email": email})

    user = await user_repository.update_user(db, user_id, **changes)
    if user is None:
        raise NotFoundError("User not found", details={"user_id": str(user_id)})
    record_change(db, "users", ChangeEvent.UPDATE, user.id)
    return user


async def delete_user(db: AsyncSession, actor: User, user_id: uuid.UUID) -> None:
    if not await user_repository.delete_user(db, user_id):
        raise NotFoundError("User not found", details={"user_id": str(user_id)})
    record_change(db, "users", ChangeEvent.DELETE, user_id)
    logger.info("User deleted", user_id=str(user_id), actor=str(actor.id))
