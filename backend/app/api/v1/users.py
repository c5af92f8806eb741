"""User provisioning endpoints. Writes are admin-only; any signed-in user can list."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, get_db, require_roles
from app.api.schemas.users import (
    UserCreateRequest,
    UserCreateResponse,
    UserResponse,
    UserUpdateRequest,
)
from app.core.constants import UserRole
from app.db.models.user import User
from app.repositories import users as user_repository
from app.services import users as user_service

router = APIRouter(prefix="/users", tags=["Users"])


@router.post("", response_model=UserCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    payload: UserCreateRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.ADMIN)),
) -> UserCreateResponse:
    """Create a user whose account is usable immediately."""
    user = await user_service.create_user(db, current_user, payload.model_dump())
    return UserCreateResponse(
        success=True,
        user=UserResponse.model_validate(user),
        message="User created successfully with email confirmed",
    )


@router.get("", response_model=list[UserResponse])
async def list_users(
    role: UserRole | None = Query(None),
    is_active: bool | None = Query(None),
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user),
) -> list[UserResponse]:
    users = await user_repository.list_users(db, role=role, is_active=is_active)
    return [UserResponse.model_validate(u) for u in users]


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user),
) -> UserResponse:
    return UserResponse.model_validate(await user_service.get_user(db, user_id))


@router.patch("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: uuid.UUID,
    payload: UserUpdateRequest,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_roles(UserRole.ADMIN)),
) -> UserResponse:
    user = await user_service.update_user(db, user_id, payload.model_dump(exclude_unset=True))
    return UserResponse.model_validate(user)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    user_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.ADMIN)),
) -> Response:
    await user_service.delete_user(db, current_user, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
