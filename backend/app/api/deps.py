"""Shared dependencies for API routes."""

from __future__ import annotations

import uuid
from typing import Any, AsyncGenerator, Callable

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.constants import UserRole
from app.core.security import decode_access_token
from app.db.models.user import User
from app.db.session import get_db as _get_db
from app.repositories import users as user_repository
from app.storage.object_store import ObjectStore, get_default_store

security_scheme = HTTPBearer(auto_error=False)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield an async DB session."""
    async for session in _get_db():
        yield session


def get_object_store() -> ObjectStore:
    """Attachment bucket client (overridden with a fake in tests)."""
    return get_default_store()


async def get_current_token_payload(
    credentials: HTTPAuthorizationCredentials | None = Depends(security_scheme),
) -> dict[str, Any]:
    """Extract and validate JWT payload from bearer token."""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication credentials were not provided",
        )

    payload = decode_access_token(credentials.credentials)
    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )
    return payload


async def resolve_user(db: AsyncSession, token_payload: dict[str, Any] | None) -> User | None:
    """Map a decoded token to an active user, or None."""
    if token_payload is None:
        return None
    try:
        user_id = uuid.UUID(str(token_payload.get("sub")))
    except (TypeError, ValueError):
        return None
    return await user_repository.get_active_user_by_id(db, user_id)


async def get_current_user(
    db: AsyncSession = Depends(get_db),
    token_payload: dict[str, Any] = Depends(get_current_token_payload),
) -> User:
    """Resolve an active user from JWT payload."""
    user = await resolve_user(db, token_payload)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or inactive user",
        )
    return user


def require_roles(*roles: UserRole) -> Callable[..., Any]:
    """Dependency factory: the current user must hold one of `roles`."""
    allowed = {str(r) for r in roles}

    async def _checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return current_user

    return _checker
