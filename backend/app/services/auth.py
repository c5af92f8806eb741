"""
Credential checks and access-token issuing.

Tokens carry `sub` (user id), `role` and `email`.  The role claim is a
convenience for clients; every request re-reads the user row, so a
deactivated account stops working immediately.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.logging import get_logger
from app.core.security import create_access_token, verify_password
from app.db.models.user import User
from app.repositories import users as user_repository

logger = get_logger(__name__)


async def authenticate(db: AsyncSession, email: str, password: str) -> User | None:
    """Return the active user matching the credentials, or None."""
    user = await user_repository.get_user_by_email(db, email)
    if user is None or not user.is_active:
        return None
    if not verify_password(password, user.hashed_password):
        return None
    return user


def issue_token(user: User) -> dict[str, Any]:
    token = create_access_token({"sub": str(user.id), "role": user.role, "email": user.email})
    return {
        "access_token": token,
        "token_type": "bearer",
        "expires_in": settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    }


async def login(db: AsyncSession, email: str, password: str) -> tuple[User, dict[str, Any]] | None:
    """Authenticate, stamp last_login_at and issue a token. None on bad credentials."""
    user = await authenticate(db, email, password)
    if user is None:
        logger.info("Login rejected", email=user_repository.normalize_email(email))
        return None

    await user_repository.record_login(db, user.id)
    await db.refresh(user)
    logger.info("User logged in", user_id=str(user.id), role=user.role)
    return user, issue_token(user)
