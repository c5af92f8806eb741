"""User profile repository. Emails are stored and matched lower-cased."""

from __future__ import annotations

import uuid
from collections.abc import Iterable

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.base import utcnow
from app.db.models.user import User

USER_FIELDS = {"email", "full_name", "role", "avatar_url", "is_active"}


def normalize_email(email: str) -> str:
    return email.lower().strip()


async def create_user(db: AsyncSession, *, hashed_password: str, **fields: object) -> User:
    values = {k: v for k, v in fields.items() if k in USER_FIELDS}
    values["email"] = normalize_email(str(values["email"]))
    values["full_name"] = str(values["full_name"]).strip()
    user = User(hashed_password=hashed_password, **values)
    db.add(user)
    await db.flush()
    return user


async def get_user_by_id(db: AsyncSession, user_id: uuid.UUID) -> User | None:
    return await db.get(User, user_id)


async def get_active_user_by_id(db: AsyncSession, user_id: uuid.UUID) -> User | None:
    stmt = select(User).where(User.id == user_id, User.is_active.is_(True))
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    result = await db.execute(select(User).where(User.email == normalize_email(email)))
    return result.scalar_one_or_none()


async def list_users(
    db: AsyncSession,
    *,
    role: str | None = None,
    is_active: bool | None = None,
) -> list[User]:
    """Users ordered by full name."""
    stmt = select(User).order_by(User.full_name)
    if role is not None:
        stmt = stmt.where(User.role == str(role))
    if is_active is not None:
        stmt = stmt.where(User.is_active == is_active)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def list_user_ids_by_roles(db: AsyncSession, roles: Iterable[str]) -> list[uuid.UUID]:
    """Ids of active users holding any of `roles`; notification fan-out uses this."""
    stmt = select(User.id).where(
        User.role.in_([str(r) for r in roles]),
        User.is_active.is_(True),
    )
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def update_user(db: AsyncSession, user_id: uuid.UUID, **fields: object) -> User | None:
    """Apply the given profile fields; None values leave a field unchanged."""
    user = await get_user_by_id(db, user_id)
    if user is None:
        return None
    for key, value in fields.items():
        if key not in USER_FIELDS or value is None:
            continue
        if key == "email":
            value = normalize_email(str(value))
        setattr(user, key, value)
    await db.flush()
    return user


async def record_login(db: AsyncSession, user_id: uuid.UUID) -> None:
    await db.execute(update(User).where(User.id == user_id).values(last_login_at=utcnow()))
    await db.flush()


async def delete_user(db: AsyncSession, user_id: uuid.UUID) -> bool:
    result = await db.execute(delete(User).where(User.id == user_id))
    await db.flush()
    return result.rowcount > 0
