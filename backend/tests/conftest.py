"""Pytest configuration and shared fixtures.

API tests drive the ASGI app in-process over httpx; the database is an
in-memory SQLite shared through a StaticPool and the object store is an
in-memory fake.
"""

from __future__ import annotations

import os

os.environ.setdefault("SQLALCHEMY_DATABASE_URI", "sqlite+aiosqlite://")
os.environ.setdefault("APP_ENV", "test")

import httpx
import pytest
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.api.deps import get_object_store
from app.core.errors import StorageError
from app.core.security import create_access_token, hash_password
from app.db import session as db_session
from app.db.models import Base, Project, Task, User
from app.main import app

TEST_PASSWORD = "secret123"


class FakeObjectStore:
    """In-memory stand-in for the attachments bucket."""

    def __init__(self) -> None:
        self.objects: dict[str, tuple[bytes, str]] = {}
        self.fail_removes = False

    async def upload(self, path: str, data: bytes, content_type: str) -> str:
        self.objects[path] = (data, content_type)
        return path

    async def download(self, path: str) -> bytes:
        if path not in self.objects:
            raise StorageError("Failed to download file", details={"path": path})
        return self.objects[path][0]

    async def remove(self, paths: list[str]) -> None:
        if self.fail_removes:
            raise StorageError("Failed to remove files", details={"paths": paths})
        for path in paths:
            self.objects.pop(path, None)

    async def signed_url(self, path: str, expires_in: int | None = None) -> str:
        return f"https://storage.test/{path}?expires={expires_in}"


# ─── Database ─────────────────────────────────

@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine, monkeypatch):
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    monkeypatch.setattr(db_session, "async_session", factory)
    return factory


@pytest.fixture
async def db(session_factory):
    """A session for arranging and inspecting rows. Commit what requests must see."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def store():
    fake = FakeObjectStore()
    app.dependency_overrides[get_object_store] = lambda: fake
    yield fake
    app.dependency_overrides.pop(get_object_store, None)


@pytest.fixture
async def client(session_factory, store):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test/api/v1") as http:
        yield http


# ─── Users ────────────────────────────────────

@pytest.fixture(scope="session")
def password_hash() -> str:
    return hash_password(TEST_PASSWORD)


async def make_user(db: AsyncSession, password_hash: str, *, role: str, name: str) -> User:
    user = User(
        email=f"{name}@projectdesk.test",
        hashed_password=password_hash,
        full_name=name.replace("_", " ").title(),
        role=role,
    )
    db.add(user)
    await db.commit()
    return user


@pytest.fixture
async def users(db, password_hash) -> dict[str, User]:
    """One user per role plus a second developer."""
    return {
        "admin": await make_user(db, password_hash, role="admin", name="admin"),
        "pm": await make_user(db, password_hash, role="pm", name="pm"),
        "dev": await make_user(db, password_hash, role="dev", name="dev"),
        "dev2": await make_user(db, password_hash, role="dev", name="other_dev"),
        "advisor": await make_user(db, password_hash, role="advisor", name="advisor"),
    }


def auth(user: User) -> dict[str, str]:
    token = create_access_token({"sub": str(user.id), "role": user.role, "email": user.email})
    return {"Authorization": f"Bearer {token}"}


# ─── Projects & tasks ─────────────────────────

@pytest.fixture
async def project(db, users) -> Project:
    project = Project(name="Website Relaunch", status="active", created_by=users["pm"].id)
    db.add(project)
    await db.commit()
    return project


async def make_task(db: AsyncSession, project: Project, **fields) -> Task:
    fields.setdefault("title", "Build landing page")
    fields.setdefault("status", "todo")
    task = Task(project_id=project.id, **fields)
    db.add(task)
    await db.commit()
    return task
