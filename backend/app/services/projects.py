"""
Clients, projects and project membership.

Developers only see projects they are a member of; every other role
sees all projects.
"""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.constants import ChangeEvent, NotificationType, UserRole
from app.core.errors import NotFoundError
from app.core.logging import get_logger
from app.db.models.client import Client
from app.db.models.project import Project
from app.db.models.project_member import ProjectMember
from app.db.models.user import User
from app.realtime.feed import record_change
from app.repositories import clients as client_repository
from app.repositories import projects as project_repository
from app.services import notifications as notification_service

logger = get_logger(__name__)


# ─── Clients ──────────────────────────────────

async def list_clients(db: AsyncSession) -> list[Client]:
    return await client_repository.list_clients(db)


async def get_client(db: AsyncSession, client_id: uuid.UUID) -> Client:
    client = await client_repository.get_client(db, client_id)
    if client is None:
        raise NotFoundError("Client not found", details={"client_id": str(client_id)})
    return client


async def create_client(db: AsyncSession, user: User, data: dict[str, Any]) -> Client:
    client = await client_repository.create_client(db, created_by=user.id, **data)
    record_change(db, "clients", ChangeEvent.INSERT, client.id)
    return client


async def update_client(db: AsyncSession, client_id: uuid.UUID, changes: dict[str, Any]) -> Client:
    client = await client_repository.update_client(db, client_id, **changes)
    if client is None:
        raise NotFoundError("Client not found", details={"client_id": str(client_id)})
    record_change(db, "clients", ChangeEvent.UPDATE, client.id)
    return client


async def delete_client(db: AsyncSession, client_id: uuid.UUID) -> None:
    if not await client_repository.delete_client(db, client_id):
        raise NotFoundError("Client not found", details={"client_id": str(client_id)})
    record_change(db, "clients", ChangeEvent.DELETE, client_id)


# ─── Projects ─────────────────────────────────

async def list_projects(db: AsyncSession, user: User) -> list[Project]:
    if user.role == UserRole.DEV:
        project_ids = await project_repository.list_member_project_ids(db, user.id)
        if not project_ids:
            return []
        return await project_repository.list_projects(db, project_ids=project_ids)
    return await project_repository.list_projects(db)


async def get_project(db: AsyncSession, user: User, project_id: uuid.UUID) -> Project:
    project = await project_repository.get_project(db, project_id)
    if project is None:
        raise NotFoundError("Project not found", details={"project_id": str(project_id)})
    if user.role == UserRole.DEV and not await project_repository.is_member(db, project_id, user.id):
        raise NotFoundError("Project not found", details={"project_id": str(project_id)})
    return project


async def create_project(db: AsyncSession, user: User, data: dict[str, Any]) -> Project:
    """Create a project together with its zero-valued finance row."""
    if data.get("client_id") is not None:
        await get_client(db, data["client_id"])
    data = {**data}
    if data.get("tech_stack") is None:
        data["tech_stack"] = []

    project = await project_repository.create_project(db, created_by=user.id, **data)
    await project_repository.create_finance(
        db, project.id, total_value=0, currency=settings.DEFAULT_CURRENCY
    )
    project = await project_repository.get_project(db, project.id)

    record_change(db, "projects", ChangeEvent.INSERT, project.id)
    logger.info("Project created", project_id=str(project.id), actor=str(user.id))

    await notification_service.notify_roles(
        db,
        [UserRole.ADMIN],
        type=NotificationType.PROJECT_CREATED,
        title="New project",
        message=f'Project "{project.name}" was created',
        entity_type="project",
        entity_id=project.id,
        action_url=f"/projects/{project.id}",
        created_by=user.id,
        exclude=user.id,
    )
    return project


async def update_project(db: AsyncSession, project_id: uuid.UUID, changes: dict[str, Any]) -> Project:
    if changes.get("client_id") is not None:
        await get_client(db, changes["client_id"])
    if "tech_stack" in changes and changes["tech_stack"] is None:
        changes = {**changes, "tech_stack": []}
    project = await project_repository.update_project(db, project_id, **changes)
    if project is None:
        raise NotFoundError("Project not found", details={"project_id": str(project_id)})
    record_change(db, "projects", ChangeEvent.UPDATE, project.id)
    return project


async def delete_project(db: AsyncSession, project_id: uuid.UUID) -> None:
    if not await project_repository.delete_project(db, project_id):
        raise NotFoundError("Project not found", details={"project_id": str(project_id)})
    record_change(db, "projects", ChangeEvent.DELETE, project_id)
    logger.info("Project deleted", project_id=str(project_id))


# ─── Members ──────────────────────────────────

async def list_members(db: AsyncSession, user: User, project_id: uuid.UUID) -> list[ProjectMember]:
    await get_project(db, user, project_id)
    return await project_repository.list_members(db, project_id)


async def replace_members(
    db: AsyncSession,
    user: User,
    project_id: uuid.UUID,
    user_ids: list[uuid.UUID],
) -> list[ProjectMember]:
    """Make `user_ids` the exact member set of the project."""
    await get_project(db, user, project_id)
    members = await project_repository.replace_members(db, project_id, user_ids, added_by=user.id)
    record_change(db, "project_members", ChangeEvent.UPDATE, project_id, project_id=project_id)
    logger.info("Project members replaced", project_id=str(project_id), count=len(members))
    return members


async def remove_member(db: AsyncSession, user: User, project_id: uuid.UUID, member_id: uuid.UUID) -> None:
    await get_project(db, user, project_id)
    if not await project_repository.remove_member(db, project_id, member_id):
        raise NotFoundError(
            "Member not found",
            details={"project_id": str(project_id), "user_id": str(member_id)},
        )
    record_change(db, "project_members", ChangeEvent.DELETE, project_id, project_id=project_id)
