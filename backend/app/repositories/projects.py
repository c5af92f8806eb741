"""
Project repository — projects, their members and their finance row.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.project import Project
from app.db.models.project_finance import ProjectFinance
from app.db.models.project_member import ProjectMember

PROJECT_FIELDS = {
    "name",
    "client_id",
    "description",
    "status",
    "start_date",
    "end_date",
    "repo_url",
    "staging_url",
    "prod_url",
    "deployment_platform",
    "domain_platform",
    "tech_stack",
}


# ─── Projects ─────────────────────────────────

async def create_project(
    db: AsyncSession,
    *,
    created_by: uuid.UUID | None,
    **fields: object,
) -> Project:
    project = Project(
        created_by=created_by,
        **{k: v for k, v in fields.items() if k in PROJECT_FIELDS},
    )
    db.add(project)
    await db.flush()
    return project


async def get_project(db: AsyncSession, project_id: uuid.UUID) -> Project | None:
    stmt = (
        select(Project)
        .where(Project.id == project_id)
        .execution_options(populate_existing=True)
    )
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def list_projects(
    db: AsyncSession,
    *,
    project_ids: Iterable[uuid.UUID] | None = None,
    status: str | None = None,
) -> list[Project]:
    """List projects newest first, optionally restricted to `project_ids`."""
    stmt = select(Project).order_by(Project.created_at.desc())
    if project_ids is not None:
        stmt = stmt.where(Project.id.in_(list(project_ids)))
    if status is not None:
        stmt = stmt.where(Project.status == status)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def count_projects(db: AsyncSession, *, status: str) -> int:
    stmt = select(func.count()).select_from(Project).where(Project.status == status)
    result = await db.execute(stmt)
    return result.scalar_one()


async def update_project(db: AsyncSession, project_id: uuid.UUID, **fields: object) -> Project | None:
    project = await db.get(Project, project_id)
    if project is None:
        return None
    for key, value in fields.items():
        if key in PROJECT_FIELDS:
            setattr(project, key, value)
    await db.flush()
    return await get_project(db, project_id)


async def delete_project(db: AsyncSession, project_id: uuid.UUID) -> bool:
    result = await db.execute(delete(Project).where(Project.id == project_id))
    await db.flush()
    return result.rowcount > 0


# ─── Members ──────────────────────────────────

async def list_member_project_ids(db: AsyncSession, user_id: uuid.UUID) -> list[uuid.UUID]:
    stmt = select(ProjectMember.project_id).where(ProjectMember.user_id == user_id)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def is_member(db: AsyncSession, project_id: uuid.UUID, user_id: uuid.UUID) -> bool:
    stmt = select(ProjectMember.id).where(
        ProjectMember.project_id == project_id,
        ProjectMember.user_id == user_id,
    )
    result = await db.execute(stmt)
    return result.first() is not None


async def list_members(db: AsyncSession, project_id: uuid.UUID) -> list[ProjectMember]:
    """Members of a project, most recently added first."""
    stmt = (
        select(ProjectMember)
        .where(ProjectMember.project_id == project_id)
        .order_by(ProjectMember.added_at.desc())
    )
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def replace_members(
    db: AsyncSession,
    project_id: uuid.UUID,
    user_ids: Iterable[uuid.UUID],
    *,
    added_by: uuid.UUID | None,
) -> list[ProjectMember]:
    """Delete every membership of the project, then insert `user_ids`."""
    await db.execute(delete(ProjectMember).where(ProjectMember.project_id == project_id))
    for user_id in dict.fromkeys(user_ids):
        db.add(ProjectMember(project_id=project_id, user_id=user_id, added_by=added_by))
    await db.flush()
    return await list_members(db, project_id)


async def remove_member(db: AsyncSession, project_id: uuid.UUID, user_id: uuid.UUID) -> bool:
    result = await db.execute(
        delete(ProjectMember).where(
            ProjectMember.project_id == project_id,
            ProjectMember.user_id == user_id,
        )
    )
    await db.flush()
    return result.rowcount > 0


# ─── Finance row ──────────────────────────────

async def create_finance(
    db: AsyncSession,
    project_id: uuid.UUID,
    *,
    total_value: float = 0,
    currency: str = "USD",
) -> ProjectFinance:
    finance = ProjectFinance(project_id=project_id, total_value=total_value, currency=currency)
    db.add(finance)
    await db.flush()
    return finance


async def get_finance(db: AsyncSession, project_id: uuid.UUID) -> ProjectFinance | None:
    stmt = select(ProjectFinance).where(ProjectFinance.project_id == project_id)
    result = await db.execute(stmt)
    return result.scalar_one_or_none()
