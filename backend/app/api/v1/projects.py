"""Project and project-membership endpoints."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, get_db, require_roles
from app.api.schemas.projects import (
    MembersReplaceRequest,
    ProjectCreateRequest,
    ProjectMemberResponse,
    ProjectResponse,
    ProjectUpdateRequest,
)
from app.core.constants import MANAGER_ROLES
from app.db.models.user import User
from app.services import projects as project_service

router = APIRouter(prefix="/projects", tags=["Projects"])


@router.get("", response_model=list[ProjectResponse])
async def list_projects(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> list[ProjectResponse]:
    """Projects visible to the caller (developers: member projects only)."""
    projects = await project_service.list_projects(db, current_user)
    return [ProjectResponse.model_validate(p) for p in projects]


@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(
    project_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ProjectResponse:
    return ProjectResponse.model_validate(await project_service.get_project(db, current_user, project_id))


@router.post("", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
async def create_project(
    payload: ProjectCreateRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_roles(*MANAGER_ROLES)),
) -> ProjectResponse:
    project = await project_service.create_project(db, current_user, payload.model_dump())
    return ProjectResponse.model_validate(project)


@router.patch("/{project_id}", response_model=ProjectResponse)
async def update_project(
    project_id: uuid.UUID,
    payload: ProjectUpdateRequest,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_roles(*MANAGER_ROLES)),
) -> ProjectResponse:
    project = await project_service.update_project(db, project_id, payload.model_dump(exclude_unset=True))
    return ProjectResponse.model_validate(project)


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_project(
    project_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_roles(*MANAGER_ROLES)),
) -> Response:
    await project_service.delete_project(db, project_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ─── Members ──────────────────────────────────

@router.get("/{project_id}/members", response_model=list[ProjectMemberResponse])
async def list_members(
    project_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> list[ProjectMemberResponse]:
    members = await project_service.list_members(db, current_user, project_id)
    return [ProjectMemberResponse.model_validate(m) for m in members]


@router.put("/{project_id}/members", response_model=list[ProjectMemberResponse])
async def replace_members(
    project_id: uuid.UUID,
    payload: MembersReplaceRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_roles(*MANAGER_ROLES)),
) -> list[ProjectMemberResponse]:
    """Replace the whole member set of a project."""
    members = await project_service.replace_members(db, current_user, project_id, payload.user_ids)
    return [ProjectMemberResponse.model_validate(m) for m in members]


@router.delete("/{project_id}/members/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_member(
    project_id: uuid.UUID,
    user_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_roles(*MANAGER_ROLES)),
) -> Response:
    await project_service.remove_member(db, current_user, project_id, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
