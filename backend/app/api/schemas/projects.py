"""Client, project and membership schemas."""

from __future__ import annotations

import uuid
from datetime import date, datetime

from pydantic import BaseModel, Field

from app.api.schemas.common import ClientBrief, UserBrief
from app.core.constants import ProjectStatus


class ClientCreateRequest(BaseModel):
    name: str = Field(..., min_length=2, max_length=255)
    contact_name: str | None = None
    contact_email: str | None = None
    contact_phone: str | None = None
    address: str | None = None
    notes: str | None = None
    is_active: bool = True


class ClientUpdateRequest(BaseModel):
    name: str | None = Field(None, min_length=2, max_length=255)
    contact_name: str | None = None
    contact_email: str | None = None
    contact_phone: str | None = None
    address: str | None = None
    notes: str | None = None
    is_active: bool | None = None


class ClientResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: uuid.UUID
    name: str
    contact_name: str | None = None
    contact_email: str | None = None
    contact_phone: str | None = None
    address: str | None = None
    notes: str | None = None
    is_active: bool
    created_by: uuid.UUID | None = None
    created_at: datetime
    updated_at: datetime


class ProjectCreateRequest(BaseModel):
    name: str = Field(..., min_length=2, max_length=255)
    client_id: uuid.UUID | None = None
    description: str | None = None
    status: ProjectStatus = ProjectStatus.PLANNING
    start_date: date | None = None
    end_date: date | None = None
    repo_url: str | None = None
    staging_url: str | None = None
    prod_url: str | None = None
    deployment_platform: str | None = None
    domain_platform: str | None = None
    tech_stack: list[str] = Field(default_factory=list)


class ProjectUpdateRequest(BaseModel):
    name: str | None = Field(None, min_length=2, max_length=255)
    client_id: uuid.UUID | None = None
    description: str | None = None
    status: ProjectStatus | None = None
    start_date: date | None = None
    end_date: date | None = None
    repo_url: str | None = None
    staging_url: str | None = None
    prod_url: str | None = None
    deployment_platform: str | None = None
    domain_platform: str | None = None
    tech_stack: list[str] | None = None


class ProjectResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: uuid.UUID
    name: str
    client_id: uuid.UUID | None = None
    client: ClientBrief | None = None
    description: str | None = None
    status: ProjectStatus
    start_date: date | None = None
    end_date: date | None = None
    repo_url: str | None = None
    staging_url: str | None = None
    prod_url: str | None = None
    deployment_platform: str | None = None
    domain_platform: str | None = None
    tech_stack: list[str] = Field(default_factory=list)
    created_by: uuid.UUID | None = None
    created_at: datetime
    updated_at: datetime


class MembersReplaceRequest(BaseModel):
    user_ids: list[uuid.UUID] = Field(default_factory=list)


class ProjectMemberResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: uuid.UUID
    project_id: uuid.UUID
    user_id: uuid.UUID
    added_by: uuid.UUID | None = None
    added_at: datetime
    user: UserBrief | None = None
