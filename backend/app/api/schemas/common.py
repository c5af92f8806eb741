"""Small schemas shared by several routers."""

from __future__ import annotations

import uuid

from pydantic import BaseModel


class UserBrief(BaseModel):
    model_config = {"from_attributes": True}

    id: uuid.UUID
    full_name: str
    email: str
    avatar_url: str | None = None


class ClientBrief(BaseModel):
    model_config = {"from_attributes": True}

    id: uuid.UUID
    name: str


class ProjectBrief(BaseModel):
    model_config = {"from_attributes": True}

    id: uuid.UUID
    name: str
    status: str
    client: ClientBrief | None = None


class SuccessResponse(BaseModel):
    success: bool = True
    message: str | None = None


class CountResponse(BaseModel):
    count: int
