"""Client endpoints."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, get_db, require_roles
from app.api.schemas.projects import ClientCreateRequest, ClientResponse, ClientUpdateRequest
from app.core.constants import MANAGER_ROLES
from app.db.models.user import User
from app.services import projects as project_service

router = APIRouter(prefix="/clients", tags=["Clients"])


@router.get("", response_model=list[ClientResponse])
async def list_clients(
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user),
) -> list[ClientResponse]:
    return [ClientResponse.model_validate(c) for c in await project_service.list_clients(db)]


@router.get("/{client_id}", response_model=ClientResponse)
async def get_client(
    client_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user),
) -> ClientResponse:
    return ClientResponse.model_validate(await project_service.get_client(db, client_id))


@router.post("", response_model=ClientResponse, status_code=status.HTTP_201_CREATED)
async def create_client(
    payload: ClientCreateRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_roles(*MANAGER_ROLES)),
) -> ClientResponse:
    client = await project_service.create_client(db, current_user, payload.model_dump())
    return ClientResponse.model_validate(client)


@router.patch("/{client_id}", response_model=ClientResponse)
async def update_client(
    client_id: uuid.UUID,
    payload: ClientUpdateRequest,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_roles(*MANAGER_ROLES)),
) -> ClientResponse:
    client = await project_service.update_client(db, client_id, payload.model_dump(exclude_unset=True))
    return ClientResponse.model_validate(client)


@router.delete("/{client_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_client(
    client_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_roles(*MANAGER_ROLES)),
) -> Response:
    await project_service.delete_client(db, client_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
