"""Task endpoints: CRUD, kanban board, moves, archive and stats."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, get_db, get_object_store, require_roles
from app.api.schemas.tasks import (
    ArchivedTasksPage,
    AutoArchiveResponse,
    BoardCardResponse,
    BoardColumnResponse,
    TaskCreateRequest,
    TaskMoveRequest,
    TaskResponse,
    TaskStatsResponse,
    TaskUpdateRequest,
)
from app.core.constants import MANAGER_ROLES
from app.db.models.user import User
from app.services import archive as archive_service
from app.services import tasks as task_service
from app.storage.object_store import ObjectStore

router = APIRouter(prefix="/tasks", tags=["Tasks"])


@router.get("", response_model=list[TaskResponse])
async def list_tasks(
    project_id: uuid.UUID | None = Query(None),
    include_archived: bool = Query(False),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> list[TaskResponse]:
    tasks = await task_service.list_tasks(
        db, current_user, project_id=project_id, include_archived=include_archived
    )
    return [TaskResponse.model_validate(t) for t in tasks]


@router.get("/board", response_model=list[BoardColumnResponse])
async def get_board(
    project_id: uuid.UUID | None = Query(None),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> list[BoardColumnResponse]:
    """Kanban columns for the caller's role."""
    columns = await task_service.get_board(db, current_user, project_id=project_id)
    return [
        BoardColumnResponse(
            status=column.status,
            title=column.title,
            tasks=[
                BoardCardResponse(
                    **TaskResponse.model_validate(card.task).model_dump(),
                    is_overdue=card.is_overdue,
                    unread_comments=card.unread_comments,
                )
                for card in column.cards
            ],
        )
        for column in columns
    ]


@router.get("/stats", response_model=TaskStatsResponse)
async def get_stats(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> TaskStatsResponse:
    return TaskStatsResponse(**await task_service.task_stats(db, current_user))


@router.get("/archived", response_model=ArchivedTasksPage)
async def list_archived(
    search: str | None = Query(None, max_length=200),
    project_id: uuid.UUID | None = Query(None),
    assigned_to: uuid.UUID | None = Query(None),
    page: int = Query(1),
    page_size: int = Query(10),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ArchivedTasksPage:
    result = await task_service.list_archived(
        db,
        current_user,
        search=search,
        project_id=project_id,
        assigned_to=assigned_to,
        page=page,
        page_size=page_size,
    )
    return ArchivedTasksPage(
        data=[TaskResponse.model_validate(t) for t in result["data"]],
        total=result["total"],
        page=result["page"],
        page_size=result["page_size"],
        total_pages=result["total_pages"],
    )


@router.post("/auto-archive", response_model=AutoArchiveResponse)
async def run_auto_archive(
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_roles(*MANAGER_ROLES)),
) -> AutoArchiveResponse:
    """Run the done-to-archived sweep now instead of waiting for the schedule."""
    return AutoArchiveResponse(**await archive_service.auto_archive_done_tasks(db))


@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
async def create_task(
    payload: TaskCreateRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_roles(*MANAGER_ROLES)),
) -> TaskResponse:
    task = await task_service.create_task(db, current_user, payload.model_dump())
    return TaskResponse.model_validate(task)


@router.get("/{task_id}", response_model=TaskResponse)
async def get_task(
    task_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> TaskResponse:
    return TaskResponse.model_validate(await task_service.get_visible_task(db, current_user, task_id))


@router.patch("/{task_id}", response_model=TaskResponse)
async def update_task(
    task_id: uuid.UUID,
    payload: TaskUpdateRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> TaskResponse:
    task = await task_service.update_task(
        db, current_user, task_id, payload.model_dump(exclude_unset=True)
    )
    return TaskResponse.model_validate(task)


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(
    task_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    store: ObjectStore = Depends(get_object_store),
    current_user: User = Depends(require_roles(*MANAGER_ROLES)),
) -> Response:
    await task_service.delete_task(db, current_user, task_id, store)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{task_id}/move", response_model=TaskResponse)
async def move_task(
    task_id: uuid.UUID,
    payload: TaskMoveRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> TaskResponse:
    task = await task_service.move_task(
        db,
        current_user,
        task_id,
        status=payload.status,
        rejection_reason=payload.rejection_reason,
    )
    return TaskResponse.model_validate(task)


@router.post("/{task_id}/archive", response_model=TaskResponse)
async def archive_task(
    task_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_roles(*MANAGER_ROLES)),
) -> TaskResponse:
    return TaskResponse.model_validate(await task_service.archive_task(db, current_user, task_id))


@router.post("/{task_id}/observations/read", response_model=TaskResponse)
async def mark_observation_read(
    task_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_roles(*MANAGER_ROLES)),
) -> TaskResponse:
    return TaskResponse.model_validate(
        await task_service.mark_observation_read(db, current_user, task_id)
    )


@router.post("/{task_id}/rejection/read", response_model=TaskResponse)
async def mark_rejection_read(
    task_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> TaskResponse:
    return TaskResponse.model_validate(
        await task_service.mark_rejection_read(db, current_user, task_id)
    )
