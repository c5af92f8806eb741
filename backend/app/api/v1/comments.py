"""Task comment endpoints."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, get_db
from app.api.schemas.comments import (
    CommentCreateRequest,
    CommentResponse,
    CommentUpdateRequest,
    MarkCommentsReadRequest,
)
from app.api.schemas.common import CountResponse
from app.db.models.user import User
from app.services import comments as comment_service

router = APIRouter(tags=["Comments"])


@router.get("/tasks/{task_id}/comments", response_model=list[CommentResponse])
async def list_comments(
    task_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> list[CommentResponse]:
    comments = await comment_service.list_comments(db, current_user, task_id)
    return [CommentResponse.model_validate(c) for c in comments]


@router.post(
    "/tasks/{task_id}/comments",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_comment(
    task_id: uuid.UUID,
    payload: CommentCreateRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> CommentResponse:
    comment = await comment_service.create_comment(db, current_user, task_id, payload.content)
    return CommentResponse.model_validate(comment)


@router.post("/tasks/{task_id}/comments/read", response_model=CountResponse)
async def mark_comments_read(
    task_id: uuid.UUID,
    payload: MarkCommentsReadRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> CountResponse:
    """Mark the listed comments as read by the caller; returns how many changed."""
    count = await comment_service.mark_read(db, current_user, task_id, payload.comment_ids)
    return CountResponse(count=count)


@router.get("/tasks/{task_id}/comments/unread-count", response_model=CountResponse)
async def unread_comment_count(
    task_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> CountResponse:
    return CountResponse(count=await comment_service.unread_count(db, current_user, task_id))


@router.patch("/comments/{comment_id}", response_model=CommentResponse)
async def edit_comment(
    comment_id: uuid.UUID,
    payload: CommentUpdateRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> CommentResponse:
    comment = await comment_service.edit_comment(db, current_user, comment_id, payload.content)
    return CommentResponse.model_validate(comment)


@router.delete("/comments/{comment_id}", response_model=CommentResponse)
async def delete_comment(
    comment_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> CommentResponse:
    """Soft-delete; the row stays in the thread with its content hidden."""
    comment = await comment_service.delete_comment(db, current_user, comment_id)
    response = CommentResponse.model_validate(comment)
    return response.model_copy(update={"content": ""})
