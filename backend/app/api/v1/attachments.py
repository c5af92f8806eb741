"""Task attachment endpoints backed by the object store."""

from __future__ import annotations

import uuid
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, Response, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, get_db, get_object_store
from app.api.schemas.attachments import AttachmentResponse, SignedUrlResponse
from app.api.schemas.common import SuccessResponse
from app.core.config import settings
from app.db.models.user import User
from app.services import attachments as attachment_service
from app.storage.object_store import ObjectStore

router = APIRouter(tags=["Attachments"])


@router.get("/tasks/{task_id}/attachments", response_model=list[AttachmentResponse])
async def list_attachments(
    task_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> list[AttachmentResponse]:
    attachments = await attachment_service.list_attachments(db, current_user, task_id)
    return [AttachmentResponse.model_validate(a) for a in attachments]


@router.post(
    "/tasks/{task_id}/attachments",
    response_model=AttachmentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def upload_attachment(
    task_id: uuid.UUID,
    file: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
    store: ObjectStore = Depends(get_object_store),
    current_user: User = Depends(get_current_user),
) -> AttachmentResponse:
    data = await file.read()
    attachment = await attachment_service.upload_attachment(
        db,
        current_user,
        task_id,
        file_name=file.filename or "file",
        content_type=file.content_type,
        data=data,
        store=store,
    )
    return AttachmentResponse.model_validate(attachment)


@router.post("/tasks/{task_id}/attachments/seen", response_model=SuccessResponse)
async def mark_attachments_seen(
    task_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> SuccessResponse:
    await attachment_service.mark_seen(db, current_user, task_id)
    return SuccessResponse(message="Attachments marked as seen")


@router.get("/attachments/{attachment_id}/download")
async def download_attachment(
    attachment_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    store: ObjectStore = Depends(get_object_store),
    current_user: User = Depends(get_current_user),
) -> Response:
    attachment, data = await attachment_service.download_attachment(
        db, current_user, attachment_id, store
    )
    return Response(
        content=data,
        media_type=attachment.file_type,
        headers={
            "Content-Disposition": f"attachment; filename*=UTF-8''{quote(attachment.file_name)}",
        },
    )


@router.get("/attachments/{attachment_id}/url", response_model=SignedUrlResponse)
async def attachment_url(
    attachment_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    store: ObjectStore = Depends(get_object_store),
    current_user: User = Depends(get_current_user),
) -> SignedUrlResponse:
    """Time-limited direct link for previews."""
    url = await attachment_service.signed_url(db, current_user, attachment_id, store)
    return SignedUrlResponse(url=url, expires_in=settings.STORAGE_SIGNED_URL_TTL_SECONDS)


@router.post("/attachments/{attachment_id}/viewed", response_model=AttachmentResponse)
async def mark_attachment_viewed(
    attachment_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> AttachmentResponse:
    attachment = await attachment_service.mark_viewed(db, current_user, attachment_id)
    return AttachmentResponse.model_validate(attachment)


@router.delete("/attachments/{attachment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_attachment(
    attachment_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    store: ObjectStore = Depends(get_object_store),
    current_user: User = Depends(get_current_user),
) -> Response:
    await attachment_service.delete_attachment(db, current_user, attachment_id, store)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
