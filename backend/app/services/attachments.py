"""
Task attachments: upload to object storage plus a metadata row.

Storage layout: `{task_id}/{epoch_ms}-{random}.{ext}` in the attachments
bucket.  The "new attachment" flags on the task tell the other side
(PM or dev) that something was uploaded since they last looked.
"""

from __future__ import annotations

import secrets
import uuid

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.constants import MANAGER_ROLES, ChangeEvent, UserRole
from app.core.errors import NotFoundError, PayloadTooLargeError, PermissionDeniedError, StorageError
from app.core.logging import get_logger
from app.db.models.base import utcnow
from app.db.models.task_attachment import TaskAttachment
from app.db.models.user import User
from app.realtime.feed import record_change
from app.repositories import attachments as attachment_repository
from app.repositories import tasks as task_repository
from app.services import tasks as task_service
from app.storage.object_store import ObjectStore

logger = get_logger(__name__)

SIZE_UNITS = ("Bytes", "KB", "MB", "GB")


def format_file_size(size: int) -> str:
    """Render a byte count with 1024-based units, at most two decimals."""
    if size <= 0:
        return "0 Bytes"
    exponent = 0
    while size >= 1024 ** (exponent + 1) and exponent < len(SIZE_UNITS) - 1:
        exponent += 1
    value = round(size / 1024 ** exponent, 2)
    return f"{value:g} {SIZE_UNITS[exponent]}"


def is_image_file(file_type: str) -> bool:
    return (file_type or "").startswith("image/")


def build_storage_path(task_id: uuid.UUID, file_name: str, *, now_ms: int | None = None) -> str:
    _, dot, ext = file_name.rpartition(".")
    extension = ext.lower() if dot and ext else "bin"
    timestamp = now_ms if now_ms is not None else int(utcnow().timestamp() * 1000)
    return f"{task_id}/{timestamp}-{secrets.token_hex(6)}.{extension}"


def _record(db: AsyncSession, event: ChangeEvent, attachment: TaskAttachment) -> None:
    record_change(db, "task_attachments", event, attachment.id, task_id=attachment.task_id)


async def list_attachments(db: AsyncSession, user: User, task_id: uuid.UUID) -> list[TaskAttachment]:
    await task_service.get_visible_task(db, user, task_id)
    return await attachment_repository.list_attachments(db, task_id)


async def upload_attachment(
    db: AsyncSession,
    user: User,
    task_id: uuid.UUID,
    *,
    file_name: str,
    content_type: str | None,
    data: bytes,
    store: ObjectStore,
) -> TaskAttachment:
    """Store the file, then its metadata; the file is removed again if the row fails."""
    task = await task_service.get_visible_task(db, user, task_id)

    if len(data) > settings.ATTACHMENT_MAX_BYTES:
        raise PayloadTooLargeError(
            f"File exceeds the {format_file_size(settings.ATTACHMENT_MAX_BYTES)} limit",
            details={"file_name": file_name, "size": len(data)},
        )

    content_type = content_type or "application/octet-stream"
    path = build_storage_path(task.id, file_name)
    await store.upload(path, data, content_type)

    try:
        attachment = await attachment_repository.create_attachment(
            db,
            task_id=task.id,
            file_name=file_name,
            file_path=path,
            file_size=len(data),
            file_type=content_type,
            uploaded_by=user.id,
            viewed_by_pm=user.role == UserRole.PM,
            viewed_by_dev=user.role == UserRole.DEV,
        )
    except SQLAlchemyError:
        logger.error("Attachment metadata insert failed, removing stored file", path=path)
        try:
            await store.remove([path])
        except StorageError as exc:
            logger.warning("Orphaned attachment file", path=path, error=exc.message)
        raise

    flags: dict[str, object] = {"last_attachment_by": user.id, "last_attachment_at": utcnow()}
    if user.role == UserRole.DEV:
        flags["has_new_attachments_for_pm"] = True
    elif user.role == UserRole.PM:
        flags["has_new_attachments_for_dev"] = True
    updated = await task_repository.update_task(db, task.id, **flags)

    _record(db, ChangeEvent.INSERT, attachment)
    record_change(
        db,
        "tasks",
        ChangeEvent.UPDATE,
        task.id,
        project_id=updated.project_id,
        assigned_to=updated.assigned_to,
    )
    logger.info(
        "Attachment uploaded",
        task_id=str(task.id),
        attachment_id=str(attachment.id),
        size=attachment.file_size,
    )
    return attachment


async def get_visible_attachment(db: AsyncSession, user: User, attachment_id: uuid.UUID) -> TaskAttachment:
    attachment = await attachment_repository.get_attachment(db, attachment_id)
    if attachment is None:
        raise NotFoundError("Attachment not found", details={"attachment_id": str(attachment_id)})
    await task_service.get_visible_task(db, user, attachment.task_id)
    return attachment


async def download_attachment(
    db: AsyncSession,
    user: User,
    attachment_id: uuid.UUID,
    store: ObjectStore,
) -> tuple[TaskAttachment, bytes]:
    attachment = await get_visible_attachment(db, user, attachment_id)
    return attachment, await store.download(attachment.file_path)


async def signed_url(
    db: AsyncSession,
    user: User,
    attachment_id: uuid.UUID,
    store: ObjectStore,
) -> str:
    attachment = await get_visible_attachment(db, user, attachment_id)
    return await store.signed_url(attachment.file_path, settings.STORAGE_SIGNED_URL_TTL_SECONDS)


async def mark_viewed(db: AsyncSession, user: User, attachment_id: uuid.UUID) -> TaskAttachment:
    attachment = await get_visible_attachment(db, user, attachment_id)
    now = utcnow()
    if user.role == UserRole.PM:
        fields = {"viewed_by_pm": True, "viewed_by_pm_at": now}
    elif user.role == UserRole.DEV:
        fields = {"viewed_by_dev": True, "viewed_by_dev_at": now}
    else:
        return attachment
    attachment = await attachment_repository.update_attachment(db, attachment.id, **fields)
    _record(db, ChangeEvent.UPDATE, attachment)
    return attachment


async def mark_seen(db: AsyncSession, user: User, task_id: uuid.UUID) -> None:
    """Clear the caller's 'new attachments' flag on a task."""
    task = await task_service.get_visible_task(db, user, task_id)
    if user.role == UserRole.DEV:
        fields = {"has_new_attachments_for_dev": False}
    elif user.role in MANAGER_ROLES:
        fields = {"has_new_attachments_for_pm": False}
    else:
        return
    await task_repository.update_task(db, task.id, **fields)
    record_change(
        db,
        "tasks",
        ChangeEvent.UPDATE,
        task.id,
        project_id=task.project_id,
        assigned_to=task.assigned_to,
    )


async def delete_attachment(
    db: AsyncSession,
    user: User,
    attachment_id: uuid.UUID,
    store: ObjectStore,
) -> None:
    """Delete the row first; a failed file removal is only logged."""
    attachment = await get_visible_attachment(db, user, attachment_id)
    if attachment.uploaded_by != user.id and user.role not in MANAGER_ROLES:
        raise PermissionDeniedError(
            "Only the uploader or a manager can delete this attachment",
            details={"attachment_id": str(attachment_id)},
        )

    await attachment_repository.delete_attachment(db, attachment.id)
    _record(db, ChangeEvent.DELETE, attachment)

    try:
        await store.remove([attachment.file_path])
    except StorageError as exc:
        logger.warning(
            "Attachment file not removed",
            attachment_id=str(attachment.id),
            path=attachment.file_path,
            error=exc.message,
        )
    logger.info("Attachment deleted", attachment_id=str(attachment.id))
