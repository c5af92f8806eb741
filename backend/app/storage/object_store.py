"""
S3-compatible object storage (MinIO in development) via boto3.

boto3 is blocking, so every call is pushed to a worker thread with
`asyncio.to_thread` to keep the event loop free.
"""

from __future__ import annotations

import asyncio
from functools import lru_cache
from typing import Any

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError

from app.core.config import settings
from app.core.errors import StorageError
from app.core.logging import get_logger

logger = get_logger(__name__)


class ObjectStore:
    """Thin async wrapper around one bucket."""

    def __init__(
        self,
        bucket: str,
        *,
        endpoint_url: str | None = None,
        access_key: str | None = None,
        secret_key: str | None = None,
        region: str | None = None,
        client: Any = None,
    ) -> None:
        self.bucket = bucket
        self._client = client or boto3.client(
            "s3",
            endpoint_url=endpoint_url,
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
            region_name=region,
            config=Config(signature_version="s3v4"),
        )

    async def upload(self, path: str, data: bytes, content_type: str) -> str:
        """Store `data` under `path`. Returns the path."""
        try:
            await asyncio.to_thread(
                self._client.put_object,
                Bucket=self.bucket,
                Key=path,
                Body=data,
                ContentType=content_type,
            )
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(
                "Failed to upload file",
                details={"path": path, "reason": str(exc)},
            ) from exc
        logger.info("Object uploaded", bucket=self.bucket, path=path, size=len(data))
        return path

    async def download(self, path: str) -> bytes:
        try:
            response = await asyncio.to_thread(
                self._client.get_object, Bucket=self.bucket, Key=path
            )
            return await asyncio.to_thread(response["Body"].read)
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(
                "Failed to download file",
                details={"path": path, "reason": str(exc)},
            ) from exc

    async def remove(self, paths: list[str]) -> None:
        """Delete a batch of objects."""
        if not paths:
            return
        try:
            await asyncio.to_thread(
                self._client.delete_objects,
                Bucket=self.bucket,
                Delete={"Objects": [{"Key": p} for p in paths], "Quiet": True},
            )
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(
                "Failed to delete files",
                details={"paths": paths, "reason": str(exc)},
            ) from exc
        logger.info("Objects removed", bucket=self.bucket, count=len(paths))

    async def signed_url(self, path: str, expires_in: int | None = None) -> str:
        ttl = expires_in or settings.STORAGE_SIGNED_URL_TTL_SECONDS
        try:
            return await asyncio.to_thread(
                self._client.generate_presigned_url,
                "get_object",
                Params={"Bucket": self.bucket, "Key": path},
                ExpiresIn=ttl,
            )
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(
                "Failed to create signed URL",
                details={"path": path, "reason": str(exc)},
            ) from exc


@lru_cache
def get_default_store() -> ObjectStore:
    return ObjectStore(
        settings.STORAGE_BUCKET_NAME,
        endpoint_url=settings.STORAGE_ENDPOINT,
        access_key=settings.STORAGE_ACCESS_KEY,
        secret_key=settings.STORAGE_SECRET_KEY,
        region=settings.STORAGE_REGION,
    )
