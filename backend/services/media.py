"""Media upload collaborator backed by MinIO."""

from __future__ import annotations

import asyncio
import logging
import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, runtime_checkable
from uuid import uuid4

from minio import Minio
from minio.error import S3Error

from core import settings
from .storage import delete_object, ensure_bucket, get_minio_client, public_object_url

logger = logging.getLogger(__name__)

MEDIA_PREFIX = "media"
DEFAULT_CONTENT_TYPE = "application/octet-stream"


@dataclass(frozen=True)
class UploadedMedia:
    url: str
    object_key: str
    content_type: str
    size: int


@runtime_checkable
class MediaUploader(Protocol):
    async def upload(self, local_path: Path | None) -> UploadedMedia | None: ...

    async def delete(self, object_key: str) -> None: ...


def _object_key_for(local_path: Path) -> str:
    suffix = local_path.suffix.lower()
    return f"{MEDIA_PREFIX}/{uuid4().hex}{suffix}"


class MinioMediaUploader:
    """Pushes staged local files to the media bucket.

    The staged file is always removed from local disk, whether the upload
    succeeds or not. Storage failures are logged and reported as ``None``.
    """

    def __init__(self, client: Minio | None = None) -> None:
        self._client = client

    @property
    def client(self) -> Minio:
        if self._client is None:
            self._client = get_minio_client()
        return self._client

    def _put(self, local_path: Path) -> UploadedMedia:
        client = self.client
        ensure_bucket(client)
        object_key = _object_key_for(local_path)
        content_type = mimetypes.guess_type(local_path.name)[0] or DEFAULT_CONTENT_TYPE
        size = local_path.stat().st_size
        client.fput_object(  # pragma: no cover - network call
            settings.minio_bucket,
            object_key,
            str(local_path),
            content_type=content_type,
        )
        return UploadedMedia(
            url=public_object_url(object_key),
            object_key=object_key,
            content_type=content_type,
            size=size,
        )

    async def upload(self, local_path: Path | None) -> UploadedMedia | None:
        if local_path is None:
            return None
        try:
            return await asyncio.to_thread(self._put, local_path)
        except (S3Error, OSError) as exc:
            logger.warning(
                "Failed to upload media",
                extra={"path": str(local_path)},
                exc_info=exc,
            )
            return None
        finally:
            local_path.unlink(missing_ok=True)

    async def delete(self, object_key: str) -> None:
        await asyncio.to_thread(delete_object, object_key, self.client)
