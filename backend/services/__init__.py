"""Business logic services."""

from .media import MediaUploader, MinioMediaUploader, UploadedMedia
from .staging import StagedAsset, ensure_image, release, stage_upload
from .storage import (
    delete_object,
    ensure_bucket,
    get_minio_client,
    public_object_url,
)

__all__ = [
    "get_minio_client",
    "ensure_bucket",
    "delete_object",
    "public_object_url",
    "MediaUploader",
    "MinioMediaUploader",
    "UploadedMedia",
    "StagedAsset",
    "stage_upload",
    "ensure_image",
    "release",
]
