"""Local staging of multipart uploads before they are pushed to media storage."""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from uuid import uuid4

from fastapi import UploadFile
from PIL import Image, UnidentifiedImageError

from core import ValidationError, settings

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024
_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


@dataclass(frozen=True)
class StagedAsset:
    """An uploaded file written to the local staging directory."""

    path: Path
    original_filename: str
    content_type: str | None = None


def _staging_dir() -> Path:
    directory = Path(settings.upload_tmp_dir)
    directory.mkdir(parents=True, exist_ok=True)
    return directory


def _staged_filename(original_filename: str) -> str:
    name = Path(original_filename).name
    stem = _UNSAFE_FILENAME_CHARS.sub("_", name).strip("._") or "upload"
    return f"{uuid4().hex}-{stem[:64]}"


def _verify_image(path: Path) -> None:
    with Image.open(path) as image:
        image.verify()


async def _ensure_image_at(path: Path, field: str) -> None:
    try:
        await asyncio.to_thread(_verify_image, path)
    except (UnidentifiedImageError, OSError, SyntaxError) as exc:
        raise ValidationError(f"{field} must be a valid image") from exc


async def stage_upload(
    upload: UploadFile,
    *,
    field: str,
    max_bytes: int | None = None,
    verify: bool = True,
) -> StagedAsset:
    """Write ``upload`` into the staging directory.

    With ``verify`` the staged file must also decode as an image; callers
    that check other input first pass ``verify=False`` and call
    ``ensure_image`` themselves.
    """
    limit = max_bytes if max_bytes is not None else settings.upload_max_bytes
    original_filename = upload.filename or field
    destination = _staging_dir() / _staged_filename(original_filename)

    written = 0
    try:
        with destination.open("wb") as handle:
            while True:
                chunk = await upload.read(CHUNK_SIZE)
                if not chunk:
                    break
                written += len(chunk)
                if written > limit:
                    raise ValidationError(
                        f"{field} must be at most {limit} bytes",
                    )
                handle.write(chunk)
        if verify:
            if written == 0:
                raise ValidationError(f"{field} file is empty")
            await _ensure_image_at(destination, field)
    except Exception:
        destination.unlink(missing_ok=True)
        raise

    return StagedAsset(
        path=destination,
        original_filename=original_filename,
        content_type=upload.content_type,
    )


def release(*assets: StagedAsset | None) -> None:
    """Delete staged files; already removed files are ignored."""
    for asset in assets:
        if asset is None:
            continue
        try:
            asset.path.unlink(missing_ok=True)
        except OSError as exc:
            logger.warning(
                "Failed to release staged upload",
                extra={"path": str(asset.path)},
                exc_info=exc,
            )


async def ensure_image(asset: StagedAsset, *, field: str) -> None:
    """Raise ``ValidationError`` unless the staged file decodes as an image."""
    await _ensure_image_at(asset.path, field)
