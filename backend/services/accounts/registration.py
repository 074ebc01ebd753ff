"""Account registration with avatar and cover-image upload."""

from __future__ import annotations

import logging

from core import ConflictError, UploadError, ValidationError
from services.media import MediaUploader, UploadedMedia
from services.staging import ensure_image, release
from .identity import (
    ensure_email_shape,
    ensure_field_lengths,
    ensure_password_strength,
    is_blank,
)
from .schemas import AccountView, NewAccount, RegistrationRequest
from .store import DUPLICATE_ACCOUNT_MESSAGE, CredentialStore

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("username", "email", "full_name", "password")


class RegistrationWorkflow:
    def __init__(self, store: CredentialStore, uploader: MediaUploader) -> None:
        self.store = store
        self.uploader = uploader

    async def register(self, request: RegistrationRequest) -> AccountView:
        """Create an account; staged files are released on every exit path."""
        try:
            return await self._register(request)
        finally:
            release(request.avatar, request.cover_image)

    async def _register(self, request: RegistrationRequest) -> AccountView:
        missing = [name for name in REQUIRED_FIELDS if is_blank(getattr(request, name))]
        if missing:
            raise ValidationError(
                "Please provide all required fields",
                [f"{name} is required" for name in missing],
            )
        # Narrowed by the check above.
        username = str(request.username)
        email = str(request.email)
        full_name = str(request.full_name)
        password = str(request.password)

        ensure_field_lengths(username=username, email=email, full_name=full_name)
        ensure_email_shape(email)
        ensure_password_strength(password)

        existing = await self.store.find_by_email_or_username(email=email, username=username)
        if existing is not None:
            raise ConflictError(DUPLICATE_ACCOUNT_MESSAGE)

        if request.avatar is None:
            raise ValidationError("Please provide an avatar image")
        await ensure_image(request.avatar, field="avatar")
        if request.cover_image is not None:
            await ensure_image(request.cover_image, field="cover_image")

        avatar = await self.uploader.upload(request.avatar.path)
        if avatar is None or not avatar.url:
            raise UploadError("Error uploading avatar image")

        cover_image: UploadedMedia | None = None
        if request.cover_image is not None:
            cover_image = await self.uploader.upload(request.cover_image.path)

        try:
            user = await self.store.create(
                NewAccount(
                    username=username,
                    email=email,
                    full_name=full_name,
                    password=password,
                    avatar_url=avatar.url,
                    cover_image_url=cover_image.url if cover_image else None,
                )
            )
        except Exception:
            await self._discard_uploads(avatar, cover_image)
            raise

        logger.info("Account registered", extra={"account_id": user.id})
        return self.store.sanitized_view(user)

    async def _discard_uploads(self, *uploads: UploadedMedia | None) -> None:
        for uploaded in uploads:
            if uploaded is None:
                continue
            try:
                await self.uploader.delete(uploaded.object_key)
            except Exception as cleanup_error:
                logger.warning(
                    "Failed to cleanup uploaded media after failed registration",
                    extra={"object_key": uploaded.object_key},
                    exc_info=cleanup_error,
                )
