"""Account and channel profile endpoints."""

from __future__ import annotations

from typing import Annotated, Any, Literal

from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import (
    get_credential_store,
    get_current_user,
    get_db,
    get_media_uploader,
    get_optional_user,
    get_session_manager,
)
from core import UploadError, ValidationError
from models import User
from services import MediaUploader, release, stage_upload
from services.accounts import (
    AccountView,
    ChannelProfile,
    CredentialStore,
    SessionManager,
    ensure_email_shape,
    get_channel_profile,
)
from services.accounts.identity import is_blank
from services.accounts.schemas import (
    ChangePasswordRequest,
    UpdateAccountRequest,
    WatchHistoryItem,
)

router = APIRouter(prefix="/users", tags=["users"])

MediaField = Literal["avatar", "cover_image"]


@router.get("/me", response_model=AccountView)
async def get_me(current_user: User = Depends(get_current_user)) -> AccountView:
    """Return the authenticated account."""
    return CredentialStore.sanitized_view(current_user)


@router.patch("/me", response_model=AccountView)
async def update_me(
    payload: UpdateAccountRequest,
    current_user: User = Depends(get_current_user),
    store: CredentialStore = Depends(get_credential_store),
) -> AccountView:
    """Update the display name and email of the authenticated account."""
    if is_blank(payload.full_name) or is_blank(payload.email):
        raise ValidationError("All fields are required")
    ensure_email_shape(str(payload.email))

    user = await store.update_details(
        current_user,
        full_name=payload.full_name,
        email=payload.email,
    )
    return store.sanitized_view(user)


@router.post("/me/password")
async def change_password(
    payload: ChangePasswordRequest,
    current_user: User = Depends(get_current_user),
    sessions: SessionManager = Depends(get_session_manager),
) -> dict[str, Any]:
    await sessions.change_password(
        current_user,
        old_password=payload.old_password,
        new_password=payload.new_password,
    )
    return {"detail": "Password changed successfully"}


async def _replace_media(
    field: MediaField,
    upload: UploadFile | None,
    *,
    user: User,
    store: CredentialStore,
    uploader: MediaUploader,
) -> AccountView:
    if upload is None or not upload.filename:
        raise ValidationError(f"{field} file is missing")

    staged = await stage_upload(upload, field=field)
    try:
        uploaded = await uploader.upload(staged.path)
    finally:
        release(staged)
    if uploaded is None or not uploaded.url:
        raise UploadError(f"Failed to upload {field}")

    if field == "avatar":
        updated = await store.update_media(user, avatar_url=uploaded.url)
    else:
        updated = await store.update_media(user, cover_image_url=uploaded.url)
    return store.sanitized_view(updated)


@router.patch("/me/avatar", response_model=AccountView)
async def update_avatar(
    avatar: Annotated[UploadFile | None, File()] = None,
    current_user: User = Depends(get_current_user),
    store: CredentialStore = Depends(get_credential_store),
    uploader: MediaUploader = Depends(get_media_uploader),
) -> AccountView:
    return await _replace_media(
        "avatar",
        avatar,
        user=current_user,
        store=store,
        uploader=uploader,
    )


@router.patch("/me/cover-image", response_model=AccountView)
async def update_cover_image(
    cover_image: Annotated[UploadFile | None, File()] = None,
    current_user: User = Depends(get_current_user),
    store: CredentialStore = Depends(get_credential_store),
    uploader: MediaUploader = Depends(get_media_uploader),
) -> AccountView:
    return await _replace_media(
        "cover_image",
        cover_image,
        user=current_user,
        store=store,
        uploader=uploader,
    )


@router.get("/me/history", response_model=list[WatchHistoryItem])
async def get_watch_history(
    current_user: User = Depends(get_current_user),
    store: CredentialStore = Depends(get_credential_store),
) -> list[WatchHistoryItem]:
    entries = await store.watch_history(current_user.id)
    return [WatchHistoryItem.model_validate(entry) for entry in entries]


@router.get("/c/{username}", response_model=ChannelProfile)
async def get_channel(
    username: str,
    session: AsyncSession = Depends(get_db),
    viewer: User | None = Depends(get_optional_user),
) -> ChannelProfile:
    """Fetch a channel profile with subscription counts for the viewer."""
    return await get_channel_profile(
        session,
        username,
        viewer.id if viewer is not None else None,
    )
