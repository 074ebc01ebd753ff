"""Request and response value types of the account operations."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from services.staging import StagedAsset
from .identity import EMAIL_MAX_LENGTH, FULL_NAME_MAX_LENGTH, PASSWORD_MAX_LENGTH


class AccountView(BaseModel):
    """Sanitized account projection; the only account form sent to clients."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    username: str
    email: str
    full_name: str
    avatar_url: str
    cover_image_url: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ChannelProfile(BaseModel):
    full_name: str
    username: str
    avatar_url: str
    cover_image_url: str | None = None
    subscribers_count: int = 0
    subscribed_to_count: int = 0
    is_subscribed: bool = False


class WatchHistoryItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    position: int
    video_id: str
    watched_at: datetime | None = None


class LoginRequest(BaseModel):
    # Either identifier may be used; both are matched case-insensitively.
    username: str | None = Field(default=None, max_length=255)
    email: str | None = Field(default=None, max_length=EMAIL_MAX_LENGTH)
    password: str = Field(min_length=1, max_length=PASSWORD_MAX_LENGTH)


class RefreshRequest(BaseModel):
    refresh_token: str | None = None


class ChangePasswordRequest(BaseModel):
    old_password: str = Field(min_length=1, max_length=PASSWORD_MAX_LENGTH)
    new_password: str = Field(min_length=1, max_length=PASSWORD_MAX_LENGTH)


class UpdateAccountRequest(BaseModel):
    full_name: str | None = Field(default=None, max_length=FULL_NAME_MAX_LENGTH)
    email: str | None = Field(default=None, max_length=EMAIL_MAX_LENGTH)


class TokenPairResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class LoginResponse(TokenPairResponse):
    user: AccountView


@dataclass(frozen=True)
class NewAccount:
    username: str
    email: str
    full_name: str
    password: str
    avatar_url: str
    cover_image_url: str | None = None


@dataclass(frozen=True)
class RegistrationRequest:
    username: str | None
    email: str | None
    full_name: str | None
    password: str | None
    avatar: StagedAsset | None = None
    cover_image: StagedAsset | None = None


@dataclass(frozen=True)
class LoginResult:
    user: AccountView
    access_token: str
    refresh_token: str
