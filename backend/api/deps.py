"""Shared FastAPI dependencies."""

from __future__ import annotations

from collections.abc import AsyncIterator
from functools import lru_cache

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from core import InvalidTokenError, settings
from db.session import get_session
from models import User
from services import MediaUploader, MinioMediaUploader
from services.accounts import (
    ACCESS,
    ACCESS_COOKIE,
    CredentialStore,
    RegistrationWorkflow,
    SessionManager,
    TokenService,
    TokenSettings,
)


async def get_db() -> AsyncIterator[AsyncSession]:
    async for session in get_session():
        yield session


@lru_cache
def get_token_service() -> TokenService:
    return TokenService(TokenSettings.from_settings(settings))


@lru_cache
def get_media_uploader() -> MediaUploader:
    return MinioMediaUploader()


def get_credential_store(session: AsyncSession = Depends(get_db)) -> CredentialStore:
    return CredentialStore(session)


def get_session_manager(
    store: CredentialStore = Depends(get_credential_store),
    tokens: TokenService = Depends(get_token_service),
) -> SessionManager:
    return SessionManager(store, tokens)


def get_registration_workflow(
    store: CredentialStore = Depends(get_credential_store),
    uploader: MediaUploader = Depends(get_media_uploader),
) -> RegistrationWorkflow:
    return RegistrationWorkflow(store, uploader)


def _extract_access_token(request: Request) -> str | None:
    token = request.cookies.get(ACCESS_COOKIE)
    if token:
        return token

    authorization = request.headers.get("authorization")
    if not authorization:
        return None
    scheme, _, value = authorization.partition(" ")
    if scheme.lower() != "bearer":
        return None
    return value.strip() or None


async def get_current_user(
    request: Request,
    store: CredentialStore = Depends(get_credential_store),
    tokens: TokenService = Depends(get_token_service),
) -> User:
    token = _extract_access_token(request)
    if token is None:
        raise InvalidTokenError("Unauthorized request")

    claims = tokens.verify(token, ACCESS)
    user = await store.get_by_id(claims.subject)
    if user is None:
        raise InvalidTokenError("Invalid access token")
    return user


async def get_optional_user(
    request: Request,
    store: CredentialStore = Depends(get_credential_store),
    tokens: TokenService = Depends(get_token_service),
) -> User | None:
    """Resolve the viewer when a valid access token is presented, else None."""
    token = _extract_access_token(request)
    if token is None:
        return None
    try:
        claims = tokens.verify(token, ACCESS)
    except InvalidTokenError:
        return None
    return await store.get_by_id(claims.subject)
