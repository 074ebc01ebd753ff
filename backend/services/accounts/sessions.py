"""Login, refresh-rotation and logout of account sessions.

An account is Anonymous until it logs in, Authenticated while it holds a
stored refresh token, and Revoked once logout clears that token. Refresh is
only granted for the exact token stored last; every refresh replaces it.
"""

from __future__ import annotations

import logging

import jwt
from sqlalchemy.exc import SQLAlchemyError

from core import (
    InvalidCredentialsError,
    NotFoundError,
    TokenIssueError,
    TokenMismatchError,
    ValidationError,
    hash_password,
    needs_rehash,
    verify_password,
)
from models import User
from .identity import ensure_password_strength, is_blank
from .schemas import LoginRequest, LoginResult
from .store import CredentialStore
from .tokens import REFRESH, SessionTokenPair, TokenService

logger = logging.getLogger(__name__)

STALE_REFRESH_TOKEN_MESSAGE = "Refresh token is expired or used"


class SessionManager:
    def __init__(self, store: CredentialStore, tokens: TokenService) -> None:
        self.store = store
        self.tokens = tokens

    async def _issue_session(self, user: User) -> SessionTokenPair:
        try:
            pair = self.tokens.issue_pair(user)
            await self.store.update_refresh_token(user.id, pair.refresh_token)
        except (jwt.PyJWTError, SQLAlchemyError) as exc:
            await self.store.rollback()
            raise TokenIssueError("Error generating tokens") from exc
        return pair

    async def login(self, request: LoginRequest) -> LoginResult:
        if is_blank(request.email) and is_blank(request.username):
            raise ValidationError("Please provide email or username")

        user = await self.store.find_by_email_or_username(
            email=request.email,
            username=request.username,
        )
        if user is None:
            raise NotFoundError("User does not exist")

        if not verify_password(request.password, user.password_hash):
            raise InvalidCredentialsError("Invalid user credentials")

        if needs_rehash(user.password_hash):
            user.password_hash = hash_password(request.password)

        pair = await self._issue_session(user)
        logger.info("Account logged in", extra={"account_id": user.id})
        return LoginResult(
            user=self.store.sanitized_view(user),
            access_token=pair.access_token,
            refresh_token=pair.refresh_token,
        )

    async def refresh(self, presented_token: str | None) -> SessionTokenPair:
        if presented_token is None or not presented_token.strip():
            raise ValidationError("Refresh token is required")

        claims = self.tokens.verify(presented_token, REFRESH)
        user = await self.store.get_by_id(claims.subject)
        if user is None:
            raise NotFoundError("Invalid refresh token")

        if not self.store.holds_refresh_token(user, presented_token):
            logger.warning(
                "Rejected refresh token that is not the current one",
                extra={"account_id": user.id},
            )
            raise TokenMismatchError(STALE_REFRESH_TOKEN_MESSAGE)

        try:
            pair = self.tokens.issue_pair(user)
            rotated = await self.store.rotate_refresh_token(
                user.id,
                presented_token,
                pair.refresh_token,
            )
        except (jwt.PyJWTError, SQLAlchemyError) as exc:
            await self.store.rollback()
            raise TokenIssueError("Error refreshing access token") from exc

        if not rotated:
            logger.warning(
                "Refresh token was rotated concurrently",
                extra={"account_id": user.id},
            )
            raise TokenMismatchError(STALE_REFRESH_TOKEN_MESSAGE)
        return pair

    async def logout(self, account_id: str) -> None:
        await self.store.update_refresh_token(account_id, None)
        logger.info("Account logged out", extra={"account_id": account_id})

    async def change_password(
        self,
        user: User,
        *,
        old_password: str,
        new_password: str,
    ) -> None:
        if not verify_password(old_password, user.password_hash):
            raise ValidationError("Old password is invalid")
        ensure_password_strength(new_password)
        await self.store.update_password(user, new_password)
