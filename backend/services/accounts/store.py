"""Persistence of account records and their refresh-token slot."""

from __future__ import annotations

from typing import Any, cast

from sqlalchemy import or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement

from core import ConflictError, hash_password
from db.errors import is_unique_violation, violated_columns
from models import User, WatchHistoryEntry
from .identity import normalize_email, normalize_username
from .schemas import AccountView, NewAccount
from .tokens import hash_refresh_token, refresh_token_matches

DUPLICATE_ACCOUNT_MESSAGE = "User already exists with same email or username"
UNIQUE_ACCOUNT_COLUMNS = ("username", "email")


def _eq(column: Any, value: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column == value)


def _asc(column: Any) -> Any:
    return cast(Any, column).asc()


def _conflict_from(exc: IntegrityError) -> ConflictError:
    return ConflictError(
        DUPLICATE_ACCOUNT_MESSAGE,
        [f"{column} is already taken" for column in violated_columns(exc, UNIQUE_ACCOUNT_COLUMNS)],
    )


class CredentialStore:
    """Account persistence bound to one request-scoped session.

    Password writes always go through ``hash_password``; refresh tokens are
    stored as digests and only ever replaced whole.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def rollback(self) -> None:
        await self.session.rollback()

    async def find_by_email_or_username(
        self,
        *,
        email: str | None = None,
        username: str | None = None,
    ) -> User | None:
        conditions: list[ColumnElement[bool]] = []
        if email is not None and email.strip():
            conditions.append(_eq(User.email, normalize_email(email)))
        if username is not None and username.strip():
            conditions.append(_eq(User.username, normalize_username(username)))
        if not conditions:
            return None

        result = await self.session.execute(
            select(User)
            .where(or_(*conditions))
            .order_by(_asc(User.created_at), _asc(User.id))
            .limit(1)
        )
        return result.scalars().first()

    async def get_by_id(self, account_id: str) -> User | None:
        return await self.session.get(User, account_id, populate_existing=True)

    async def create(self, fields: NewAccount) -> User:
        username = normalize_username(fields.username)
        email = normalize_email(fields.email)
        if await self.find_by_email_or_username(email=email, username=username) is not None:
            raise ConflictError(DUPLICATE_ACCOUNT_MESSAGE)

        user = User(
            username=username,
            email=email,
            full_name=fields.full_name.strip(),
            password_hash=hash_password(fields.password),
            avatar_url=fields.avatar_url,
            cover_image_url=fields.cover_image_url,
        )
        self.session.add(user)
        try:
            await self.session.commit()
        except IntegrityError as exc:
            await self.session.rollback()
            if is_unique_violation(exc):
                raise _conflict_from(exc) from exc
            raise
        await self.session.refresh(user)
        return user

    async def update_refresh_token(self, account_id: str, token: str | None) -> None:
        """Replace the stored refresh token; ``None`` clears it."""
        digest = hash_refresh_token(token) if token is not None else None
        await self.session.execute(
            update(User)
            .where(_eq(User.id, account_id))
            .values(refresh_token_hash=digest)
        )
        await self.session.commit()

    async def rotate_refresh_token(
        self,
        account_id: str,
        presented_token: str,
        new_token: str,
    ) -> bool:
        """Swap the stored token only if it still equals ``presented_token``."""
        result = await self.session.execute(
            update(User)
            .where(
                _eq(User.id, account_id),
                _eq(User.refresh_token_hash, hash_refresh_token(presented_token)),
            )
            .values(refresh_token_hash=hash_refresh_token(new_token))
        )
        await self.session.commit()
        return cast(Any, result).rowcount == 1

    @staticmethod
    def holds_refresh_token(user: User, token: str) -> bool:
        return refresh_token_matches(token, user.refresh_token_hash)

    async def update_password(self, user: User, plaintext: str) -> User:
        user.password_hash = hash_password(plaintext)
        self.session.add(user)
        await self.session.commit()
        return user

    async def update_details(
        self,
        user: User,
        *,
        full_name: str | None = None,
        email: str | None = None,
    ) -> User:
        if email is not None:
            normalized_email = normalize_email(email)
            if normalized_email != user.email:
                existing = await self.find_by_email_or_username(email=normalized_email)
                if existing is not None and existing.id != user.id:
                    raise ConflictError(
                        "Email is already in use",
                        ["email is already taken"],
                    )
                user.email = normalized_email
        if full_name is not None:
            user.full_name = full_name.strip()

        self.session.add(user)
        try:
            await self.session.commit()
        except IntegrityError as exc:
            await self.session.rollback()
            if is_unique_violation(exc):
                raise _conflict_from(exc) from exc
            raise
        await self.session.refresh(user)
        return user

    async def update_media(
        self,
        user: User,
        *,
        avatar_url: str | None = None,
        cover_image_url: str | None = None,
    ) -> User:
        if avatar_url is not None:
            user.avatar_url = avatar_url
        if cover_image_url is not None:
            user.cover_image_url = cover_image_url
        self.session.add(user)
        await self.session.commit()
        await self.session.refresh(user)
        return user

    async def watch_history(self, account_id: str) -> list[WatchHistoryEntry]:
        result = await self.session.execute(
            select(WatchHistoryEntry)
            .where(_eq(WatchHistoryEntry.user_id, account_id))
            .order_by(_asc(WatchHistoryEntry.position))
        )
        return list(result.scalars().all())

    @staticmethod
    def sanitized_view(user: User) -> AccountView:
        return AccountView.model_validate(user)
