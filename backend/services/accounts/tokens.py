"""Signed access/refresh token issuance and verification."""

from __future__ import annotations

import hashlib
import hmac
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Literal
from uuid import uuid4

import jwt

from core import InvalidTokenError, Settings
from models import User

TokenKind = Literal["access", "refresh"]
ACCESS: TokenKind = "access"
REFRESH: TokenKind = "refresh"
REQUIRED_CLAIMS = ["exp", "iat", "sub"]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def hash_refresh_token(token: str) -> str:
    """Digest under which a refresh token is mirrored server-side."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def refresh_token_matches(token: str, stored_digest: str | None) -> bool:
    if not stored_digest:
        return False
    return hmac.compare_digest(hash_refresh_token(token), stored_digest)


@dataclass(frozen=True)
class TokenSettings:
    access_secret: str
    access_ttl: timedelta
    refresh_secret: str
    refresh_ttl: timedelta
    algorithm: str = "HS256"

    @classmethod
    def from_settings(cls, source: Settings) -> TokenSettings:
        return cls(
            access_secret=source.access_token_secret,
            access_ttl=timedelta(minutes=source.access_token_expire_minutes),
            refresh_secret=source.refresh_token_secret,
            refresh_ttl=timedelta(minutes=source.refresh_token_expire_minutes),
            algorithm=source.jwt_algorithm,
        )


@dataclass(frozen=True)
class TokenClaims:
    subject: str
    kind: TokenKind
    issued_at: datetime
    expires_at: datetime
    username: str | None = None
    email: str | None = None
    full_name: str | None = None


@dataclass(frozen=True)
class SessionTokenPair:
    access_token: str
    refresh_token: str


class TokenService:
    """Issues and verifies the two token kinds.

    Access tokens carry the identity claims protected resources need; refresh
    tokens carry only the account id. Each kind is signed with its own secret
    and tagged with a ``type`` claim, so neither verifies as the other.
    """

    def __init__(
        self,
        config: TokenSettings,
        *,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        if not config.access_secret or not config.refresh_secret:
            raise ValueError("token secrets must not be empty")
        if config.access_secret == config.refresh_secret:
            raise ValueError("access and refresh tokens need distinct secrets")
        self.config = config
        self._clock = clock

    def _secret_for(self, kind: TokenKind) -> str:
        return self.config.access_secret if kind == ACCESS else self.config.refresh_secret

    def _ttl_for(self, kind: TokenKind) -> timedelta:
        return self.config.access_ttl if kind == ACCESS else self.config.refresh_ttl

    def _encode(self, kind: TokenKind, subject: str, extra: dict[str, Any]) -> str:
        now = self._clock()
        payload: dict[str, Any] = {
            "sub": subject,
            "type": kind,
            "jti": uuid4().hex,
            "iat": int(now.timestamp()),
            "exp": int((now + self._ttl_for(kind)).timestamp()),
            **extra,
        }
        return jwt.encode(payload, self._secret_for(kind), algorithm=self.config.algorithm)

    def issue_access_token(self, user: User) -> str:
        return self._encode(
            ACCESS,
            str(user.id),
            {
                "username": user.username,
                "email": user.email,
                "full_name": user.full_name,
            },
        )

    def issue_refresh_token(self, user: User) -> str:
        return self._encode(REFRESH, str(user.id), {})

    def issue_pair(self, user: User) -> SessionTokenPair:
        return SessionTokenPair(
            access_token=self.issue_access_token(user),
            refresh_token=self.issue_refresh_token(user),
        )

    def ttl_seconds(self, kind: TokenKind) -> int:
        return int(self._ttl_for(kind).total_seconds())

    def verify(self, token: str, expected_kind: TokenKind) -> TokenClaims:
        """Return the claims of ``token`` or raise ``InvalidTokenError``."""
        if not token:
            raise InvalidTokenError("Missing token")
        try:
            payload = jwt.decode(
                token,
                self._secret_for(expected_kind),
                algorithms=[self.config.algorithm],
                options={"require": REQUIRED_CLAIMS},
            )
        except jwt.ExpiredSignatureError as exc:
            raise InvalidTokenError("Token has expired") from exc
        except jwt.InvalidTokenError as exc:
            raise InvalidTokenError("Invalid token") from exc

        if payload.get("type") != expected_kind:
            raise InvalidTokenError("Invalid token")

        subject = payload.get("sub")
        if not isinstance(subject, str) or not subject.strip():
            raise InvalidTokenError("Invalid token")

        return TokenClaims(
            subject=subject,
            kind=expected_kind,
            issued_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
            username=payload.get("username"),
            email=payload.get("email"),
            full_name=payload.get("full_name"),
        )
