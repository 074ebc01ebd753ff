"""HTTP cookie transport for session tokens."""

from __future__ import annotations

from typing import Any, Literal, NamedTuple

from fastapi import Response

from core import settings
from .tokens import ACCESS, REFRESH, SessionTokenPair, TokenService

ACCESS_COOKIE = "accessToken"
REFRESH_COOKIE = "refreshToken"
COOKIE_PATH = "/"
COOKIE_SAMESITE: Literal["lax", "strict", "none"] = "lax"
INSECURE_COOKIE_ENVS = frozenset({"local", "test"})


def cookies_secure() -> bool:
    """Cookies carry `Secure` unless running locally or explicitly relaxed."""
    if settings.allow_insecure_http_cookies:
        return False
    return settings.app_env.strip().lower() not in INSECURE_COOKIE_ENVS


class CookieDirective(NamedTuple):
    name: str
    value: str
    options: dict[str, Any]


def _base_options() -> dict[str, Any]:
    return {
        "httponly": True,
        "secure": cookies_secure(),
        "samesite": COOKIE_SAMESITE,
        "path": COOKIE_PATH,
    }


def session_cookies(pair: SessionTokenPair, tokens: TokenService) -> list[CookieDirective]:
    """Return the cookies a transport must write for ``pair``."""
    return [
        CookieDirective(
            ACCESS_COOKIE,
            pair.access_token,
            {**_base_options(), "max_age": tokens.ttl_seconds(ACCESS)},
        ),
        CookieDirective(
            REFRESH_COOKIE,
            pair.refresh_token,
            {**_base_options(), "max_age": tokens.ttl_seconds(REFRESH)},
        ),
    ]


def set_token_cookies(
    response: Response,
    pair: SessionTokenPair,
    tokens: TokenService,
) -> None:
    for directive in session_cookies(pair, tokens):
        response.set_cookie(key=directive.name, value=directive.value, **directive.options)


def clear_token_cookies(response: Response) -> None:
    for name in (ACCESS_COOKIE, REFRESH_COOKIE):
        response.delete_cookie(
            key=name,
            path=COOKIE_PATH,
            secure=cookies_secure(),
            httponly=True,
            samesite=COOKIE_SAMESITE,
        )
