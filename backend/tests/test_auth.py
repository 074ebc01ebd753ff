"""End-to-end tests for authentication endpoints."""

import pytest
from fastapi import Response
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from conftest import PASSWORD, login_account, register_account
from core import Settings, hash_password, settings
from core.security import hash_rounds
from models import User
from services.accounts import (
    ACCESS_COOKIE,
    REFRESH_COOKIE,
    SessionTokenPair,
    TokenService,
    clear_token_cookies,
    hash_refresh_token,
    session_cookies,
)


def _set_cookie_headers(response) -> list[str]:
    return response.headers.get_list("set-cookie")


@pytest.mark.asyncio
async def test_login_sets_tokens(async_client: AsyncClient, db_session: AsyncSession):
    form = await register_account(async_client)

    response = await login_account(async_client, form)

    data = response.json()
    assert data["access_token"]
    assert data["refresh_token"]
    assert data["user"]["username"] == form["username"]
    assert "password_hash" not in data["user"]
    assert "refresh_token_hash" not in data["user"]

    assert response.cookies.get(ACCESS_COOKIE) == data["access_token"]
    assert response.cookies.get(REFRESH_COOKIE) == data["refresh_token"]
    headers = _set_cookie_headers(response)
    assert len(headers) == 2
    assert all("HttpOnly" in header for header in headers)

    result = await db_session.execute(select(User).where(User.username == form["username"]))
    user = result.scalar_one()
    assert user.refresh_token_hash == hash_refresh_token(data["refresh_token"])


@pytest.mark.asyncio
async def test_login_accepts_email_identifier(async_client: AsyncClient):
    form = await register_account(async_client)

    response = await async_client.post(
        "/api/v1/auth/login",
        json={"email": form["email"].upper(), "password": PASSWORD},
    )

    assert response.status_code == 200
    assert response.json()["user"]["email"] == form["email"]


@pytest.mark.asyncio
async def test_login_with_wrong_password_issues_nothing(
    async_client: AsyncClient,
    db_session: AsyncSession,
):
    form = await register_account(async_client)

    response = await async_client.post(
        "/api/v1/auth/login",
        json={"username": form["username"], "password": "Wr0ng!Pass"},
    )

    assert response.status_code == 401
    assert response.json()["kind"] == "invalid_credentials"
    assert _set_cookie_headers(response) == []
    result = await db_session.execute(select(User).where(User.username == form["username"]))
    assert result.scalar_one().refresh_token_hash is None


@pytest.mark.asyncio
async def test_login_unknown_user(async_client: AsyncClient):
    response = await async_client.post(
        "/api/v1/auth/login",
        json={"username": "nobody", "password": PASSWORD},
    )

    assert response.status_code == 404
    assert response.json()["kind"] == "not_found"


@pytest.mark.asyncio
async def test_login_requires_identifier(async_client: AsyncClient):
    response = await async_client.post("/api/v1/auth/login", json={"password": PASSWORD})

    assert response.status_code == 400
    assert response.json()["detail"] == "Please provide email or username"


@pytest.mark.asyncio
async def test_login_rehashes_password_with_outdated_cost(
    async_client: AsyncClient,
    db_session: AsyncSession,
):
    user = User(
        username="legacy",
        email="legacy@example.com",
        full_name="Legacy",
        password_hash=hash_password(PASSWORD, rounds=4),
        avatar_url="https://media.test/legacy.png",
    )
    db_session.add(user)
    await db_session.commit()

    response = await async_client.post(
        "/api/v1/auth/login",
        json={"username": "legacy", "password": PASSWORD},
    )
    assert response.status_code == 200

    await db_session.refresh(user)
    assert hash_rounds(user.password_hash) == 10


@pytest.mark.asyncio
async def test_refresh_rotates_tokens(async_client: AsyncClient):
    form = await register_account(async_client)
    login = (await login_account(async_client, form)).json()

    response = await async_client.post("/api/v1/auth/refresh")

    assert response.status_code == 200
    data = response.json()
    assert data["access_token"] != login["access_token"]
    assert data["refresh_token"] != login["refresh_token"]
    assert response.cookies.get(REFRESH_COOKIE) == data["refresh_token"]

    async_client.cookies.clear()
    stale = await async_client.post(
        "/api/v1/auth/refresh",
        json={"refresh_token": login["refresh_token"]},
    )
    assert stale.status_code == 401
    assert stale.json()["kind"] == "token_mismatch"

    fresh = await async_client.post(
        "/api/v1/auth/refresh",
        json={"refresh_token": data["refresh_token"]},
    )
    assert fresh.status_code == 200


@pytest.mark.asyncio
async def test_refresh_requires_token(async_client: AsyncClient):
    response = await async_client.post("/api/v1/auth/refresh")

    assert response.status_code == 400
    assert response.json()["detail"] == "Refresh token is required"


@pytest.mark.asyncio
async def test_refresh_rejects_access_token(async_client: AsyncClient):
    form = await register_account(async_client)
    login = (await login_account(async_client, form)).json()
    async_client.cookies.clear()

    response = await async_client.post(
        "/api/v1/auth/refresh",
        json={"refresh_token": login["access_token"]},
    )

    assert response.status_code == 401
    assert response.json()["kind"] == "invalid_token"


@pytest.mark.asyncio
async def test_refresh_token_is_not_an_access_credential(async_client: AsyncClient):
    form = await register_account(async_client)
    login = (await login_account(async_client, form)).json()
    async_client.cookies.clear()

    response = await async_client.get(
        "/api/v1/users/me",
        headers={"Authorization": f"Bearer {login['refresh_token']}"},
    )

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_logout_clears_session(async_client: AsyncClient, db_session: AsyncSession):
    form = await register_account(async_client)
    login = (await login_account(async_client, form)).json()

    response = await async_client.post("/api/v1/auth/logout")

    assert response.status_code == 200
    assert response.json() == {"detail": "User logged out"}
    assert async_client.cookies.get(ACCESS_COOKIE) is None
    assert async_client.cookies.get(REFRESH_COOKIE) is None

    result = await db_session.execute(select(User).where(User.username == form["username"]))
    assert result.scalar_one().refresh_token_hash is None

    stale = await async_client.post(
        "/api/v1/auth/refresh",
        json={"refresh_token": login["refresh_token"]},
    )
    assert stale.status_code == 401
    assert stale.json()["kind"] == "token_mismatch"


@pytest.mark.asyncio
async def test_logout_requires_authentication(async_client: AsyncClient):
    response = await async_client.post("/api/v1/auth/logout")

    assert response.status_code == 401


@pytest.fixture()
def default_cookie_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("APP_ENV", raising=False)
    monkeypatch.delenv("ALLOW_INSECURE_HTTP_COOKIES", raising=False)
    defaults = Settings(_env_file=None)
    monkeypatch.setattr(settings, "app_env", defaults.app_env)
    monkeypatch.setattr(
        settings,
        "allow_insecure_http_cookies",
        defaults.allow_insecure_http_cookies,
    )


def test_session_cookies_are_secure_by_default(
    default_cookie_settings: None,
    token_service: TokenService,
):
    directives = session_cookies(SessionTokenPair("access", "refresh"), token_service)

    assert [directive.name for directive in directives] == [ACCESS_COOKIE, REFRESH_COOKIE]
    assert all(directive.options["secure"] for directive in directives)
    assert all(directive.options["httponly"] for directive in directives)


def test_cleared_cookies_are_secure_by_default(default_cookie_settings: None):
    response = Response()

    clear_token_cookies(response)

    headers = response.headers.getlist("set-cookie")
    assert len(headers) == 2
    assert all("Secure" in header and "HttpOnly" in header for header in headers)


def test_insecure_cookies_require_opt_in(
    default_cookie_settings: None,
    token_service: TokenService,
    monkeypatch: pytest.MonkeyPatch,
):
    monkeypatch.setattr(settings, "allow_insecure_http_cookies", True)

    directives = session_cookies(SessionTokenPair("access", "refresh"), token_service)

    assert not any(directive.options["secure"] for directive in directives)
