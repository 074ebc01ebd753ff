"""Pytest fixtures for the accounts backend."""

from collections.abc import AsyncIterator, Iterator
from datetime import timedelta
from io import BytesIO
from pathlib import Path
from uuid import uuid4

from alembic import command
from alembic.config import Config
import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from PIL import Image
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool
from sqlmodel import SQLModel

from api.deps import get_db, get_media_uploader
from app import create_app
from core.config import settings
from services import UploadedMedia
from services.accounts import TokenService, TokenSettings
from services.staging import StagedAsset

PASSWORD = "Str0ng!Pass"


def _run_alembic_migrations(database_url: str) -> None:
    """Apply Alembic migrations to the given database URL."""
    backend_dir = Path(__file__).resolve().parents[1]
    alembic_cfg = Config(str(backend_dir / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(backend_dir / "alembic"))

    original_database_url = settings.database_url
    try:
        settings.database_url = database_url
        command.upgrade(alembic_cfg, "head")
    finally:
        settings.database_url = original_database_url


@pytest.fixture(scope="session")
def test_database_url(tmp_path_factory) -> str:
    """Create and migrate a file-backed SQLite database for tests."""
    db_dir = tmp_path_factory.mktemp("sqlite")
    db_path = db_dir / "backend-test.db"
    database_url = f"sqlite+aiosqlite:///{db_path}"
    _run_alembic_migrations(database_url)
    return database_url


@pytest.fixture(scope="session")
def test_engine(test_database_url: str):
    """Async engine without pooling, so no connection outlives its event loop."""
    return create_async_engine(
        test_database_url,
        poolclass=NullPool,
        connect_args={"check_same_thread": False},
    )


@pytest.fixture(scope="session")
def session_maker(test_engine) -> async_sessionmaker[AsyncSession]:
    """Return a session factory bound to the test engine."""
    return async_sessionmaker(test_engine, expire_on_commit=False)


class FakeMediaUploader:
    """In-memory media storage that honours the staged-file cleanup contract."""

    def __init__(self) -> None:
        self.uploaded: list[UploadedMedia] = []
        self.deleted: list[str] = []
        self.failures_remaining = 0

    async def upload(self, local_path: Path | None) -> UploadedMedia | None:
        if local_path is None:
            return None
        try:
            if self.failures_remaining > 0:
                self.failures_remaining -= 1
                return None
            object_key = f"media/{uuid4().hex}{local_path.suffix}"
            media = UploadedMedia(
                url=f"https://media.test/{object_key}",
                object_key=object_key,
                content_type="image/png",
                size=local_path.stat().st_size,
            )
            self.uploaded.append(media)
            return media
        finally:
            local_path.unlink(missing_ok=True)

    async def delete(self, object_key: str) -> None:
        self.deleted.append(object_key)


@pytest.fixture()
def media_uploader() -> FakeMediaUploader:
    return FakeMediaUploader()


@pytest.fixture(autouse=True)
def test_app_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """The test client talks plain HTTP, so cookies must not be `Secure`."""
    monkeypatch.setattr(settings, "app_env", "test")


@pytest.fixture(autouse=True)
def upload_tmp_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Stage uploads into a per-test directory."""
    staging_dir = tmp_path / "staging"
    monkeypatch.setattr(settings, "upload_tmp_dir", str(staging_dir))
    return staging_dir


@pytest.fixture()
def app(session_maker, media_uploader: FakeMediaUploader) -> Iterator[FastAPI]:
    """Create the FastAPI app with test database and media overrides."""
    application = create_app()

    async def override_get_db() -> AsyncIterator[AsyncSession]:
        async with session_maker() as session:
            yield session

    application.dependency_overrides[get_db] = override_get_db
    application.dependency_overrides[get_media_uploader] = lambda: media_uploader
    yield application
    application.dependency_overrides.clear()


@pytest_asyncio.fixture()
async def async_client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    """Return an HTTPX async client bound to the FastAPI app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client


@pytest_asyncio.fixture(autouse=True)
async def clean_database(session_maker) -> AsyncIterator[None]:
    """Clear tables before each test to guarantee isolation."""
    async with session_maker() as session:
        for table in reversed(SQLModel.metadata.sorted_tables):
            await session.execute(table.delete())
        await session.commit()
    yield


@pytest_asyncio.fixture()
async def db_session(session_maker) -> AsyncIterator[AsyncSession]:
    """Provide a raw database session to tests."""
    async with session_maker() as session:
        yield session


@pytest.fixture()
def token_service() -> TokenService:
    return TokenService(
        TokenSettings(
            access_secret="test-access-secret-with-enough-entropy",
            access_ttl=timedelta(minutes=5),
            refresh_secret="test-refresh-secret-with-enough-entropy",
            refresh_ttl=timedelta(days=1),
        )
    )


def png_bytes(size: tuple[int, int] = (4, 4)) -> bytes:
    buffer = BytesIO()
    Image.new("RGB", size, color=(200, 30, 30)).save(buffer, format="PNG")
    return buffer.getvalue()


def stage_png(directory: Path, name: str = "avatar.png") -> StagedAsset:
    """Write a PNG into ``directory`` as if the staging collaborator had."""
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / f"{uuid4().hex}-{name}"
    path.write_bytes(png_bytes())
    return StagedAsset(path=path, original_filename=name, content_type="image/png")


def registration_form(**overrides: str | None) -> dict[str, str]:
    suffix = uuid4().hex[:8]
    form: dict[str, str | None] = {
        "username": f"ana_{suffix}",
        "email": f"ana_{suffix}@example.com",
        "full_name": "Ana",
        "password": PASSWORD,
    }
    form.update(overrides)
    return {key: value for key, value in form.items() if value is not None}


def image_files(*, avatar: bool = True, cover_image: bool = False) -> dict[str, tuple[str, bytes, str]]:
    files: dict[str, tuple[str, bytes, str]] = {}
    if avatar:
        files["avatar"] = ("avatar.png", png_bytes(), "image/png")
    if cover_image:
        files["cover_image"] = ("cover.png", png_bytes((8, 4)), "image/png")
    return files


async def register_account(
    client: AsyncClient,
    **overrides: str | None,
) -> dict[str, str]:
    form = registration_form(**overrides)
    response = await client.post(
        "/api/v1/auth/register",
        data=form,
        files=image_files(),
    )
    assert response.status_code == 201, response.text
    return form


async def login_account(client: AsyncClient, form: dict[str, str]):
    response = await client.post(
        "/api/v1/auth/login",
        json={"username": form["username"], "password": form["password"]},
    )
    assert response.status_code == 200, response.text
    return response
