"""Application settings loaded from the environment."""

from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = "Channel Accounts API"
    app_env: str = "production"
    log_level: str = "INFO"
    cors_origins: list[str] = []

    database_url: str = "sqlite+aiosqlite:///./accounts.db"

    # Access and refresh tokens are signed with distinct secrets so one kind
    # can never verify as the other.
    access_token_secret: str = "dev-access-token-secret-change-me-in-production"
    access_token_expire_minutes: int = 15
    refresh_token_secret: str = "dev-refresh-token-secret-change-me-in-production"
    refresh_token_expire_minutes: int = 60 * 24 * 14
    jwt_algorithm: str = "HS256"

    password_hash_rounds: int = 10
    allow_insecure_http_cookies: bool = False

    minio_endpoint: str = "localhost:9000"
    minio_access_key: str = "minioadmin"
    minio_secret_key: str = "minioadmin"
    minio_secure: bool = False
    minio_bucket: str = "channel-media"
    media_public_base_url: str = "http://localhost:9000"

    upload_tmp_dir: str = "./public/temp"
    upload_max_bytes: int = 5 * 1024 * 1024


settings = Settings()
