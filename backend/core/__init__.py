"""Core configuration, error and security primitives."""

from .config import Settings, settings
from .errors import (
    AccountError,
    ConflictError,
    InvalidCredentialsError,
    InvalidTokenError,
    NotFoundError,
    TokenIssueError,
    TokenMismatchError,
    UploadError,
    ValidationError,
)
from .security import hash_password, needs_rehash, verify_password

__all__ = [
    "Settings",
    "settings",
    "AccountError",
    "ConflictError",
    "InvalidCredentialsError",
    "InvalidTokenError",
    "NotFoundError",
    "TokenIssueError",
    "TokenMismatchError",
    "UploadError",
    "ValidationError",
    "hash_password",
    "needs_rehash",
    "verify_password",
]
