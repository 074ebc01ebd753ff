"""Account domain error taxonomy.

Every failure raised by the account services is an ``AccountError`` carrying a
stable ``kind`` tag, the HTTP status the request boundary should answer with,
a human readable message and an optional list of detail strings.
"""

from __future__ import annotations

from collections.abc import Sequence


class AccountError(Exception):
    kind = "error"
    status_code = 500

    def __init__(self, message: str, errors: Sequence[str] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.errors = list(errors or ())

    def to_payload(self) -> dict[str, object]:
        return {"detail": self.message, "kind": self.kind, "errors": self.errors}


class ValidationError(AccountError):
    """Malformed or missing input."""

    kind = "validation"
    status_code = 400


class ConflictError(AccountError):
    """Username or email already taken."""

    kind = "conflict"
    status_code = 409


class NotFoundError(AccountError):
    kind = "not_found"
    status_code = 404


class InvalidCredentialsError(AccountError):
    kind = "invalid_credentials"
    status_code = 401


class InvalidTokenError(AccountError):
    """Token signature, expiry, claims or kind check failed."""

    kind = "invalid_token"
    status_code = 401


class TokenMismatchError(AccountError):
    """Presented refresh token is not the one currently stored for the account."""

    kind = "token_mismatch"
    status_code = 401


class UploadError(AccountError):
    kind = "upload"
    status_code = 500


class TokenIssueError(AccountError):
    """Generic server-side failure while minting or persisting session tokens."""

    kind = "token_issue"
    status_code = 500


__all__ = [
    "AccountError",
    "ConflictError",
    "InvalidCredentialsError",
    "InvalidTokenError",
    "NotFoundError",
    "TokenIssueError",
    "TokenMismatchError",
    "UploadError",
    "ValidationError",
]
