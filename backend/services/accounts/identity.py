"""Identity normalization and credential policy helpers."""

from __future__ import annotations

import re

from core import ValidationError

# At least eight characters drawn from letters, digits and the symbol set,
# with one digit, one lowercase letter, one uppercase letter and one symbol.
PASSWORD_SYMBOLS = "@$!%*?&"
PASSWORD_PATTERN = re.compile(
    r"^(?=.*[0-9])(?=.*[a-z])(?=.*[A-Z])(?=.*[@$!%*?&])([a-zA-Z0-9@$!%*?&]{8,})$"
)
PASSWORD_POLICY_MESSAGE = (
    "Password must contain at least 8 characters, including uppercase, "
    f"lowercase, numbers and one of {PASSWORD_SYMBOLS}"
)

# Column widths of the users table; plaintext passwords share the login cap.
USERNAME_MAX_LENGTH = 30
EMAIL_MAX_LENGTH = 255
FULL_NAME_MAX_LENGTH = 120
PASSWORD_MAX_LENGTH = 128


def normalize_email(value: str) -> str:
    return value.strip().lower()


def normalize_username(value: str) -> str:
    return value.strip().lower()


def is_blank(value: str | None) -> bool:
    return value is None or not value.strip()


def ensure_email_shape(email: str) -> None:
    if "@" not in email:
        raise ValidationError("Please provide a valid email")


def ensure_password_strength(password: str) -> None:
    if len(password) > PASSWORD_MAX_LENGTH:
        raise ValidationError(
            f"Password must be at most {PASSWORD_MAX_LENGTH} characters"
        )
    if PASSWORD_PATTERN.fullmatch(password) is None:
        raise ValidationError(PASSWORD_POLICY_MESSAGE)


def ensure_field_lengths(
    *,
    username: str | None = None,
    email: str | None = None,
    full_name: str | None = None,
) -> None:
    limits = (
        ("username", username, USERNAME_MAX_LENGTH),
        ("email", email, EMAIL_MAX_LENGTH),
        ("full_name", full_name, FULL_NAME_MAX_LENGTH),
    )
    too_long = [
        f"{name} must be at most {limit} characters"
        for name, value, limit in limits
        if value is not None and len(value.strip()) > limit
    ]
    if too_long:
        raise ValidationError("One or more fields are too long", too_long)
