"""Password hashing helpers."""

from __future__ import annotations

import bcrypt

from .config import settings

# bcrypt only consumes the first 72 bytes of a secret; newer releases raise
# instead of truncating silently.
BCRYPT_MAX_SECRET_BYTES = 72


def _encode_secret(plaintext: str) -> bytes:
    return plaintext.encode("utf-8")[:BCRYPT_MAX_SECRET_BYTES]


def hash_password(plaintext: str, *, rounds: int | None = None) -> str:
    """Return a salted bcrypt digest of ``plaintext``."""
    cost = rounds if rounds is not None else settings.password_hash_rounds
    digest = bcrypt.hashpw(_encode_secret(plaintext), bcrypt.gensalt(rounds=cost))
    return digest.decode("ascii")


def verify_password(plaintext: str, digest: str | None) -> bool:
    """Return True when ``plaintext`` matches ``digest``; never raises on mismatch."""
    if not plaintext or not digest:
        return False
    try:
        return bcrypt.checkpw(_encode_secret(plaintext), digest.encode("ascii"))
    except (ValueError, UnicodeEncodeError):
        return False


def hash_rounds(digest: str) -> int | None:
    parts = digest.split("$")
    if len(parts) < 4:
        return None
    try:
        return int(parts[2])
    except ValueError:
        return None


def needs_rehash(digest: str) -> bool:
    """Return True when ``digest`` was produced with a different cost factor."""
    return hash_rounds(digest) != settings.password_hash_rounds
