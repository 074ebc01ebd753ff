"""Account domain services: credentials, sessions, registration, profiles."""

from .cookies import (
    ACCESS_COOKIE,
    REFRESH_COOKIE,
    CookieDirective,
    clear_token_cookies,
    session_cookies,
    set_token_cookies,
)
from .identity import (
    PASSWORD_PATTERN,
    ensure_email_shape,
    ensure_password_strength,
    normalize_email,
    normalize_username,
)
from .profiles import get_channel_profile
from .registration import RegistrationWorkflow
from .schemas import (
    AccountView,
    ChannelProfile,
    LoginRequest,
    LoginResult,
    NewAccount,
    RegistrationRequest,
)
from .sessions import SessionManager
from .store import CredentialStore
from .tokens import (
    ACCESS,
    REFRESH,
    SessionTokenPair,
    TokenClaims,
    TokenService,
    TokenSettings,
    hash_refresh_token,
)

__all__ = [
    "ACCESS",
    "ACCESS_COOKIE",
    "REFRESH",
    "REFRESH_COOKIE",
    "PASSWORD_PATTERN",
    "AccountView",
    "ChannelProfile",
    "CookieDirective",
    "CredentialStore",
    "LoginRequest",
    "LoginResult",
    "NewAccount",
    "RegistrationRequest",
    "RegistrationWorkflow",
    "SessionManager",
    "SessionTokenPair",
    "TokenClaims",
    "TokenService",
    "TokenSettings",
    "clear_token_cookies",
    "ensure_email_shape",
    "ensure_password_strength",
    "get_channel_profile",
    "hash_refresh_token",
    "normalize_email",
    "normalize_username",
    "session_cookies",
    "set_token_cookies",
]
