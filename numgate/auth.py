"""
Auth configuration resolution and session cookie helpers.

The configuration is resolved once at application start-up. When the site URL
or the auth secret is missing the service still boots, but in placeholder mode
where every auth call is refused.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional
from urllib.parse import unquote

from numgate.config import Settings

logger = logging.getLogger(__name__)

PLACEHOLDER_SECRET = "placeholder-secret-for-setup-only"
PLACEHOLDER_BASE_URL = "http://localhost:3000"

SESSION_COOKIE = "better-auth.session_token"
SECURE_COOKIE_PREFIX = "__Secure-"


class AuthMode(Enum):
    CONFIGURED = "configured"
    PLACEHOLDER = "placeholder"


@dataclass(frozen=True)
class AuthConfig:
    mode: AuthMode
    secret: str
    base_url: str
    trusted_origins: list[str] = field(default_factory=list)
    email_password_enabled: bool = False
    require_email_verification: bool = False
    logger_disabled: bool = False

    @property
    def is_configured(self) -> bool:
        return self.mode is AuthMode.CONFIGURED


def resolve_auth_config(settings: Settings, *, options_only: bool = False) -> AuthConfig:
    """
    Build the auth configuration from settings.

    Args:
        settings: The service settings.
        options_only: Silence auth logging when the config is only being
            inspected (tooling, schema generation).

    Returns:
        AuthConfig: tagged CONFIGURED when both SITE_URL and BETTER_AUTH_SECRET
        are set, PLACEHOLDER otherwise. Never raises for missing values.
    """
    if not settings.site_url or not settings.better_auth_secret:
        if not options_only:
            logger.warning(
                "SITE_URL or BETTER_AUTH_SECRET not set; auth is running in placeholder mode."
            )
        return AuthConfig(
            mode=AuthMode.PLACEHOLDER,
            secret=PLACEHOLDER_SECRET,
            base_url=PLACEHOLDER_BASE_URL,
            email_password_enabled=False,
            logger_disabled=True,
        )

    site_url = settings.site_url.rstrip("/")
    return AuthConfig(
        mode=AuthMode.CONFIGURED,
        secret=settings.better_auth_secret,
        base_url=site_url,
        trusted_origins=[site_url],
        email_password_enabled=True,
        require_email_verification=False,
        logger_disabled=options_only,
    )


def session_cookie_name(config: AuthConfig) -> str:
    if config.base_url.startswith("https://"):
        return SECURE_COOKIE_PREFIX + SESSION_COOKIE
    return SESSION_COOKIE


def _signature_bytes(token: str, secret: str) -> bytes:
    digest = hmac.new(secret.encode("utf-8"), token.encode("utf-8"), hashlib.sha256).digest()
    return base64.b64encode(digest)


def _signature(token: str, secret: str) -> str:
    return _signature_bytes(token, secret).decode("ascii")


def sign_session_token(token: str, secret: str) -> str:
    """Return the cookie value for a session token: ``<token>.<signature>``."""
    return f"{token}.{_signature(token, secret)}"


def unsign_session_token(value: str, secret: str) -> Optional[str]:
    """Return the token when the cookie signature checks out, else None."""
    value = unquote(value or "")
    token, sep, signature = value.rpartition(".")
    if not sep or not token or not signature:
        return None
    # Cookie text may carry non-ASCII after unquoting; compare as bytes.
    if not hmac.compare_digest(signature.encode("utf-8"), _signature_bytes(token, secret)):
        return None
    return token
