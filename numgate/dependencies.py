"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import Depends, HTTPException, Request

from numgate.auth import AuthConfig, resolve_auth_config, session_cookie_name, unsign_session_token
from numgate.config import get_settings
from numgate.db import DbClient, InMemoryDbClient, SqlDbClient, StoreUnavailableError, UserRecord

logger = logging.getLogger(__name__)

_db_client: DbClient | None = None


def get_db_client() -> DbClient:
    """
    Return a singleton DB client so the log and sessions persist across requests.
    """
    global _db_client
    if _db_client:
        return _db_client

    settings = get_settings()
    if settings.use_in_memory_backends or not settings.database_url:
        _db_client = InMemoryDbClient()
    else:
        _db_client = SqlDbClient(settings.database_url)
    return _db_client


def store_unavailable(exc: StoreUnavailableError) -> HTTPException:
    logger.error("Store unavailable: %s", exc)
    return HTTPException(status_code=503, detail="Store unavailable")


def get_auth_config(request: Request) -> AuthConfig:
    """Return the auth config resolved at start-up by ``create_app``."""
    config = getattr(request.app.state, "auth_config", None)
    if config is None:
        config = resolve_auth_config(get_settings())
        request.app.state.auth_config = config
    return config


def get_session_token(
    request: Request, config: AuthConfig = Depends(get_auth_config)
) -> Optional[str]:
    if not config.is_configured:
        return None
    raw = request.cookies.get(session_cookie_name(config))
    if not raw:
        return None
    token = unsign_session_token(raw, config.secret)
    if token is None:
        logger.info("Rejected session cookie with a bad signature")
    return token


def get_viewer(
    token: Optional[str] = Depends(get_session_token),
    db: DbClient = Depends(get_db_client),
) -> Optional[UserRecord]:
    """Resolve the authenticated caller, or None."""
    if not token:
        return None
    try:
        found = db.get_session(token)
    except StoreUnavailableError as exc:
        raise store_unavailable(exc)
    if not found:
        return None
    session, user = found
    if session.is_expired():
        return None
    return user
