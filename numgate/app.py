"""
FastAPI application entry point for numgate.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI

from numgate.auth import resolve_auth_config
from numgate.config import Settings, get_settings
from numgate.gate import SessionGateMiddleware, SessionValidator
from numgate.pages import router as pages_router
from numgate.routes import router

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    session_validator: Optional[SessionValidator] = None,
) -> FastAPI:
    settings = settings or get_settings()
    logging.basicConfig(level=settings.log_level.upper())

    app = FastAPI(title="numgate", version="0.1.0")
    app.state.auth_config = resolve_auth_config(settings)
    logger.info("Auth mode: %s", app.state.auth_config.mode.value)

    app.include_router(router, prefix=settings.api_prefix)
    app.include_router(pages_router)
    app.add_middleware(
        SessionGateMiddleware,
        protected_prefix=settings.protected_prefix,
        login_path=settings.login_path,
        session_endpoint=settings.session_endpoint,
        timeout=settings.session_check_timeout,
        validator=session_validator,
    )
    return app


app = create_app()
