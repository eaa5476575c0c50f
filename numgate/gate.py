"""
Session gate middleware.

Every request to a protected page is checked by asking the session
introspection endpoint whether the forwarded cookies belong to a live
session. Anything short of a positive answer redirects to the login page.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Protocol
from urllib.parse import urlencode

import requests
from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import RedirectResponse, Response
from starlette.types import ASGIApp

logger = logging.getLogger(__name__)

# Framework-internal and asset paths that never reach the gate.
EXCLUDED_PREFIXES = ("api", "_next/static", "_next/image", "static", "favicon.ico")

REDIRECT_STATUS = 307
REQUEST_TIMEOUT = 5.0  # seconds


class SessionValidator(Protocol):
    """Resolves the user behind a cookie header, or None when there is none."""

    def fetch_user(self, cookie_header: str) -> Optional[dict]:
        ...


@dataclass
class RemoteSessionValidator:
    """Calls the session introspection endpoint over HTTP."""

    base_url: str
    endpoint: str = "/api/auth/get-session"
    timeout: float = REQUEST_TIMEOUT

    def fetch_user(self, cookie_header: str) -> Optional[dict]:
        url = f"{self.base_url.rstrip('/')}{self.endpoint}"
        response = requests.get(
            url, headers={"cookie": cookie_header or ""}, timeout=self.timeout
        )
        if not response.ok:
            logger.info("Session check at %s returned %s", url, response.status_code)
            return None

        # Raises ValueError on a malformed body; the caller fails closed.
        session_data = response.json()
        if not isinstance(session_data, dict):
            return None
        user = session_data.get("user")
        return user if user else None


@dataclass(frozen=True)
class GateDecision:
    allowed: bool
    redirect_url: Optional[str] = None


ALLOW = GateDecision(allowed=True)


def is_excluded_path(path: str) -> bool:
    return path.lstrip("/").startswith(EXCLUDED_PREFIXES)


def is_protected_path(path: str, protected_prefix: str = "/dashboard") -> bool:
    if is_excluded_path(path):
        return False
    return path.startswith(protected_prefix)


def login_redirect_url(path: str, login_path: str = "/login") -> str:
    return f"{login_path}?{urlencode({'redirect': path})}"


def evaluate_request(
    path: str,
    cookie_header: Optional[str],
    validator: SessionValidator,
    *,
    protected_prefix: str = "/dashboard",
    login_path: str = "/login",
) -> GateDecision:
    """
    Decide whether a request may proceed.

    Args:
        path: The request path.
        cookie_header: The raw ``cookie`` header of the request, if any.
        validator: Resolves the session user from the cookie header.
        protected_prefix: Paths under this prefix require a session.
        login_path: Where unauthenticated requests are sent.

    Returns:
        GateDecision: ``allowed`` for unprotected paths and live sessions,
        otherwise a redirect to the login page carrying the original path.
    """
    if not is_protected_path(path, protected_prefix):
        return ALLOW

    denied = GateDecision(allowed=False, redirect_url=login_redirect_url(path, login_path))
    try:
        user = validator.fetch_user(cookie_header or "")
    except Exception:
        logger.exception("Session validation failed for %s", path)
        return denied

    if not user:
        return denied
    return ALLOW


class SessionGateMiddleware(BaseHTTPMiddleware):
    """
    Redirects unauthenticated requests for protected pages to the login page.

    When no validator is given, the session endpoint is reached on the
    request's own origin, forwarding its cookies.
    """

    def __init__(
        self,
        app: ASGIApp,
        *,
        protected_prefix: str = "/dashboard",
        login_path: str = "/login",
        session_endpoint: str = "/api/auth/get-session",
        timeout: float = REQUEST_TIMEOUT,
        validator: Optional[SessionValidator] = None,
    ):
        super().__init__(app)
        self.protected_prefix = protected_prefix
        self.login_path = login_path
        self.session_endpoint = session_endpoint
        self.timeout = timeout
        self.validator = validator

    def _validator_for(self, request: Request) -> SessionValidator:
        if self.validator is not None:
            return self.validator
        return RemoteSessionValidator(
            base_url=str(request.base_url),
            endpoint=self.session_endpoint,
            timeout=self.timeout,
        )

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        path = request.url.path
        if not is_protected_path(path, self.protected_prefix):
            return await call_next(request)

        decision = await run_in_threadpool(
            evaluate_request,
            path,
            request.headers.get("cookie"),
            self._validator_for(request),
            protected_prefix=self.protected_prefix,
            login_path=self.login_path,
        )
        if not decision.allowed:
            return RedirectResponse(decision.redirect_url, status_code=REDIRECT_STATUS)
        return await call_next(request)
