"""
HTTP routes for the numgate API.

The numeric log functions are exposed RPC-style as ``POST /<functionName>``;
the auth routes mirror the session endpoints the gate depends on.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Response

from numgate import functions
from numgate.auth import AuthConfig, session_cookie_name
from numgate.db import DbClient, StoreUnavailableError, UserRecord
from numgate.dependencies import (
    get_auth_config,
    get_db_client,
    get_session_token,
    get_viewer,
    store_unavailable,
)
from numgate.schemas import (
    AddNumberRequest,
    ListNumbersRequest,
    ListNumbersResponse,
    MyActionRequest,
    OkResponse,
    SessionInfo,
    SessionResponse,
    SignOutResponse,
    Viewer,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _viewer_model(user: Optional[UserRecord]) -> Optional[Viewer]:
    return Viewer(**user.as_dict()) if user else None


def _require_configured(config: AuthConfig) -> None:
    if not config.is_configured:
        raise HTTPException(status_code=503, detail="Authentication is not configured")


@router.post("/addNumber", response_model=OkResponse)
def add_number(payload: AddNumberRequest, db: DbClient = Depends(get_db_client)):
    try:
        functions.add_number(db, payload.value)
    except StoreUnavailableError as exc:
        raise store_unavailable(exc)
    return OkResponse(status="ok")


@router.post("/listNumbers", response_model=ListNumbersResponse)
def list_numbers(
    payload: ListNumbersRequest,
    db: DbClient = Depends(get_db_client),
    viewer: Optional[UserRecord] = Depends(get_viewer),
):
    try:
        result = functions.list_numbers(db, payload.count, viewer)
    except StoreUnavailableError as exc:
        raise store_unavailable(exc)
    return ListNumbersResponse(
        numbers=result.numbers, viewer=_viewer_model(result.viewer)
    )


@router.post("/myAction", response_model=OkResponse)
def my_action(
    payload: MyActionRequest,
    db: DbClient = Depends(get_db_client),
    viewer: Optional[UserRecord] = Depends(get_viewer),
):
    """
    Read the recent numbers, then append ``first``. ``second`` is only logged.
    """
    try:
        functions.my_action(db, payload.first, payload.second, viewer)
    except StoreUnavailableError as exc:
        raise store_unavailable(exc)
    return OkResponse(status="ok")


@router.post("/getCurrentUser", response_model=Optional[Viewer])
def get_current_user(viewer: Optional[UserRecord] = Depends(get_viewer)):
    return _viewer_model(viewer)


@router.get("/auth/get-session", response_model=Optional[SessionResponse])
def get_session(
    config: AuthConfig = Depends(get_auth_config),
    token: Optional[str] = Depends(get_session_token),
    db: DbClient = Depends(get_db_client),
):
    _require_configured(config)
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
    return SessionResponse(
        session=SessionInfo(**session.as_dict()), user=Viewer(**user.as_dict())
    )


@router.post("/auth/sign-out", response_model=SignOutResponse)
def sign_out(
    response: Response,
    config: AuthConfig = Depends(get_auth_config),
    token: Optional[str] = Depends(get_session_token),
    db: DbClient = Depends(get_db_client),
):
    _require_configured(config)
    try:
        if token and db.delete_session(token):
            logger.info("Session signed out")
    except StoreUnavailableError as exc:
        raise store_unavailable(exc)
    response.delete_cookie(
        session_cookie_name(config),
        path="/",
        secure=config.base_url.startswith("https://"),
    )
    return SignOutResponse(success=True)
