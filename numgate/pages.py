"""
Minimal server-rendered pages standing in for the front-end.
"""

from __future__ import annotations

from html import escape
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import HTMLResponse

from numgate import functions
from numgate.db import DbClient, StoreUnavailableError, UserRecord
from numgate.dependencies import get_db_client, get_viewer, store_unavailable

router = APIRouter()

DASHBOARD_COUNT = 10


def _page(title: str, body: str) -> HTMLResponse:
    return HTMLResponse(
        f"<!doctype html><html><head><title>{escape(title)}</title></head>"
        f"<body><main>{body}</main></body></html>"
    )


@router.get("/", response_class=HTMLResponse)
def home(viewer: Optional[UserRecord] = Depends(get_viewer)):
    if viewer:
        name = escape(viewer.name or viewer.email)
        body = (
            f"<h1>Welcome back, {name}!</h1>"
            '<p><a href="/dashboard">Go to Dashboard</a></p>'
            '<form method="post" action="/api/auth/sign-out"><button>Sign Out</button></form>'
        )
    else:
        body = (
            "<h1>Welcome to numgate</h1>"
            '<p><a href="/login">Sign In</a></p>'
        )
    return _page("numgate", body)


@router.get("/login", response_class=HTMLResponse)
def login(redirect: str = Query("/")):
    return _page(
        "Sign in",
        f'<h1>Sign in</h1><p data-redirect="{escape(redirect)}">'
        f"You will return to {escape(redirect)} after signing in.</p>",
    )


@router.get("/dashboard", response_class=HTMLResponse)
def dashboard(
    db: DbClient = Depends(get_db_client),
    viewer: Optional[UserRecord] = Depends(get_viewer),
):
    try:
        result = functions.list_numbers(db, DASHBOARD_COUNT, viewer)
    except StoreUnavailableError as exc:
        raise store_unavailable(exc)
    items = "".join(f"<li>{escape(str(n))}</li>" for n in result.numbers)
    who = escape(viewer.email) if viewer else "unknown"
    return _page("Dashboard", f"<h1>Dashboard</h1><p>{who}</p><ul>{items}</ul>")
