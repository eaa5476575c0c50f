"""
Pydantic schemas for the numgate API.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field


class AddNumberRequest(BaseModel):
    value: float


class ListNumbersRequest(BaseModel):
    count: int = Field(..., ge=0)


class MyActionRequest(BaseModel):
    first: float
    second: str


class Viewer(BaseModel):
    id: str
    email: str
    name: Optional[str] = None


class ListNumbersResponse(BaseModel):
    numbers: list[float]
    viewer: Optional[Viewer] = None


class OkResponse(BaseModel):
    status: Literal["ok"]


class SessionInfo(BaseModel):
    token: str
    user_id: str
    expires_at: float
    created_at: float


class SessionResponse(BaseModel):
    session: SessionInfo
    user: Viewer


class SignOutResponse(BaseModel):
    success: bool
