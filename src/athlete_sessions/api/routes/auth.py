"""Authentication routes.

Handles login with a Strava authorization code and logout.

## Endpoints

1. POST /login - Exchange a code (or confirm an existing session cookie)
2. POST /logout - End the session and clear the cookie

## Session Management

Sessions are stored server-side; the browser holds an opaque session id in an
HTTP-only cookie named `session`.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Body, Depends, Response
from pydantic import BaseModel

from athlete_sessions.auth.cookies import SessionCarrier
from athlete_sessions.auth.dependencies import (
    get_session_carrier,
    get_session_cookie,
    get_session_manager,
)
from athlete_sessions.auth.session import SessionManager

logger = logging.getLogger(__name__)

router = APIRouter()


class LoginRequest(BaseModel):
    """Login request body."""

    authorization_code: str | None = None


class StatusResponse(BaseModel):
    status: str


@router.post("/login", response_model=StatusResponse)
async def login(
    response: Response,
    body: LoginRequest | None = Body(default=None),
    session_cookie: str | None = Depends(get_session_cookie),
    manager: SessionManager = Depends(get_session_manager),
    carrier: SessionCarrier = Depends(get_session_carrier),
) -> StatusResponse:
    """Log in with an authorization code or an existing session cookie.

    Errors are mapped to status codes by the application's exception
    handlers; no cookie is set on failure.
    """
    code = body.authorization_code if body else None

    result = await manager.login(session_cookie=session_cookie, authorization_code=code)
    carrier.encode(result.session_id).apply(response)

    return StatusResponse(status="authenticated")


@router.post("/logout", response_model=StatusResponse)
async def logout(
    response: Response,
    session_cookie: str | None = Depends(get_session_cookie),
    manager: SessionManager = Depends(get_session_manager),
    carrier: SessionCarrier = Depends(get_session_carrier),
) -> StatusResponse:
    """Log out. Always succeeds and always clears the session cookie."""
    await manager.logout(session_cookie)
    carrier.clear().apply(response)

    return StatusResponse(status="logged_out")
