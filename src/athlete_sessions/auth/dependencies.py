"""FastAPI dependencies for authentication.

## Usage

```python
from fastapi import Depends
from athlete_sessions.auth.dependencies import get_session_cookie, get_session_manager

@router.post("/logout")
async def logout(
    session_cookie: str | None = Depends(get_session_cookie),
    manager: SessionManager = Depends(get_session_manager),
):
    ...
```
"""

from __future__ import annotations

from fastapi import Depends, Request

from athlete_sessions.auth.cookies import SessionCarrier
from athlete_sessions.auth.session import SessionManager
from athlete_sessions.context import AppContext


def get_context(request: Request) -> AppContext:
    """The application context created by the lifespan handler."""
    return request.app.state.context


def get_session_manager(context: AppContext = Depends(get_context)) -> SessionManager:
    return context.manager


def get_session_carrier(context: AppContext = Depends(get_context)) -> SessionCarrier:
    return context.carrier


def get_session_cookie(
    request: Request,
    carrier: SessionCarrier = Depends(get_session_carrier),
) -> str | None:
    """Raw session cookie value, unvalidated."""
    return carrier.decode(request.cookies)
