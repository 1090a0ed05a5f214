"""Session cookie encoding.

The session identifier travels in a single HTTP-only cookie. The single-page
app is served from a different origin than the API, so the cookie is sent
with `SameSite=None`, which browsers only accept together with `Secure`.

The carrier does not validate the cookie value; that is the session
manager's job.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Literal, Mapping

from starlette.responses import Response

from athlete_sessions.config import Settings

SESSION_COOKIE_NAME = "session"


@dataclass(frozen=True)
class CookieAttributes:
    """A cookie to set, or to remove when `value` is None."""

    key: str
    value: str | None
    httponly: bool = True
    samesite: Literal["lax", "strict", "none"] = "none"
    secure: bool = True
    path: str = "/"
    max_age: int | None = None

    @property
    def is_removal(self) -> bool:
        return self.value is None

    def apply(self, response: Response) -> None:
        """Write this cookie (or its removal) onto a response."""
        if self.is_removal:
            response.delete_cookie(
                key=self.key,
                path=self.path,
                secure=self.secure,
                httponly=self.httponly,
                samesite=self.samesite,
            )
            return

        response.set_cookie(
            key=self.key,
            value=self.value,
            max_age=self.max_age,
            path=self.path,
            secure=self.secure,
            httponly=self.httponly,
            samesite=self.samesite,
        )


class SessionCarrier:
    """Encodes session ids into cookies and reads them back."""

    def __init__(
        self,
        cookie_name: str = SESSION_COOKIE_NAME,
        secure: bool = True,
        max_age: int | None = None,
    ):
        self.cookie_name = cookie_name
        self.secure = secure
        self.max_age = max_age

    @classmethod
    def from_settings(cls, settings: Settings) -> "SessionCarrier":
        return cls(
            cookie_name=settings.session_cookie_name,
            secure=settings.session_cookie_secure,
            max_age=settings.session_max_age_seconds,
        )

    def encode(self, session_id: uuid.UUID | str) -> CookieAttributes:
        return CookieAttributes(
            key=self.cookie_name,
            value=str(session_id),
            secure=self.secure,
            max_age=self.max_age,
        )

    def decode(self, cookies: Mapping[str, str]) -> str | None:
        """Return the raw session cookie value, if any."""
        return cookies.get(self.cookie_name)

    def clear(self) -> CookieAttributes:
        return CookieAttributes(key=self.cookie_name, value=None, secure=self.secure)
