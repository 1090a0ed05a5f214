"""Session management.

Sessions are opaque UUIDs stored server-side and carried in an HTTP-only
cookie. A login request is classified by what it carries:

| Session cookie | Authorization code | State                 | Outcome                      |
| -------------- | ------------------ | --------------------- | ---------------------------- |
| no             | no                 | NO_SESSION_PRESENTED  | MissingCredentials           |
| yes            | no                 | SESSION_PRESENTED     | cookie returned unchanged    |
| no             | yes                | AUTH_CODE_PRESENTED   | token exchange, new session  |
| yes            | yes                | BOTH                  | token exchange, new session  |

A presented cookie must parse as a UUID, otherwise the request fails with
MalformedSession. By default a well-formed cookie is not looked up in the
database; set VERIFY_PRESENTED_SESSIONS to reject identifiers that do not
exist.

The token exchange always finishes before the database is touched, so no
connection is held while waiting on Strava.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from enum import Enum

from athlete_sessions.auth.strava import StravaOAuth
from athlete_sessions.database.store import CredentialStore
from athlete_sessions.errors import (
    LoginFailed,
    MalformedSession,
    MissingCredentials,
    ProviderError,
    UnknownSession,
)

logger = logging.getLogger(__name__)


class LoginState(str, Enum):
    """What a login request carries."""

    NO_SESSION_PRESENTED = "no_session_presented"
    SESSION_PRESENTED = "session_presented"
    AUTH_CODE_PRESENTED = "auth_code_presented"
    BOTH = "both"


@dataclass(frozen=True)
class LoginResult:
    """Outcome of a successful login."""

    session_id: str
    state: LoginState
    account_id: int | None = None  # Only known when a code was exchanged

    @property
    def is_new_session(self) -> bool:
        return self.state in (LoginState.AUTH_CODE_PRESENTED, LoginState.BOTH)


@dataclass(frozen=True)
class LogoutResult:
    """Outcome of a logout. The cookie is cleared either way."""

    session_id: str | None
    deleted: bool


def classify(session_cookie: str | None, authorization_code: str | None) -> LoginState:
    """Classify a login request. Empty values count as absent."""
    if authorization_code:
        return LoginState.BOTH if session_cookie else LoginState.AUTH_CODE_PRESENTED
    if session_cookie:
        return LoginState.SESSION_PRESENTED
    return LoginState.NO_SESSION_PRESENTED


def parse_session_id(value: str) -> uuid.UUID:
    """Parse a session cookie value.

    Raises:
        MalformedSession: If the value is not a UUID
    """
    try:
        return uuid.UUID(value)
    except (TypeError, ValueError) as e:
        raise MalformedSession("Session cookie is not a valid session id") from e


class SessionManager:
    """Orchestrates login and logout."""

    def __init__(
        self,
        provider: StravaOAuth,
        store: CredentialStore,
        verify_presented_sessions: bool = False,
    ):
        self.provider = provider
        self.store = store
        self.verify_presented_sessions = verify_presented_sessions

    async def login(
        self,
        session_cookie: str | None = None,
        authorization_code: str | None = None,
    ) -> LoginResult:
        """Authenticate a login request.

        Args:
            session_cookie: Raw session cookie value, if the browser sent one
            authorization_code: Code from Strava's consent redirect, if any

        Returns:
            LoginResult with the session id to set on the response

        Raises:
            MissingCredentials: Neither a cookie nor a code was presented
            MalformedSession: The cookie is not a valid session id
            LoginFailed: The code could not be exchanged with Strava
            StoreUnavailable: The database could not be reached
        """
        state = classify(session_cookie, authorization_code)

        if state is LoginState.NO_SESSION_PRESENTED:
            raise MissingCredentials("No session cookie or authorization code")

        if state is LoginState.SESSION_PRESENTED:
            return await self._resume(session_cookie)

        if state is LoginState.BOTH:
            logger.debug("Authorization code presented, ignoring session cookie")

        return await self._exchange(authorization_code, state)

    async def _resume(self, session_cookie: str) -> LoginResult:
        session_id = parse_session_id(session_cookie)

        if self.verify_presented_sessions:
            record = await self.store.get_session(session_id)
            if record is None:
                raise UnknownSession("Session does not exist")

        return LoginResult(session_id=session_cookie, state=LoginState.SESSION_PRESENTED)

    async def _exchange(self, code: str, state: LoginState) -> LoginResult:
        try:
            grant = await self.provider.exchange_code(code)
        except ProviderError as e:
            logger.warning(f"Login failed during token exchange: {e}")
            raise LoginFailed("Could not exchange authorization code") from e

        _, session_id = await self.store.record_login(
            account_id=grant.athlete.id,
            display_name=grant.athlete.username,
            access_token=grant.access_token,
            refresh_token=grant.refresh_token,
            access_expires_at=grant.access_expires_at,
        )

        logger.info(f"Athlete {grant.athlete.id} logged in")

        return LoginResult(
            session_id=str(session_id),
            state=state,
            account_id=grant.athlete.id,
        )

    async def logout(self, session_cookie: str | None = None) -> LogoutResult:
        """End a session. Never fails for unknown or missing sessions."""
        if not session_cookie:
            return LogoutResult(session_id=None, deleted=False)

        try:
            session_id = parse_session_id(session_cookie)
        except MalformedSession:
            logger.debug("Logout with malformed session cookie")
            return LogoutResult(session_id=session_cookie, deleted=False)

        deleted = await self.store.delete_session(session_id)
        if deleted:
            logger.info("Session ended")

        return LogoutResult(session_id=session_cookie, deleted=deleted)
