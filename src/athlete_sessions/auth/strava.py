"""Strava OAuth token exchange.

Implements the server side of the OAuth 2.0 authorization code flow. The
single-page app sends the user to Strava's consent screen, receives the
authorization code on its redirect URI and posts it to our login endpoint;
this module exchanges that code for tokens.

## Required Setup

1. Create an API application at https://www.strava.com/settings/api
2. Set the authorization callback domain to the single-page app's host
3. Set STRAVA_CLIENT_ID and STRAVA_CLIENT_SECRET environment variables

## OAuth Endpoints

- Authorization: https://www.strava.com/oauth/authorize (used by the client)
- Token: https://www.strava.com/oauth/token

## Token Response

```json
{
  "token_type": "Bearer",
  "expires_at": 1568775134,
  "expires_in": 21600,
  "refresh_token": "e5n567567...",
  "access_token": "a4b945687g...",
  "athlete": {"id": 134815, "username": "marianne_t", "firstname": "Marianne",
              "lastname": "T", "profile": "https://..."}
}
```

Failures are never retried here; the caller decides what to do with them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import httpx
from pydantic import BaseModel, ValidationError

from athlete_sessions.config import Settings
from athlete_sessions.errors import (
    ProviderRejected,
    ProviderResponseInvalid,
    ProviderUnavailable,
)

logger = logging.getLogger(__name__)

STRAVA_TOKEN_URL = "https://www.strava.com/oauth/token"
GRANT_TYPE = "authorization_code"


@dataclass(frozen=True)
class AthleteProfile:
    """Profile summary embedded in the token response."""

    id: int
    username: str | None
    firstname: str | None = None
    lastname: str | None = None
    profile: str | None = None  # Profile image URL


@dataclass(frozen=True)
class ProviderGrant:
    """OAuth tokens from Strava, with an absolute expiry."""

    access_token: str
    refresh_token: str
    token_type: str
    access_expires_at: datetime
    athlete: AthleteProfile


class _AthletePayload(BaseModel):
    id: int
    username: str | None = None
    firstname: str | None = None
    lastname: str | None = None
    profile: str | None = None


class _TokenPayload(BaseModel):
    token_type: str = "Bearer"
    access_token: str
    refresh_token: str
    expires_at: int | None = None
    expires_in: int | None = None
    athlete: _AthletePayload


def _rejection_reason(response: httpx.Response) -> str:
    """Best-effort reason from an error response body."""
    try:
        data = response.json()
    except ValueError:
        return str(response.status_code)

    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return str(response.status_code)


class StravaOAuth:
    """Strava OAuth 2.0 client.

    Example:
        ```python
        async with httpx.AsyncClient(timeout=10) as http:
            oauth = StravaOAuth(http, client_id="123", client_secret="...")
            grant = await oauth.exchange_code(code)
        ```
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        client_id: str | None,
        client_secret: str | None,
        token_url: str = STRAVA_TOKEN_URL,
        timeout: float | None = None,
    ):
        """Initialize the Strava OAuth client.

        Args:
            http: Shared HTTP client, owned by the caller
            client_id: Strava OAuth client ID
            client_secret: Strava OAuth client secret
            token_url: Token endpoint
            timeout: Per-request timeout in seconds (or the client's default)
        """
        self.http = http
        self.client_id = client_id
        self.client_secret = client_secret
        self.token_url = token_url
        self.timeout = timeout

        if not self.is_configured:
            logger.warning(
                "Strava OAuth not configured. Set STRAVA_CLIENT_ID and "
                "STRAVA_CLIENT_SECRET environment variables."
            )

    @classmethod
    def from_settings(cls, http: httpx.AsyncClient, settings: Settings) -> "StravaOAuth":
        return cls(
            http,
            client_id=settings.strava_client_id,
            client_secret=settings.strava_client_secret,
            token_url=settings.strava_token_url,
            timeout=settings.provider_timeout_seconds,
        )

    @property
    def is_configured(self) -> bool:
        """Check if Strava OAuth is properly configured."""
        return bool(self.client_id and self.client_secret)

    async def exchange_code(self, code: str) -> ProviderGrant:
        """Exchange an authorization code for tokens.

        Args:
            code: Authorization code from the consent redirect

        Returns:
            ProviderGrant with tokens, absolute expiry and athlete profile

        Raises:
            ValueError: If the code is empty
            ProviderUnavailable: Transport failure, timeout or missing configuration
            ProviderRejected: Strava answered with a non-success status
            ProviderResponseInvalid: The response body could not be interpreted
        """
        if not code:
            raise ValueError("Authorization code must not be empty")

        if not self.is_configured:
            raise ProviderUnavailable("Strava OAuth not configured")

        kwargs = {}
        if self.timeout is not None:
            kwargs["timeout"] = self.timeout

        try:
            response = await self.http.post(
                self.token_url,
                data={
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                    "code": code,
                    "grant_type": GRANT_TYPE,
                },
                **kwargs,
            )
        except httpx.TransportError as e:
            raise ProviderUnavailable(f"Token exchange request failed: {e!r}") from e

        if not response.is_success:
            reason = _rejection_reason(response)
            logger.error(f"Token exchange failed ({response.status_code}): {reason}")
            raise ProviderRejected(reason, status_code=response.status_code)

        try:
            payload = _TokenPayload.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise ProviderResponseInvalid(f"Unexpected token response: {e}") from e

        return ProviderGrant(
            access_token=payload.access_token,
            refresh_token=payload.refresh_token,
            token_type=payload.token_type,
            access_expires_at=_absolute_expiry(payload),
            athlete=AthleteProfile(
                id=payload.athlete.id,
                username=payload.athlete.username,
                firstname=payload.athlete.firstname,
                lastname=payload.athlete.lastname,
                profile=payload.athlete.profile,
            ),
        )


def _absolute_expiry(payload: _TokenPayload) -> datetime:
    try:
        if payload.expires_at is not None:
            return datetime.fromtimestamp(payload.expires_at, tz=timezone.utc)

        if payload.expires_in is not None:
            now = datetime.now(timezone.utc).replace(microsecond=0)
            return now + timedelta(seconds=payload.expires_in)
    except (OverflowError, OSError, ValueError) as e:
        raise ProviderResponseInvalid(f"Token expiry out of range: {e}") from e

    raise ProviderResponseInvalid("Token response carries neither expires_at nor expires_in")
