"""Authentication module for athlete sessions.

Provides the Strava token exchange, server-side sessions and the session
cookie.

## OAuth Flow

1. The single-page app sends the athlete to Strava's consent screen
2. Strava redirects back to the app with an authorization code
3. The app posts the code to POST /api/v1/login
4. We exchange the code for an access token and a refresh token
5. Create the account if needed and store the tokens (upsert)
6. Mint a session id and set it as a cookie

Later requests carry the cookie; POST /api/v1/logout deletes the session.

## Security

- All tokens are encrypted at rest
- Session ids are random UUIDs stored server-side
- Cookies are HTTP-only, SameSite=None and Secure
"""

from athlete_sessions.auth.cookies import CookieAttributes, SessionCarrier
from athlete_sessions.auth.session import (
    LoginResult,
    LoginState,
    LogoutResult,
    SessionManager,
)
from athlete_sessions.auth.strava import AthleteProfile, ProviderGrant, StravaOAuth

__all__ = [
    "AthleteProfile",
    "CookieAttributes",
    "LoginResult",
    "LoginState",
    "LogoutResult",
    "ProviderGrant",
    "SessionCarrier",
    "SessionManager",
    "StravaOAuth",
]
