"""FastAPI application and routes.

## API Structure

- /api/v1/healthcheck - Liveness probe
- /api/v1/login - Strava login (authorization code or session cookie)
- /api/v1/logout - End the session

## Authentication

Sessions are created during login and carried in the `session` cookie.
The single-page app runs on another origin, so CORS allows credentials for
the configured origins.
"""

from athlete_sessions.api.app import create_app

__all__ = ["create_app"]
