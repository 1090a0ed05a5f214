"""Athlete Sessions.

Logs athletes in with Strava and keeps server-side sessions for the
fitness-tracking app.

## Components

- `auth.strava`: exchanges authorization codes for tokens
- `database.store`: accounts, credentials and session ids (upserts)
- `auth.session`: login / logout state machine
- `auth.cookies`: the `session` cookie
- `api`: FastAPI application
"""

__version__ = "0.1.0"
