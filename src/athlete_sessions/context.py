"""Application context.

Everything shared between requests (connection pool, HTTP client, store,
provider client) is built once at startup and torn down at shutdown. Request
handlers reach it through `request.app.state.context`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from athlete_sessions.auth.cookies import SessionCarrier
from athlete_sessions.auth.session import SessionManager
from athlete_sessions.auth.strava import StravaOAuth
from athlete_sessions.config import Settings
from athlete_sessions.database.connection import Database
from athlete_sessions.database.encryption import TokenCipher
from athlete_sessions.database.store import CredentialStore

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    settings: Settings
    database: Database
    http: httpx.AsyncClient
    store: CredentialStore
    provider: StravaOAuth
    manager: SessionManager
    carrier: SessionCarrier

    @classmethod
    def create(
        cls,
        settings: Settings,
        http: httpx.AsyncClient | None = None,
    ) -> "AppContext":
        """Build the context from settings.

        Args:
            settings: Application settings
            http: HTTP client to use for Strava (a new one by default)
        """
        database = Database.from_settings(settings)
        http = http or httpx.AsyncClient(timeout=settings.provider_timeout_seconds)
        store = CredentialStore(database, TokenCipher.from_settings(settings))
        provider = StravaOAuth.from_settings(http, settings)

        return cls(
            settings=settings,
            database=database,
            http=http,
            store=store,
            provider=provider,
            manager=SessionManager(
                provider,
                store,
                verify_presented_sessions=settings.verify_presented_sessions,
            ),
            carrier=SessionCarrier.from_settings(settings),
        )

    async def aclose(self) -> None:
        await self.http.aclose()
        await self.database.close()
