"""Pytest fixtures for athlete sessions tests.

This module provides test fixtures that ensure:
1. No external API calls are made (Strava is stubbed or mocked)
2. Every test gets its own throwaway SQLite database
3. Isolated test environment with controlled configuration
"""

import os
from datetime import datetime, timezone

import pytest
import pytest_asyncio

# Set test environment BEFORE importing application modules
os.environ.setdefault("SECRET_KEY", "test-secret-key-at-least-32-characters-long")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("STRAVA_CLIENT_ID", "test-client-id")
os.environ.setdefault("STRAVA_CLIENT_SECRET", "test-client-secret")
os.environ.setdefault("ENVIRONMENT", "development")

from sqlalchemy import func, select

from athlete_sessions.auth.session import SessionManager
from athlete_sessions.auth.strava import AthleteProfile, ProviderGrant
from athlete_sessions.config import Settings
from athlete_sessions.database.connection import Database
from athlete_sessions.database.encryption import TokenCipher
from athlete_sessions.database.store import CredentialStore
from athlete_sessions.errors import ProviderRejected

TEST_SECRET_KEY = "test-secret-key-at-least-32-characters-long"
ATHLETE_ID = 134815
EXPIRES_AT = datetime(2030, 1, 1, 12, 0, tzinfo=timezone.utc)


def make_grant(
    athlete_id: int = ATHLETE_ID,
    username: str | None = "marianne_t",
    access_token: str = "access-1",
    refresh_token: str = "refresh-1",
    access_expires_at: datetime = EXPIRES_AT,
) -> ProviderGrant:
    return ProviderGrant(
        access_token=access_token,
        refresh_token=refresh_token,
        token_type="Bearer",
        access_expires_at=access_expires_at,
        athlete=AthleteProfile(id=athlete_id, username=username),
    )


class StubProvider:
    """Stands in for StravaOAuth; codes must be registered up front."""

    def __init__(self):
        self.grants: dict[str, ProviderGrant] = {}
        self.failures: dict[str, Exception] = {}
        self.calls: list[str] = []

    def accept(self, code: str, grant: ProviderGrant) -> None:
        self.grants[code] = grant

    def fail(self, code: str, error: Exception) -> None:
        self.failures[code] = error

    async def exchange_code(self, code: str) -> ProviderGrant:
        self.calls.append(code)
        if code in self.failures:
            raise self.failures[code]
        if code not in self.grants:
            raise ProviderRejected("Bad Request", status_code=400)
        return self.grants[code]


# =============================================================================
# Test Isolation Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_settings_cache():
    """Reset settings cache before each test to ensure clean state."""
    from athlete_sessions.config import get_settings
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def database_path(tmp_path):
    return tmp_path / "sessions.db"


@pytest.fixture
def settings(database_path) -> Settings:
    return Settings(
        secret_key=TEST_SECRET_KEY,
        encryption_salt="test-salt",
        database_url=f"sqlite+aiosqlite:///{database_path}",
        strava_client_id="test-client-id",
        strava_client_secret="test-client-secret",
        database_create_tables=True,
        session_cookie_secure=False,  # TestClient talks plain http
    )


@pytest.fixture(scope="session")
def cipher() -> TokenCipher:
    """One key derivation for the whole run; PBKDF2 is deliberately slow."""
    return TokenCipher(TEST_SECRET_KEY, "test-salt")


@pytest_asyncio.fixture
async def database(settings):
    database = Database.from_settings(settings)
    await database.create_tables()
    yield database
    await database.drop_tables()
    await database.close()


@pytest.fixture
def store(database, cipher) -> CredentialStore:
    return CredentialStore(database, cipher)


@pytest.fixture
def provider() -> StubProvider:
    return StubProvider()


@pytest.fixture
def manager(provider, store) -> SessionManager:
    return SessionManager(provider, store)


@pytest.fixture
def count_rows(database):
    """Count the rows of a model's table."""

    async def _count(model) -> int:
        async with database.session() as db:
            result = await db.execute(select(func.count()).select_from(model))
            return result.scalar_one()

    return _count
