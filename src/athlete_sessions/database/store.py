"""Credential and session storage.

All writes are single `INSERT ... ON CONFLICT` / `UPDATE` / `DELETE`
statements; nothing reads a row in order to decide how to write it. A login is
recorded in one transaction:

1. `account`: insert, ignore if the athlete already exists
2. `session`: insert the credential, or overwrite tokens and `created_at`
   for the existing row keyed by `athlete_id`
3. `session`: replace the session id with a freshly minted one

Concurrent logins for the same athlete serialize on the `athlete_id` row
lock; the last one to commit wins and exactly one row remains.
"""

from __future__ import annotations

import logging
import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import AsyncGenerator

from sqlalchemy import delete, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import DBAPIError, IntegrityError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from athlete_sessions.database.connection import Database
from athlete_sessions.database.encryption import TokenCipher
from athlete_sessions.database.models import Account, LoginSession
from athlete_sessions.errors import StoreInvariantViolation, StoreUnavailable

logger = logging.getLogger(__name__)

account_table = Account.__table__
session_table = LoginSession.__table__

_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


@dataclass(frozen=True)
class Credential:
    """The live OAuth grant for one account (decrypted)."""

    account_id: int
    access_token: str
    refresh_token: str
    access_expires_at: datetime


@dataclass(frozen=True)
class SessionRecord:
    """A live session as stored."""

    session_id: uuid.UUID
    account_id: int
    created_at: datetime | None


def _utc(value: datetime | None) -> datetime | None:
    """Normalize to aware UTC; SQLite hands back naive values."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class CredentialStore:
    """Durable mapping of athletes to credentials and session ids."""

    def __init__(self, database: Database, cipher: TokenCipher):
        self.database = database
        self.cipher = cipher

        dialect = database.dialect_name
        if dialect not in _INSERTS:
            raise RuntimeError(f"Unsupported database dialect: {dialect}")
        self._insert = _INSERTS[dialect]

    @asynccontextmanager
    async def _guard(self) -> AsyncGenerator[None, None]:
        """Translate driver failures into store errors."""
        try:
            yield
        except IntegrityError as e:
            logger.error(f"Store invariant violated: {e.orig!r}")
            raise StoreInvariantViolation(str(e.orig)) from e
        except (OperationalError, InterfaceError, OSError, TimeoutError) as e:
            logger.error(f"Store unavailable: {e!r}")
            raise StoreUnavailable("Database unavailable") from e
        except DBAPIError as e:
            logger.error(f"Store rejected the statement: {e.orig!r}")
            raise StoreInvariantViolation(str(e.orig)) from e

    async def upsert_account_and_credential(
        self,
        db: AsyncSession,
        account_id: int,
        display_name: str | None,
        access_token: str,
        refresh_token: str,
        access_expires_at: datetime,
    ) -> Credential:
        """Create the account if absent and insert or replace its credential.

        Runs inside the caller's transaction.
        """
        now = datetime.now(timezone.utc)
        expires_at = _utc(access_expires_at)

        account_stmt = (
            self._insert(account_table)
            .values(id=account_id, username=display_name, created_at=now, updated_at=now)
            .on_conflict_do_nothing(index_elements=[account_table.c.id])
        )
        await db.execute(account_stmt)

        credential_stmt = self._insert(session_table).values(
            uuid=uuid.uuid4(),
            athlete_id=account_id,
            access_token=self.cipher.encrypt(access_token),
            refresh_token=self.cipher.encrypt(refresh_token),
            access_expires_at=expires_at,
            created_at=now,
        )
        credential_stmt = credential_stmt.on_conflict_do_update(
            index_elements=[session_table.c.athlete_id],
            set_={
                "access_token": credential_stmt.excluded.access_token,
                "refresh_token": credential_stmt.excluded.refresh_token,
                "access_expires_at": credential_stmt.excluded.access_expires_at,
                "created_at": credential_stmt.excluded.created_at,
            },
        )
        await db.execute(credential_stmt)

        return Credential(
            account_id=account_id,
            access_token=access_token,
            refresh_token=refresh_token,
            access_expires_at=expires_at,
        )

    async def create_or_replace_session(
        self, db: AsyncSession, account_id: int
    ) -> uuid.UUID:
        """Mint a new session id for the account, superseding any previous one.

        Runs inside the caller's transaction. The account must already hold a
        credential.
        """
        session_id = uuid.uuid4()

        result = await db.execute(
            update(session_table)
            .where(session_table.c.athlete_id == account_id)
            .values(uuid=session_id, created_at=datetime.now(timezone.utc))
        )
        if result.rowcount != 1:
            raise StoreInvariantViolation(
                f"Expected one credential row for athlete {account_id}, "
                f"found {result.rowcount}"
            )

        return session_id

    async def record_login(
        self,
        account_id: int,
        display_name: str | None,
        access_token: str,
        refresh_token: str,
        access_expires_at: datetime,
    ) -> tuple[Credential, uuid.UUID]:
        """Upsert account and credential and mint a session in one transaction."""
        async with self._guard():
            async with self.database.transaction() as db:
                credential = await self.upsert_account_and_credential(
                    db,
                    account_id,
                    display_name,
                    access_token,
                    refresh_token,
                    access_expires_at,
                )
                session_id = await self.create_or_replace_session(db, account_id)

        logger.info(f"Recorded login for athlete {account_id}")
        return credential, session_id

    async def delete_session(self, session_id: uuid.UUID) -> bool:
        """Delete a session. Returns False if it did not exist."""
        async with self._guard():
            async with self.database.transaction() as db:
                result = await db.execute(
                    delete(session_table).where(session_table.c.uuid == session_id)
                )

        return result.rowcount > 0

    async def get_session(self, session_id: uuid.UUID) -> SessionRecord | None:
        async with self._guard():
            async with self.database.session() as db:
                result = await db.execute(
                    select(
                        session_table.c.uuid,
                        session_table.c.athlete_id,
                        session_table.c.created_at,
                    ).where(session_table.c.uuid == session_id)
                )
                row = result.one_or_none()

        if row is None:
            return None

        return SessionRecord(
            session_id=row.uuid,
            account_id=row.athlete_id,
            created_at=_utc(row.created_at),
        )

    async def get_credential(self, account_id: int) -> Credential | None:
        async with self._guard():
            async with self.database.session() as db:
                result = await db.execute(
                    select(
                        session_table.c.access_token,
                        session_table.c.refresh_token,
                        session_table.c.access_expires_at,
                    ).where(session_table.c.athlete_id == account_id)
                )
                row = result.one_or_none()

        if row is None:
            return None

        return Credential(
            account_id=account_id,
            access_token=self.cipher.decrypt(row.access_token),
            refresh_token=self.cipher.decrypt(row.refresh_token),
            access_expires_at=_utc(row.access_expires_at),
        )
