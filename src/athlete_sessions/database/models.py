"""Database models for athlete sessions.

## Security Notes

- OAuth tokens are encrypted at rest using Fernet symmetric encryption
- The encryption key is derived from the application secret
- PostgreSQL should be configured with SSL and disk encryption

## Schema Overview

```
account
└── session (1:1) - credential + live session id, tokens encrypted
```

The unique constraint on `session.athlete_id` is what keeps a single
credential set and a single live session per account. Writes go through
`INSERT ... ON CONFLICT` statements in `athlete_sessions.database.store`.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import (
    BigInteger,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    Uuid,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all database models."""


class Account(Base):
    """Athlete account.

    The primary key is the athlete id issued by Strava. Rows are created on
    first login and never deleted by this service.
    """

    __tablename__ = "account"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)
    username: Mapped[str | None] = mapped_column(String(255))

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<Account {self.id}>"


class LoginSession(Base):
    """Live OAuth credential and session identifier for one account.

    Tokens are encrypted at rest. The encryption happens in the store,
    not at the database level, to allow for key rotation.
    """

    __tablename__ = "session"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    uuid: Mapped[uuid.UUID] = mapped_column(Uuid, unique=True, nullable=False)
    athlete_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("account.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )

    # Tokens (encrypted)
    refresh_token: Mapped[str] = mapped_column(Text, nullable=False)
    access_token: Mapped[str] = mapped_column(Text, nullable=False)
    access_expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    def __repr__(self) -> str:
        return f"<LoginSession athlete_id={self.athlete_id}>"
