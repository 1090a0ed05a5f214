"""Database module for athlete sessions.

This module provides:
- SQLAlchemy async database connection
- Account and session models
- Encrypted storage for OAuth tokens
- The credential store used by the session manager
"""

from athlete_sessions.database.connection import Database
from athlete_sessions.database.encryption import TokenCipher
from athlete_sessions.database.models import Account, Base, LoginSession
from athlete_sessions.database.store import Credential, CredentialStore, SessionRecord

__all__ = [
    # Connection
    "Database",
    "TokenCipher",
    # Models
    "Base",
    "Account",
    "LoginSession",
    # Store
    "Credential",
    "CredentialStore",
    "SessionRecord",
]
