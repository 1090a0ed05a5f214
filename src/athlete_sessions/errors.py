"""Exceptions raised by the session subsystem.

```
AthleteSessionsError
├── ClientInputError            400
│   ├── MalformedSession
│   │   └── UnknownSession
│   └── MissingCredentials
├── LoginFailed                 401
├── ProviderError               (wrapped by LoginFailed)
│   ├── ProviderUnavailable
│   ├── ProviderRejected
│   └── ProviderResponseInvalid
└── StoreError
    ├── StoreUnavailable        503
    └── StoreInvariantViolation 500
```
"""

from __future__ import annotations


class AthleteSessionsError(Exception):
    """Base class for all errors raised by this package."""


class ClientInputError(AthleteSessionsError):
    """The request itself cannot be authenticated."""


class MalformedSession(ClientInputError):
    """The presented session cookie is not a valid session identifier."""


class UnknownSession(MalformedSession):
    """The presented session identifier does not exist in storage."""


class MissingCredentials(ClientInputError):
    """Neither a session cookie nor an authorization code was presented."""


class LoginFailed(AthleteSessionsError):
    """The authorization code could not be exchanged with the provider."""


class ProviderError(AthleteSessionsError):
    """Base class for token exchange failures."""


class ProviderUnavailable(ProviderError):
    """The provider could not be reached."""


class ProviderRejected(ProviderError):
    """The provider answered with a non-success status."""

    def __init__(self, reason: str, status_code: int | None = None):
        super().__init__(f"Provider rejected the request: {reason}")
        self.reason = reason
        self.status_code = status_code


class ProviderResponseInvalid(ProviderError):
    """The provider answered with a body we cannot interpret."""


class StoreError(AthleteSessionsError):
    """Base class for storage failures."""


class StoreUnavailable(StoreError):
    """The database could not be reached or the operation timed out."""


class StoreInvariantViolation(StoreError):
    """A constraint failed that the data model should make impossible."""
