"""Encryption utilities for OAuth tokens.

Uses Fernet symmetric encryption for storing access and refresh tokens.

## Key Derivation

The encryption key is derived from the application secret using PBKDF2:
- Salt: Configurable, should be unique per deployment
- Iterations: 480,000 (OWASP recommendation for PBKDF2-HMAC-SHA256)
- Key length: 32 bytes (256 bits)

## Usage

```python
from athlete_sessions.database.encryption import TokenCipher

cipher = TokenCipher.from_settings(settings)

encrypted = cipher.encrypt("my-oauth-token")
decrypted = cipher.decrypt(encrypted)
```
"""

from __future__ import annotations

import base64
import logging

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from athlete_sessions.config import Settings

logger = logging.getLogger(__name__)

PBKDF2_ITERATIONS = 480_000


def _create_fernet(secret_key: str, salt: str) -> Fernet:
    """Create a Fernet cipher from the secret key and salt.

    Uses PBKDF2 to derive a proper encryption key from the secret.
    """
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=32,  # 256 bits for Fernet
        salt=salt.encode("utf-8"),
        iterations=PBKDF2_ITERATIONS,
    )

    key = base64.urlsafe_b64encode(kdf.derive(secret_key.encode("utf-8")))
    return Fernet(key)


class TokenCipher:
    """Encrypts tokens before storage and decrypts them after retrieval."""

    def __init__(self, secret_key: str, salt: str):
        self._fernet = _create_fernet(secret_key, salt)

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenCipher":
        return cls(settings.secret_key, settings.encryption_salt)

    def encrypt(self, plaintext: str) -> str:
        """Encrypt a token for secure storage.

        Args:
            plaintext: The token to encrypt

        Returns:
            Base64-encoded encrypted token
        """
        if not plaintext:
            return ""

        encrypted = self._fernet.encrypt(plaintext.encode("utf-8"))
        return encrypted.decode("utf-8")

    def decrypt(self, ciphertext: str) -> str:
        """Decrypt a stored token.

        Args:
            ciphertext: The encrypted token (base64-encoded)

        Returns:
            Decrypted plaintext token

        Raises:
            ValueError: If decryption fails (invalid token or wrong key)
        """
        if not ciphertext:
            return ""

        try:
            decrypted = self._fernet.decrypt(ciphertext.encode("utf-8"))
            return decrypted.decode("utf-8")
        except InvalidToken as e:
            logger.error("Failed to decrypt token: invalid token or key")
            raise ValueError("Failed to decrypt token") from e
