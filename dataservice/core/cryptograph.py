"""Password decryption for connection strings.

Connection strings carry the service account password encrypted with the
deployment's key. Decryption is delegated to the Fernet recipe of the
``cryptography`` package; keys are urlsafe base64 Fernet keys.
"""
from __future__ import annotations
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken

from .exceptions import ValidationError


class FernetCryptograph:
    """Encrypt/decrypt short secrets with a Fernet key.

    Usage:
        crypto = FernetCryptograph(default_key=settings.encryption_key)
        password = crypto.decrypt(info.password, info.encryption_key)
    """

    def __init__(self, default_key: str = ""):
        self.default_key = default_key

    def _fernet(self, key: Optional[str]) -> Fernet:
        key = key or self.default_key
        if not key:
            raise ValidationError("encryption key must be configured")
        try:
            return Fernet(key.encode() if isinstance(key, str) else key)
        except (ValueError, TypeError) as exc:
            raise ValidationError(f"invalid encryption key: {exc}") from exc

    def encrypt(self, text: str, key: Optional[str] = None) -> str:
        return self._fernet(key).encrypt(text.encode()).decode()

    def decrypt(self, text: str, key: Optional[str] = None) -> str:
        """Decrypt ``text`` with ``key``, or with the default key when omitted.

        Raises:
            ValidationError: If the key is missing/malformed or the token is invalid
        """
        try:
            return self._fernet(key).decrypt(text.encode()).decode()
        except InvalidToken as exc:
            raise ValidationError("password could not be decrypted") from exc
