"""
Field-level encryption for stored secrets and agent API keys.

Values are encrypted with AES-256-GCM and stored as
base64(iv[16] | auth_tag[16] | ciphertext), which keeps them readable by
every service that shares ENCRYPTION_KEY.
"""

from __future__ import annotations

import base64
import logging
import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from ..domain.ports import IEncryptionService
from ..exceptions import ConfigurationError, DecryptionError

logger = logging.getLogger(__name__)

IV_LENGTH = 16
AUTH_TAG_LENGTH = 16
KEY_LENGTH = 32


def mask_secret(value: str) -> str:
    """Mask a secret for display.

    Examples:
        >>> mask_secret("sk-abc123xyz789")
        'sk-...789'
        >>> mask_secret("short")
        '***'
    """
    if len(value) <= 6:
        return "***"
    return f"{value[:3]}...{value[-3:]}"


class EncryptionService(IEncryptionService):
    """AES-256-GCM encryption keyed by a 64-character hex string.

    Usage:
        service = EncryptionService(os.environ["ENCRYPTION_KEY"])
        token = service.encrypt("sk-live-123")
        service.decrypt(token)  # "sk-live-123"
    """

    def __init__(self, key_hex: str):
        if not key_hex or len(key_hex) != KEY_LENGTH * 2:
            raise ConfigurationError(
                "ENCRYPTION_KEY must be a 64-character hex string (32 bytes)",
                missing_keys=["ENCRYPTION_KEY"],
            )
        try:
            self._key = bytes.fromhex(key_hex)
        except ValueError as e:
            raise ConfigurationError(
                "ENCRYPTION_KEY must be a 64-character hex string (32 bytes)",
                cause=e,
            )
        self._aead = AESGCM(self._key)

    def encrypt(self, plaintext: str) -> str:
        iv = os.urandom(IV_LENGTH)
        # AESGCM appends the tag to the ciphertext
        sealed = self._aead.encrypt(iv, plaintext.encode("utf-8"), None)
        ciphertext, tag = sealed[:-AUTH_TAG_LENGTH], sealed[-AUTH_TAG_LENGTH:]
        return base64.b64encode(iv + tag + ciphertext).decode("ascii")

    def decrypt(self, ciphertext: str) -> str:
        try:
            combined = base64.b64decode(ciphertext)
        except (ValueError, TypeError) as e:
            raise DecryptionError("Ciphertext is not valid base64", cause=e)

        if len(combined) < IV_LENGTH + AUTH_TAG_LENGTH:
            raise DecryptionError("Ciphertext is too short")

        iv = combined[:IV_LENGTH]
        tag = combined[IV_LENGTH:IV_LENGTH + AUTH_TAG_LENGTH]
        encrypted = combined[IV_LENGTH + AUTH_TAG_LENGTH:]

        try:
            plaintext = self._aead.decrypt(iv, encrypted + tag, None)
        except InvalidTag as e:
            raise DecryptionError("Ciphertext failed authentication", cause=e)
        return plaintext.decode("utf-8")

    def mask(self, secret: str) -> str:
        return mask_secret(secret)
