"""Security utilities: field-level encryption and secret masking."""

from .encryption import DecryptionError, EncryptionService, mask_secret

__all__ = ["DecryptionError", "EncryptionService", "mask_secret"]
