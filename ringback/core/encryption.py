"""Encryption helpers for shop credentials at rest."""

import base64
import hashlib
from functools import lru_cache

from cryptography.fernet import Fernet, InvalidToken

from ringback.core.config import settings


@lru_cache(maxsize=1)
def _get_fernet() -> Fernet:
    """Build the Fernet instance from ``settings.encryption_key``.

    The configured key is hashed with SHA-256 and base64-encoded to get a
    valid 32-byte Fernet key. Rotating ``encryption_key`` makes existing
    ciphertexts unreadable.
    """
    key_bytes = hashlib.sha256(settings.encryption_key.encode()).digest()
    return Fernet(base64.urlsafe_b64encode(key_bytes))


def encrypt_token(token: str) -> str:
    """Encrypt a Shopify access token for storage."""
    return _get_fernet().encrypt(token.encode()).decode()


def decrypt_token(encrypted: str) -> str:
    """Decrypt a stored Shopify access token."""
    return _get_fernet().decrypt(encrypted.encode()).decode()


def decrypt_token_or_none(encrypted: str | None) -> str | None:
    """Decrypt a stored token, returning None when it is missing or unreadable."""
    if not encrypted:
        return None
    try:
        return decrypt_token(encrypted)
    except InvalidToken:
        return None
