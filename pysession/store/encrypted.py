"""
Encrypted session payloads.

A store is made "encrypted" by composition: the cipher's encrypt/decrypt
pair becomes the store's storage/parse transforms. No subclass is involved.
"""

import base64
import hashlib
from typing import Any, Optional

from cryptography.fernet import Fernet, InvalidToken

from pysession.exceptions import ConfigurationError, PayloadDecryptionError
from pysession.handlers.base import SessionHandler
from pysession.store.store import Store


def _derive_fernet_key(secret: str) -> bytes:
    digest = hashlib.sha256(secret.encode("utf-8")).digest()
    return base64.urlsafe_b64encode(digest)


class Encrypter:
    """
    Symmetric string cipher keyed by a secret.

    Uses Fernet (AES-128-CBC + HMAC-SHA256) with a key derived from the
    SHA-256 digest of the secret. Each call to ``encrypt`` yields a fresh
    token, so equal payloads never produce equal ciphertexts.
    """

    def __init__(self, secret: str):
        if not secret:
            raise ConfigurationError("An encryption secret is required")
        self._fernet = Fernet(_derive_fernet_key(secret))

    def encrypt(self, data: str) -> str:
        return self._fernet.encrypt(data.encode("utf-8")).decode("utf-8")

    def decrypt(self, token: str) -> str:
        try:
            return self._fernet.decrypt(token.encode("utf-8")).decode("utf-8")
        except (InvalidToken, ValueError, TypeError) as e:
            raise PayloadDecryptionError() from e


def encrypted_store(
    name: str,
    handler: SessionHandler,
    encrypter: Optional[Any] = None,
    secret: Optional[str] = None,
    session_id: Optional[str] = None,
    **store_kwargs
) -> Store:
    """
    Build a store whose payloads are encrypted at rest.

    Args:
        name: Session name
        handler: Storage handler
        encrypter: Any object with ``encrypt(str)``/``decrypt(str)``; derived
            from ``secret`` when omitted
        secret: Secret used to derive the default Encrypter
        session_id: Candidate session id
        **store_kwargs: Forwarded to Store (collector, timeout)

    Returns:
        Store: A store with encrypt/decrypt transforms

    Raises:
        ConfigurationError: If neither encrypter nor secret is given
    """
    if encrypter is None:
        if not secret:
            raise ConfigurationError("secret option required for encrypted sessions")
        encrypter = Encrypter(secret)

    return Store(
        name,
        handler,
        session_id,
        encode=encrypter.encrypt,
        decode=encrypter.decrypt,
        **store_kwargs
    )
