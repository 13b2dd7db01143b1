"""Encrypted token storage.

The token is kept as {iv, data} (base64) under one key, encrypted with
AES-256-GCM. The key is derived with PBKDF2 from a passphrase that ships
with the application, so this only keeps the token out of plain sight in
the file; it does not protect against anyone who can read this code.
"""

import base64
import logging
import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from repowatch.store.kv_store import KeyValueStore

TOKEN_KEY = "github_token"

KEY_MATERIAL = b"repowatch-at-rest-secret-material-v1"
KEY_SALT = b"repowatch-salt"
KEY_ITERATIONS = 100_000
IV_SIZE = 12

LOG = logging.getLogger("repowatch.store.credentials")

_key_cache: bytes | None = None


def _derive_key() -> bytes:
    global _key_cache
    if _key_cache is None:
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=32,
            salt=KEY_SALT,
            iterations=KEY_ITERATIONS,
        )
        _key_cache = kdf.derive(KEY_MATERIAL)
    return _key_cache


def encrypt(text: str) -> dict[str, str]:
    """Encrypt text with a fresh IV; returns {"iv": b64, "data": b64}."""
    iv = os.urandom(IV_SIZE)
    data = AESGCM(_derive_key()).encrypt(iv, text.encode("utf-8"), None)
    return {
        "iv": base64.b64encode(iv).decode("ascii"),
        "data": base64.b64encode(data).decode("ascii"),
    }


def decrypt(record: dict[str, str]) -> str:
    """Inverse of encrypt. Raises ValueError or InvalidTag on a bad record."""
    iv = base64.b64decode(record["iv"], validate=True)
    data = base64.b64decode(record["data"], validate=True)
    return AESGCM(_derive_key()).decrypt(iv, data, None).decode("utf-8")


class SecretStorage:
    """get/set/clear of the single GitHub token."""

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    def get_token(self) -> str | None:
        """Stored token, or None when absent or unreadable (logged)."""
        record = self._store.get(TOKEN_KEY)
        if not isinstance(record, dict) or not record.get("iv") or not record.get("data"):
            return None
        try:
            return decrypt(record)
        except (ValueError, KeyError, TypeError, InvalidTag) as e:
            LOG.error("Failed to decrypt stored token: %s", e.__class__.__name__)
            return None

    def set_token(self, token: str) -> None:
        self._store.set(TOKEN_KEY, encrypt(token))
        self._store.save()

    def clear_token(self) -> None:
        self._store.delete(TOKEN_KEY)
        self._store.save()
