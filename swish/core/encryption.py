"""
Symmetric encryption and one-way hashing for card data at rest.

Ciphertexts are AES-256-GCM, serialized as ``base64(nonce || tag || data)``.
The key comes from ``AES_ENC_SECRET`` and is only ever read server-side.
"""

import base64
import binascii
import hashlib
import hmac
import secrets

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from swish.core.config import settings

IV_LENGTH = 16
AUTH_TAG_LENGTH = 16
KEY_LENGTH = 32


class EncryptionKeyError(RuntimeError):
    pass


class DecryptionError(Exception):
    """Raised for any ciphertext that cannot be authenticated and opened."""

    def __init__(self, message: str = "Failed to decrypt data"):
        super().__init__(message)


def _get_key(secret: str | None = None) -> bytes:
    secret = settings.AES_ENC_SECRET if secret is None else secret
    if not secret:
        raise EncryptionKeyError("AES_ENC_SECRET is not set")
    try:
        key = bytes.fromhex(secret)
    except ValueError as e:
        raise EncryptionKeyError("AES_ENC_SECRET must be hex encoded") from e
    if len(key) != KEY_LENGTH:
        raise EncryptionKeyError(
            f"AES_ENC_SECRET must be {KEY_LENGTH} bytes ({KEY_LENGTH * 2} hex characters)"
        )
    return key


def encrypt(plaintext: str, secret: str | None = None) -> str:
    aes = AESGCM(_get_key(secret))
    iv = secrets.token_bytes(IV_LENGTH)
    # AESGCM appends the tag to the ciphertext; store it in front instead
    sealed = aes.encrypt(iv, plaintext.encode("utf-8"), None)
    encrypted, tag = sealed[:-AUTH_TAG_LENGTH], sealed[-AUTH_TAG_LENGTH:]
    return base64.b64encode(iv + tag + encrypted).decode("ascii")


def decrypt(encrypted_data: str, secret: str | None = None) -> str:
    key = _get_key(secret)
    try:
        combined = base64.b64decode(encrypted_data, validate=True)
    except (binascii.Error, ValueError, TypeError) as e:
        raise DecryptionError() from e

    if len(combined) < IV_LENGTH + AUTH_TAG_LENGTH:
        raise DecryptionError()

    iv = combined[:IV_LENGTH]
    tag = combined[IV_LENGTH:IV_LENGTH + AUTH_TAG_LENGTH]
    encrypted = combined[IV_LENGTH + AUTH_TAG_LENGTH:]
    try:
        plaintext = AESGCM(key).decrypt(iv, encrypted + tag, None)
        return plaintext.decode("utf-8")
    except (InvalidTag, UnicodeDecodeError) as e:
        raise DecryptionError() from e


def generate_encryption_key() -> str:
    return secrets.token_hex(KEY_LENGTH)


def hash_data(data: str) -> str:
    return hashlib.sha256(data.encode("utf-8")).hexdigest()


def hash_matches(candidate: str, stored_hash: str | None) -> bool:
    if not stored_hash:
        return False
    return hmac.compare_digest(hash_data(candidate), stored_hash)


if __name__ == "__main__":
    print(generate_encryption_key())
