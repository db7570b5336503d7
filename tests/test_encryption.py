"""Tests for the AES-GCM primitive and hashing helpers."""

import base64

import pytest
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from swish.core.config import settings
from swish.core.encryption import (
    AUTH_TAG_LENGTH,
    IV_LENGTH,
    DecryptionError,
    EncryptionKeyError,
    decrypt,
    encrypt,
    generate_encryption_key,
    hash_data,
    hash_matches,
)


class TestEncryptDecrypt:
    def test_round_trip(self) -> None:
        """Decrypting an encrypted value returns the original text."""
        plaintext = '{"cardNumber": "4242424242424242", "cardholderName": "Jordan Miles"}'

        assert decrypt(encrypt(plaintext)) == plaintext

    def test_round_trip_unicode(self) -> None:
        assert decrypt(encrypt("Nikola Jokić ✓")) == "Nikola Jokić ✓"

    def test_same_plaintext_gives_different_ciphertexts(self) -> None:
        """A fresh IV per call means no two ciphertexts repeat."""
        assert encrypt("4242424242424242") != encrypt("4242424242424242")

    def test_serialized_layout_is_iv_tag_ciphertext(self) -> None:
        """The blob is base64(iv || tag || ciphertext) and opens with the configured key."""
        plaintext = "layout check"
        combined = base64.b64decode(encrypt(plaintext))

        iv = combined[:IV_LENGTH]
        tag = combined[IV_LENGTH:IV_LENGTH + AUTH_TAG_LENGTH]
        ciphertext = combined[IV_LENGTH + AUTH_TAG_LENGTH:]
        key = bytes.fromhex(settings.AES_ENC_SECRET)

        assert len(ciphertext) == len(plaintext.encode("utf-8"))
        assert AESGCM(key).decrypt(iv, ciphertext + tag, None).decode("utf-8") == plaintext

    def test_tampered_ciphertext_is_rejected(self) -> None:
        combined = bytearray(base64.b64decode(encrypt("do not touch")))
        combined[-1] ^= 0x01
        tampered = base64.b64encode(bytes(combined)).decode("ascii")

        with pytest.raises(DecryptionError, match="Failed to decrypt data"):
            decrypt(tampered)

    def test_tampered_tag_is_rejected(self) -> None:
        combined = bytearray(base64.b64decode(encrypt("do not touch")))
        combined[IV_LENGTH] ^= 0x01
        tampered = base64.b64encode(bytes(combined)).decode("ascii")

        with pytest.raises(DecryptionError):
            decrypt(tampered)

    def test_wrong_key_is_rejected(self) -> None:
        blob = encrypt("secret")

        with pytest.raises(DecryptionError):
            decrypt(blob, secret=generate_encryption_key())

    @pytest.mark.parametrize("blob", ["not base64 at all!!", "", base64.b64encode(b"short").decode()])
    def test_malformed_input_is_rejected(self, blob: str) -> None:
        with pytest.raises(DecryptionError):
            decrypt(blob)

    def test_explicit_secret_round_trip(self) -> None:
        key = generate_encryption_key()

        assert decrypt(encrypt("explicit", secret=key), secret=key) == "explicit"


class TestKeyHandling:
    def test_missing_key(self) -> None:
        with pytest.raises(EncryptionKeyError):
            encrypt("x", secret="")

    def test_non_hex_key(self) -> None:
        with pytest.raises(EncryptionKeyError, match="hex"):
            encrypt("x", secret="z" * 64)

    def test_short_key(self) -> None:
        with pytest.raises(EncryptionKeyError, match="32 bytes"):
            encrypt("x", secret="ab" * 16)

    def test_generated_key_is_64_hex_chars(self) -> None:
        key = generate_encryption_key()

        assert len(key) == 64
        assert len(bytes.fromhex(key)) == 32
        assert key != generate_encryption_key()


class TestHashing:
    def test_hash_data_is_sha256_hex(self) -> None:
        assert hash_data("abc") == "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"

    def test_hash_data_is_deterministic(self) -> None:
        assert hash_data("4242424242424242") == hash_data("4242424242424242")
        assert hash_data("4242424242424242") != hash_data("4242424242424241")

    def test_hash_matches(self) -> None:
        stored = hash_data("123")

        assert hash_matches("123", stored)
        assert not hash_matches("124", stored)
        assert not hash_matches("123", None)
        assert not hash_matches("123", "")
