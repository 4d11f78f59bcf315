# backend/teamauth/core/crypto.py

"""
AES-256-CBC codec for user-supplied API keys stored in the database.

Stored format is ``hex(iv):hex(ciphertext)`` with a fresh 16-byte IV per value.
There is no authentication tag, so callers must only use it behind
authenticated, authorized requests.
"""

import binascii
import logging
import os

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from teamauth.core.config import decode_encryption_key

logger = logging.getLogger(__name__)

IV_LENGTH = 16
KEY_LENGTH = 32


class KeyCodec:
    def __init__(self, key: bytes):
        if len(key) != KEY_LENGTH:
            raise ValueError("AES-256 key must be 32 bytes")
        self._key = key

    @classmethod
    def from_secret(cls, secret: str) -> "KeyCodec":
        return cls(decode_encryption_key(secret))

    def encrypt(self, plaintext: str) -> str:
        iv = os.urandom(IV_LENGTH)
        padder = padding.PKCS7(algorithms.AES.block_size).padder()
        padded = padder.update(plaintext.encode("utf-8")) + padder.finalize()

        encryptor = Cipher(algorithms.AES(self._key), modes.CBC(iv)).encryptor()
        ciphertext = encryptor.update(padded) + encryptor.finalize()
        return f"{iv.hex()}:{ciphertext.hex()}"

    def decrypt(self, token: str) -> str:
        """Return the plaintext, or "" when the token is unusable for any reason."""
        if not token or ":" not in token:
            return ""

        iv_hex, _, ciphertext_hex = token.partition(":")
        try:
            iv = bytes.fromhex(iv_hex)
            ciphertext = bytes.fromhex(ciphertext_hex)
        except ValueError:
            return ""

        if len(iv) != IV_LENGTH or not ciphertext:
            return ""

        try:
            decryptor = Cipher(algorithms.AES(self._key), modes.CBC(iv)).decryptor()
            padded = decryptor.update(ciphertext) + decryptor.finalize()
            unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
            plaintext = unpadder.update(padded) + unpadder.finalize()
            return plaintext.decode("utf-8")
        except (ValueError, UnicodeDecodeError, binascii.Error) as e:
            logger.warning("API key decryption failed: %s", type(e).__name__)
            return ""
