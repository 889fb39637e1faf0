"""Reversible symmetric encryption of detected originals.

Blob format (version 1)::

    v1$<iv: 32 lowercase hex chars>:<base64(ciphertext || hmac tag)>

The ciphertext is AES-256-CBC with PKCS7 padding under a fresh random IV.
The tag is HMAC-SHA256 over version, IV and ciphertext, so a wrong key or a
tampered blob is rejected before any plaintext is produced. Neither hex nor
base64 can contain the ``:`` separator.
"""

import base64
import binascii
import os
import re

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, hmac, padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from ..config.constants import MIN_ENCRYPTION_KEY_LENGTH
from ..core.exceptions import ConfigurationError, DecryptionError

BLOB_VERSION = "v1"
VERSION_PREFIX = f"{BLOB_VERSION}$"
SEPARATOR = ":"
IV_SIZE = 16
TAG_SIZE = 32
KDF_ITERATIONS = 100_000
KDF_SALT = b"secret-scrubber/blob/v1"

_IV_HEX = re.compile(r"[0-9a-f]{32}")


class ReversibleCipher:
    """AES-CBC + HMAC encryption bound to one passphrase."""

    __slots__ = ("_enc_key", "_mac_key")

    def __init__(self, key: str) -> None:
        """
        Initialize cipher.

        Args:
            key: Passphrase of at least 32 characters

        Raises:
            ConfigurationError: If the key is missing or too short
        """
        if not isinstance(key, str) or len(key) < MIN_ENCRYPTION_KEY_LENGTH:
            raise ConfigurationError(
                f"Encryption key must be at least {MIN_ENCRYPTION_KEY_LENGTH} "
                "characters long"
            )
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=64,
            salt=KDF_SALT,
            iterations=KDF_ITERATIONS,
        )
        derived = kdf.derive(key.encode("utf-8"))
        self._enc_key = derived[:32]
        self._mac_key = derived[32:]

    def _tag(self, iv: bytes, ciphertext: bytes) -> hmac.HMAC:
        h = hmac.HMAC(self._mac_key, hashes.SHA256())
        h.update(BLOB_VERSION.encode("ascii") + iv + ciphertext)
        return h

    def encrypt(self, plaintext: str) -> str:
        """
        Encrypt text under a fresh random IV.

        Args:
            plaintext: Any UTF-8 text

        Returns:
            Encrypted blob
        """
        iv = os.urandom(IV_SIZE)
        padder = padding.PKCS7(algorithms.AES.block_size).padder()
        padded = padder.update(plaintext.encode("utf-8")) + padder.finalize()

        encryptor = Cipher(algorithms.AES(self._enc_key), modes.CBC(iv)).encryptor()
        ciphertext = encryptor.update(padded) + encryptor.finalize()
        tag = self._tag(iv, ciphertext).finalize()

        body = base64.b64encode(ciphertext + tag).decode("ascii")
        return f"{VERSION_PREFIX}{iv.hex()}{SEPARATOR}{body}"

    def decrypt(self, blob: str) -> str:
        """
        Decrypt a blob produced by :meth:`encrypt` under the same key.

        Args:
            blob: Encrypted blob

        Returns:
            The original text

        Raises:
            DecryptionError: If the blob is malformed, was made with another
                key, or has been tampered with
        """
        if not isinstance(blob, str) or not blob.startswith(VERSION_PREFIX):
            raise DecryptionError("Invalid encrypted format")

        parts = blob[len(VERSION_PREFIX):].split(SEPARATOR)
        if len(parts) != 2 or not _IV_HEX.fullmatch(parts[0]):
            raise DecryptionError("Invalid encrypted format")

        iv = bytes.fromhex(parts[0])
        try:
            raw = base64.b64decode(parts[1], validate=True)
        except (binascii.Error, ValueError):
            raise DecryptionError("Invalid ciphertext encoding")

        ciphertext, tag = raw[:-TAG_SIZE], raw[-TAG_SIZE:]
        if len(raw) < TAG_SIZE + IV_SIZE or len(ciphertext) % IV_SIZE != 0:
            raise DecryptionError("Invalid ciphertext length")

        try:
            self._tag(iv, ciphertext).verify(tag)
        except InvalidSignature:
            raise DecryptionError("Authentication failed: wrong key or corrupted data")

        decryptor = Cipher(algorithms.AES(self._enc_key), modes.CBC(iv)).decryptor()
        padded = decryptor.update(ciphertext) + decryptor.finalize()
        try:
            unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
            data = unpadder.update(padded) + unpadder.finalize()
            return data.decode("utf-8")
        except (ValueError, UnicodeDecodeError):
            raise DecryptionError("Invalid padding or encoding")

    def is_decryptable(self, blob: str) -> bool:
        """True if the blob decrypts under this cipher's key."""
        try:
            self.decrypt(blob)
        except DecryptionError:
            return False
        return True
