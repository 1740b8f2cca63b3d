"""Payload encryption for the confidentiality layer.

Message contents and item values are encrypted with AES-256-GCM
authenticated encryption before they reach a storage tier.

Security Properties:
- 256-bit key derived as SHA-256 of the configured key string
- Fresh 96-bit random nonce per call, so equal plaintexts encrypt differently
- 128-bit authentication tag (tampering is detected on decrypt)

Wire format (a single ASCII string that any tier can store as text)::

    base64( nonce[12] || ciphertext || tag[16] )

Usage:
    >>> cipher = PayloadCipher("a" * 32)
    >>> token = cipher.encrypt({"v": 1})
    >>> cipher.decrypt(token)
    {'v': 1}
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import json
import logging
import secrets
from typing import Any

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from ..config.models import MIN_ENCRYPTION_KEY_LENGTH
from ..exceptions import DecryptionError, EncryptionConfigError, EncryptionError

logger = logging.getLogger(__name__)

# Constants
NONCE_SIZE_BYTES = 12  # 96 bits for GCM
TAG_SIZE_BYTES = 16  # 128-bit authentication tag


class PayloadCipher:
    """Encrypts JSON-serialisable payloads with a key string.

    Attributes:
        algorithm: Algorithm identifier, for logging and diagnostics.
    """

    algorithm = "AES-256-GCM"

    def __init__(self, encryption_key: str | None) -> None:
        """
        Args:
            encryption_key: Key material, at least 32 characters.

        Raises:
            EncryptionConfigError: If the key is missing or too short.
        """
        if not encryption_key or len(encryption_key) < MIN_ENCRYPTION_KEY_LENGTH:
            raise EncryptionConfigError(
                f"Encryption key must be at least {MIN_ENCRYPTION_KEY_LENGTH} characters long"
            )
        key = hashlib.sha256(encryption_key.encode("utf-8")).digest()
        self._aesgcm = AESGCM(key)

    def encrypt(self, data: Any) -> str:
        """Serialize ``data`` to JSON and encrypt it.

        Returns:
            Base64 token holding nonce, ciphertext and tag.

        Raises:
            EncryptionError: If the payload is not JSON-serialisable.
        """
        try:
            plaintext = json.dumps(data).encode("utf-8")
        except (TypeError, ValueError) as e:
            raise EncryptionError(f"Encryption failed: payload is not JSON-serialisable: {e}") from e

        nonce = secrets.token_bytes(NONCE_SIZE_BYTES)
        ciphertext = self._aesgcm.encrypt(nonce, plaintext, None)
        return base64.b64encode(nonce + ciphertext).decode("ascii")

    def decrypt(self, token: str) -> Any:
        """Decrypt a token produced by :meth:`encrypt`.

        Raises:
            DecryptionError: If the token is malformed, was produced with a
                different key or has been tampered with.
        """
        if not isinstance(token, str):
            raise DecryptionError(f"Decryption failed: expected str token, got {type(token).__name__}")
        try:
            raw = base64.b64decode(token.encode("ascii"), validate=True)
        except (binascii.Error, UnicodeEncodeError) as e:
            raise DecryptionError(f"Decryption failed: invalid token encoding: {e}") from e
        if len(raw) < NONCE_SIZE_BYTES + TAG_SIZE_BYTES:
            raise DecryptionError("Decryption failed: token too short")

        nonce, ciphertext = raw[:NONCE_SIZE_BYTES], raw[NONCE_SIZE_BYTES:]
        try:
            plaintext = self._aesgcm.decrypt(nonce, ciphertext, None)
        except InvalidTag as e:
            raise DecryptionError("Decryption failed: authentication tag mismatch") from e
        return json.loads(plaintext.decode("utf-8"))
