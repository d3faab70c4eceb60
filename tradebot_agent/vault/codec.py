"""
Vault codec: symmetric sealing of serialized user records.

Blob format is "<ivHex>:<cipherHex>" with a fresh random 12-byte IV per seal.
AES-256-GCM appends a 16-byte authentication tag to the ciphertext, so any
tampered byte, wrong key or truncated blob fails loudly in open() instead of
yielding garbage plaintext.
"""

from __future__ import annotations

import binascii
import secrets

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from tradebot_agent.core.exceptions import ConfigurationError, DecryptionError
from tradebot_agent.tradebot_logging import get_logger

logger = get_logger(__name__)

KEY_LENGTH = 32
IV_LENGTH = 12
TAG_LENGTH = 16
BLOB_SEPARATOR = ":"


class VaultCodec:
    """
    Seal/open byte payloads under one 256-bit key.

    insecure marks a codec built on the development fallback key; it logs a
    warning on construction and on every seal so the condition is never
    silent in the logs.
    """

    def __init__(self, key: bytes, *, insecure: bool = False) -> None:
        if not isinstance(key, (bytes, bytearray)) or len(key) != KEY_LENGTH:
            raise ConfigurationError(f"Vault key must be exactly {KEY_LENGTH} bytes (256 bits).")
        self._aead = AESGCM(bytes(key))
        self._insecure = insecure
        if insecure:
            logger.warning(
                "vault_insecure_key",
                message="Vault codec is using the development fallback key. Data is NOT secure!",
            )

    @property
    def insecure(self) -> bool:
        return self._insecure

    def seal(self, plaintext: bytes) -> str:
        """Encrypt plaintext under a fresh IV; return "<ivHex>:<cipherHex>"."""
        if self._insecure:
            logger.warning("vault_seal_insecure_key")
        iv = secrets.token_bytes(IV_LENGTH)
        ciphertext = self._aead.encrypt(iv, bytes(plaintext), None)
        return iv.hex() + BLOB_SEPARATOR + ciphertext.hex()

    def open(self, blob: str) -> bytes:
        """
        Decrypt a blob produced by seal().

        Raises DecryptionError when the blob has no separator, either half is
        not hex, the IV or ciphertext has an impossible length, or the
        authentication tag does not verify.
        """
        if not isinstance(blob, str):
            raise DecryptionError("Vault blob must be text.")
        iv_hex, sep, cipher_hex = blob.strip().partition(BLOB_SEPARATOR)
        if not sep:
            raise DecryptionError("Vault blob is missing the IV separator.")
        try:
            iv = bytes.fromhex(iv_hex)
            ciphertext = bytes.fromhex(cipher_hex)
        except (ValueError, binascii.Error) as e:
            raise DecryptionError("Vault blob is not valid hex.") from e
        if len(iv) != IV_LENGTH:
            raise DecryptionError(f"Vault IV must be {IV_LENGTH} bytes (got {len(iv)}).")
        if len(ciphertext) < TAG_LENGTH:
            raise DecryptionError("Vault ciphertext is truncated.")
        try:
            return self._aead.decrypt(iv, ciphertext, None)
        except InvalidTag as e:
            raise DecryptionError("Vault blob failed integrity check (tampered or wrong key).") from e


def seal(plaintext: bytes, key: bytes) -> str:
    """Module-level convenience: seal with a one-off codec."""
    return VaultCodec(key).seal(plaintext)


def open_blob(blob: str, key: bytes) -> bytes:
    """Module-level convenience: open with a one-off codec."""
    return VaultCodec(key).open(blob)
