"""Wallet and address utilities (solders keypairs, base58 private keys)."""

from __future__ import annotations

import base58
from solders.keypair import Keypair
from solders.pubkey import Pubkey

from tradebot_agent.core.exceptions import WalletReconstructionError

SECRET_KEY_LENGTH = 64
MIN_ADDRESS_LENGTH = 32
MAX_ADDRESS_LENGTH = 44


def is_valid_address(address: str) -> bool:
    """Return True if address is a valid Solana Pubkey (base58)."""
    try:
        Pubkey.from_string(address.strip())
        return True
    except Exception:
        return False


def looks_like_address(text: str) -> bool:
    """Cheap length check used before treating free text as a token address."""
    value = (text or "").strip()
    return MIN_ADDRESS_LENGTH <= len(value) <= MAX_ADDRESS_LENGTH


def generate_keypair() -> Keypair:
    return Keypair()


def encode_private_key(keypair: Keypair) -> str:
    """Base58 of the 64-byte secret key (the durable wallet representation)."""
    return base58.b58encode(bytes(keypair)).decode("ascii")


def public_key_of(keypair: Keypair) -> str:
    return str(keypair.pubkey())


def keypair_from_private_key(private_key: str) -> Keypair:
    """
    Decode a base58 64-byte secret key into a Keypair.

    Raises WalletReconstructionError for non-base58 input, a wrong byte
    length, or bytes solders refuses.
    """
    raw = (private_key or "").strip()
    if not raw:
        raise WalletReconstructionError("Private key is empty.")
    try:
        secret = base58.b58decode(raw)
    except ValueError as e:
        raise WalletReconstructionError("Private key is not valid base58.") from e
    if len(secret) != SECRET_KEY_LENGTH:
        raise WalletReconstructionError(
            f"Private key must decode to {SECRET_KEY_LENGTH} bytes (got {len(secret)})."
        )
    try:
        return Keypair.from_bytes(secret)
    except Exception as e:
        raise WalletReconstructionError("Private key bytes do not form a valid keypair.") from e
