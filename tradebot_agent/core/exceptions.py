"""
Application-level exceptions.

Responsibilities:
- Define domain exceptions for the vault, store, ledger, gateway and executor.
- Provide consistent error codes and messages for the agent's replies.

Every error except ConfigurationError is local and recoverable: the agent
converts it into a failed reply. ConfigurationError is fatal at startup.
"""

from __future__ import annotations

from typing import Any


class TradebotError(Exception):
    """Base class. code is a stable machine-readable identifier."""

    code = "tradebot_error"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(TradebotError):
    """Missing or invalid process configuration (e.g. vault key)."""

    code = "configuration_error"


class DecryptionError(TradebotError):
    """Vault blob malformed, truncated, tampered with, or sealed under another key."""

    code = "decryption_error"


class WalletReconstructionError(TradebotError):
    """Stored private key material does not decode into a valid signing keypair."""

    code = "wallet_reconstruction_error"


class ValidationError(TradebotError):
    """User-supplied input out of bounds or not a number."""

    code = "validation_error"


class InsufficientHoldingsError(TradebotError):
    """Sell amount exceeds net holdings or is below the token's smallest unit."""

    code = "insufficient_holdings"


class GatewayError(TradebotError):
    """Upstream metadata or price lookup failed."""

    code = "gateway_error"


class NotFound(GatewayError):
    """Token unknown to the metadata provider."""

    code = "not_found"


class ExecutionError(TradebotError):
    """Swap failed at the trade executor."""

    code = "execution_error"


class PersistenceError(TradebotError):
    """Reading or writing a user record failed."""

    code = "persistence_error"


class WalletMissingError(TradebotError):
    """Operation needs a wallet but the user has none (or it was invalidated)."""

    code = "wallet_missing"
