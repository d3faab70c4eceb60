"""
Core cross-cutting definitions: the exception taxonomy shared by the vault,
store, ledger, gateway, executor and agent layers.
"""

from tradebot_agent.core.exceptions import (
    ConfigurationError,
    DecryptionError,
    ExecutionError,
    GatewayError,
    InsufficientHoldingsError,
    NotFound,
    PersistenceError,
    TradebotError,
    ValidationError,
    WalletMissingError,
    WalletReconstructionError,
)

__all__ = [
    "ConfigurationError",
    "DecryptionError",
    "ExecutionError",
    "GatewayError",
    "InsufficientHoldingsError",
    "NotFound",
    "PersistenceError",
    "TradebotError",
    "ValidationError",
    "WalletMissingError",
    "WalletReconstructionError",
]
