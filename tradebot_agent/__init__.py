"""
Tradebot agent — per-user trading sessions for a Solana swap assistant.

Keeps each user's wallet, settings, trade ledger and pending conversation
input in an encrypted per-user vault, and derives holdings and
profit-and-loss from the ledger. Chat transport and on-chain execution are
collaborators injected from outside.
"""

__version__ = "0.1.0"
