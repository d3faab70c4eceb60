"""
Vault package — encryption at rest for user records.
"""

from tradebot_agent.vault.codec import VaultCodec, open_blob, seal

__all__ = ["VaultCodec", "open_blob", "seal"]
