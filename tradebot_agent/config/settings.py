"""
Application settings and environment configuration.

Responsibilities:
- Collect the env-derived values from config.env into one typed object.
- Fail at construction time when the vault key is unusable, so the process
  never starts in a mode that silently defeats confidentiality.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from tradebot_agent.config import env


@dataclass(frozen=True)
class Settings:
    """Resolved runtime settings. encryption_key is never logged or repr'd."""

    user_data_dir: Path
    encryption_key: bytes
    insecure_key: bool
    jupiter_search_url: str
    coingecko_price_url: str
    gateway_timeout_sec: float

    def __repr__(self) -> str:
        return (
            f"Settings(user_data_dir={str(self.user_data_dir)!r}, insecure_key={self.insecure_key}, "
            f"jupiter_search_url={self.jupiter_search_url!r}, "
            f"coingecko_price_url={self.coingecko_price_url!r}, "
            f"gateway_timeout_sec={self.gateway_timeout_sec})"
        )


def get_settings() -> Settings:
    """
    Return the current application settings.

    Raises:
        ConfigurationError: ENCRYPTION_KEY missing or malformed (and the
            insecure development fallback not enabled), or an invalid
            GATEWAY_TIMEOUT_SEC.
    """
    key, insecure = env.get_encryption_key()
    return Settings(
        user_data_dir=env.get_user_data_dir(),
        encryption_key=key,
        insecure_key=insecure,
        jupiter_search_url=env.get_jupiter_search_url(),
        coingecko_price_url=env.get_coingecko_price_url(),
        gateway_timeout_sec=env.get_gateway_timeout_sec(),
    )
