"""
Environment variable loading and validation for the tradebot agent.

- ENCRYPTION_KEY: 64-character hex string (256-bit vault key). Required.
- TRADEBOT_ALLOW_INSECURE_KEY: development-only opt-in for the fallback key.
- USER_DATA_DIR: directory holding one vault file per user (default: ./user_data)
- JUPITER_SEARCH_URL / COINGECKO_PRICE_URL: price gateway endpoints
- GATEWAY_TIMEOUT_SEC: HTTP timeout for gateway calls (default: 10)
- Loads .env from project root when available.
"""

from __future__ import annotations

import hashlib
import os
import re
from pathlib import Path

from dotenv import load_dotenv

from tradebot_agent.core.exceptions import ConfigurationError
from tradebot_agent.tradebot_logging import get_logger

logger = get_logger(__name__)

# Project root: config is tradebot_agent/config/, root is 2 levels up
_CONFIG_DIR = Path(__file__).resolve().parent
_PACKAGE_DIR = _CONFIG_DIR.parent
_ROOT = _PACKAGE_DIR.parent
_ENV_PATH = _ROOT / ".env"

ENCRYPTION_KEY_HEX_LENGTH = 64
DEFAULT_USER_DATA_DIR = "./user_data"
DEFAULT_JUPITER_SEARCH_URL = "https://lite-api.jup.ag/tokens/v2/search"
DEFAULT_COINGECKO_PRICE_URL = "https://api.coingecko.com/api/v3/simple/price"
DEFAULT_GATEWAY_TIMEOUT_SEC = 10.0

# Development fallback: sha256 of a fixed phrase. Never confidential.
INSECURE_FALLBACK_PHRASE = b"fallback_secret_key_for_dev_only"

_HEX_RE = re.compile(r"^[0-9a-fA-F]+$")
_TRUTHY = ("1", "true", "yes", "on")


def load_tradebot_env() -> None:
    """Load .env from project root. Safe to call multiple times."""
    load_dotenv(_ENV_PATH)


def allow_insecure_key() -> bool:
    """Return True when TRADEBOT_ALLOW_INSECURE_KEY opts into the fallback key."""
    load_tradebot_env()
    raw = (os.getenv("TRADEBOT_ALLOW_INSECURE_KEY") or "").strip().lower()
    return raw in _TRUTHY


def parse_encryption_key(raw: str | None) -> bytes:
    """
    Decode a 64-char hex key into 32 bytes.

    Raises ConfigurationError when the value is absent, has the wrong length
    or is not hexadecimal.
    """
    value = (raw or "").strip()
    if not value:
        raise ConfigurationError("ENCRYPTION_KEY is not set; it must be a 64-character hex string.")
    if len(value) != ENCRYPTION_KEY_HEX_LENGTH or not _HEX_RE.match(value):
        raise ConfigurationError(
            f"ENCRYPTION_KEY must be a {ENCRYPTION_KEY_HEX_LENGTH}-character hex string "
            f"(got {len(value)} characters)."
        )
    return bytes.fromhex(value)


def insecure_fallback_key() -> bytes:
    return hashlib.sha256(INSECURE_FALLBACK_PHRASE).digest()


def get_encryption_key() -> tuple[bytes, bool]:
    """
    Resolve the vault key from ENCRYPTION_KEY.

    Returns (key, insecure). insecure is True only when the key is invalid or
    missing and TRADEBOT_ALLOW_INSECURE_KEY is set; otherwise the
    ConfigurationError propagates and startup must abort.
    """
    load_tradebot_env()
    try:
        return parse_encryption_key(os.getenv("ENCRYPTION_KEY")), False
    except ConfigurationError as e:
        if not allow_insecure_key():
            raise
        logger.warning(
            "insecure_fallback_key_enabled",
            error=str(e),
            message="Using fallback encryption key. Vault data is NOT confidential.",
        )
        return insecure_fallback_key(), True


def get_user_data_dir() -> Path:
    """Return USER_DATA_DIR as a Path (not created here)."""
    load_tradebot_env()
    raw = (os.getenv("USER_DATA_DIR") or "").strip() or DEFAULT_USER_DATA_DIR
    return Path(raw)


def get_jupiter_search_url() -> str:
    load_tradebot_env()
    return (os.getenv("JUPITER_SEARCH_URL") or "").strip() or DEFAULT_JUPITER_SEARCH_URL


def get_coingecko_price_url() -> str:
    load_tradebot_env()
    return (os.getenv("COINGECKO_PRICE_URL") or "").strip() or DEFAULT_COINGECKO_PRICE_URL


def get_gateway_timeout_sec() -> float:
    """GATEWAY_TIMEOUT_SEC as a positive float; invalid values are a ConfigurationError."""
    load_tradebot_env()
    raw = (os.getenv("GATEWAY_TIMEOUT_SEC") or "").strip()
    if not raw:
        return DEFAULT_GATEWAY_TIMEOUT_SEC
    try:
        value = float(raw)
    except ValueError as e:
        raise ConfigurationError("GATEWAY_TIMEOUT_SEC must be a number of seconds.") from e
    if value <= 0:
        raise ConfigurationError("GATEWAY_TIMEOUT_SEC must be positive.")
    return value


def print_tradebot_startup(script_name: str) -> None:
    """Log data dir, key mode and gateway endpoints at script start. Never logs key material."""
    load_tradebot_env()
    key_set = bool((os.getenv("ENCRYPTION_KEY") or "").strip())
    logger.info(
        "tradebot_startup",
        script=script_name,
        user_data_dir=str(get_user_data_dir()),
        encryption_key="set" if key_set else "missing",
        insecure_key_allowed=allow_insecure_key(),
        jupiter_search_url=get_jupiter_search_url(),
        coingecko_price_url=get_coingecko_price_url(),
    )
