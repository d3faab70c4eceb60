"""
Data models for token metadata returned by the price gateway.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any


def optional_decimal(value: Any) -> Decimal | None:
    """Decimal from a JSON number/string; None when absent or unparsable."""
    if value is None or isinstance(value, bool):
        return None
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    return result if result.is_finite() else None


@dataclass(frozen=True)
class TokenMetadata:
    """
    Snapshot of a token's metadata and market stats.

    price_usd is None when the provider has no price; callers must treat that
    as "unavailable", never as zero.
    """

    address: str
    symbol: str
    decimals: int
    name: str = "N/A"
    price_usd: Decimal | None = None
    liquidity: Decimal | None = None
    volume: Decimal | None = None
    market_cap: Decimal | None = None
    fdv: Decimal | None = None
    supply: Decimal | None = None
    verified: bool = False
    tags: tuple[str, ...] = field(default_factory=tuple)
    mint_authority_disabled: bool | None = None
    freeze_authority_disabled: bool | None = None
    holder_count: int | None = None
    launchpad: str | None = None
    logo_uri: str | None = None
    source: str = "Jupiter Search"

    @property
    def display_supply(self) -> Decimal | None:
        """Supply in whole units (provider reports raw units)."""
        if self.supply is None:
            return None
        return self.supply / (Decimal(10) ** self.decimals)

    def to_dict(self) -> dict[str, Any]:
        def _s(v: Decimal | None) -> str | None:
            return str(v) if v is not None else None

        return {
            "address": self.address,
            "name": self.name,
            "symbol": self.symbol,
            "decimals": self.decimals,
            "price_usd": _s(self.price_usd),
            "liquidity": _s(self.liquidity),
            "volume": _s(self.volume),
            "market_cap": _s(self.market_cap),
            "fdv": _s(self.fdv),
            "supply": _s(self.supply),
            "verified": self.verified,
            "tags": list(self.tags),
            "mint_authority_disabled": self.mint_authority_disabled,
            "freeze_authority_disabled": self.freeze_authority_disabled,
            "holder_count": self.holder_count,
            "launchpad": self.launchpad,
            "source": self.source,
        }
