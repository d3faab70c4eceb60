"""
Data models for PnL results.

A PnL query yields exactly one of PnLReport, NoHoldings or PriceUnavailable.
All amounts are Decimal; to_dict() renders them as strings.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Union

from tradebot_agent.ledger.engine import Holdings

HUNDRED = Decimal(100)


@dataclass(frozen=True)
class UsdFigures:
    """USD view of a position, using the token and SOL USD prices at query time."""

    base_asset_usd_price: Decimal
    token_price_usd: Decimal
    net_usd_spent: Decimal
    current_value_usd: Decimal
    pnl_usd: Decimal

    def to_dict(self) -> dict[str, str]:
        return {
            "base_asset_usd_price": str(self.base_asset_usd_price),
            "token_price_usd": str(self.token_price_usd),
            "net_usd_spent": str(self.net_usd_spent),
            "current_value_usd": str(self.current_value_usd),
            "pnl_usd": str(self.pnl_usd),
        }


@dataclass(frozen=True)
class PnLReport:
    """
    Position and profit/loss in settlement-asset units (SOL).

    pnl_percent is None when net_settlement_spent <= 0: a percentage of a
    non-positive cost is undefined. pnl_absolute is always valid.
    """

    token_address: str
    net_held: Decimal
    net_settlement_spent: Decimal
    avg_cost_basis: Decimal
    current_price: Decimal
    current_value: Decimal
    pnl_absolute: Decimal
    pnl_percent: Decimal | None
    token_symbol: str | None = None
    token_decimals: int | None = None
    usd: UsdFigures | None = None

    @property
    def percent_defined(self) -> bool:
        return self.pnl_percent is not None

    @property
    def display_percent(self) -> Decimal:
        """
        Percentage for display. Falls back to the saturating 100 when the
        cost basis is degenerate and the position is in profit, else 0.
        """
        if self.pnl_percent is not None:
            return self.pnl_percent
        return HUNDRED if self.pnl_absolute > 0 else Decimal(0)

    def to_dict(self) -> dict[str, Any]:
        return {
            "token_address": self.token_address,
            "token_symbol": self.token_symbol,
            "token_decimals": self.token_decimals,
            "net_held": str(self.net_held),
            "net_settlement_spent": str(self.net_settlement_spent),
            "avg_cost_basis": str(self.avg_cost_basis),
            "current_price": str(self.current_price),
            "current_value": str(self.current_value),
            "pnl_absolute": str(self.pnl_absolute),
            "pnl_percent": str(self.pnl_percent) if self.pnl_percent is not None else None,
            "usd": self.usd.to_dict() if self.usd else None,
        }


@dataclass(frozen=True)
class NoHoldings:
    """Nothing (or only dust below working precision) is held for the token."""

    token_address: str
    reason: str = "no_holdings"
    holdings: Holdings | None = None


@dataclass(frozen=True)
class PriceUnavailable:
    """The gateway could not supply a usable price; no PnL is fabricated."""

    token_address: str
    reason: str
    holdings: Holdings | None = None


PnLResult = Union[PnLReport, NoHoldings, PriceUnavailable]
