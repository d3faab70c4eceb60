"""
PnL package — cost basis and profit/loss derived from the ledger.
"""

from tradebot_agent.pnl.engine import PnLService, compute_pnl, pnl_from_holdings
from tradebot_agent.pnl.models import (
    NoHoldings,
    PnLReport,
    PnLResult,
    PriceUnavailable,
    UsdFigures,
)

__all__ = [
    "NoHoldings",
    "PnLReport",
    "PnLResult",
    "PnLService",
    "PriceUnavailable",
    "UsdFigures",
    "compute_pnl",
    "pnl_from_holdings",
]
