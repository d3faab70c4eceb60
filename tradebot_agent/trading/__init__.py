"""
Trading package — swap executor interface and the service that records trades.
"""

from tradebot_agent.trading.executor import (
    SOL_DECIMALS,
    DisabledExecutor,
    SOL_MINT_ADDRESS,
    SwapAsset,
    SwapResult,
    TradeExecutor,
)
from tradebot_agent.trading.service import TradeOutcome, TradingService

__all__ = [
    "DisabledExecutor",
    "SOL_DECIMALS",
    "SOL_MINT_ADDRESS",
    "SwapAsset",
    "SwapResult",
    "TradeExecutor",
    "TradeOutcome",
    "TradingService",
]
