"""
Trade executor collaborator interface.

The executor builds, signs and sends the swap; this package only consumes
its result. Amounts in SwapResult are raw integer base units (lamports for
SOL, 10**-decimals of a token) as reported by the chain.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol, runtime_checkable

from solders.keypair import Keypair

SOL_MINT_ADDRESS = "So11111111111111111111111111111111111111112"
SOL_SYMBOL = "SOL"
SOL_DECIMALS = 9


@dataclass(frozen=True)
class SwapAsset:
    """One side of a swap. amount (whole units) is set on the input side only."""

    address: str
    symbol: str
    decimals: int
    amount: Decimal | None = None


@dataclass(frozen=True)
class SwapResult:
    success: bool
    input_amount_raw: int = 0
    output_amount_raw: int = 0
    tx_hash: str | None = None
    error: str | None = None

    @classmethod
    def failed(cls, error: str) -> "SwapResult":
        return cls(success=False, error=error)


def sol_asset(amount: Decimal | None = None) -> SwapAsset:
    return SwapAsset(address=SOL_MINT_ADDRESS, symbol=SOL_SYMBOL, decimals=SOL_DECIMALS, amount=amount)


def from_base_units(raw: int | str, decimals: int) -> Decimal:
    return Decimal(int(raw)) / (Decimal(10) ** int(decimals))


@runtime_checkable
class TradeExecutor(Protocol):
    async def execute_swap(
        self,
        input_asset: SwapAsset,
        output_asset: SwapAsset,
        signer: Keypair,
        priority_fee: int,
        *,
        slippage_bps: int,
    ) -> SwapResult:
        ...


class DisabledExecutor:
    """Executor used when no swap backend is configured: every swap fails cleanly."""

    def __init__(self, reason: str = "Swap execution is not configured for this agent.") -> None:
        self.reason = reason

    async def execute_swap(
        self,
        input_asset: SwapAsset,
        output_asset: SwapAsset,
        signer: Keypair,
        priority_fee: int,
        *,
        slippage_bps: int,
    ) -> SwapResult:
        return SwapResult.failed(self.reason)
