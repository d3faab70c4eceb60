"""
Trading service: validate a buy/sell, run it through the executor, record it.

Responsibilities:
- Resolve wallet, settings and token metadata for the user.
- Check sells against net holdings from the ledger and the token's smallest unit.
- Append exactly one TradeEvent per successful swap; nothing on failure.

Errors raised: WalletMissingError, ValidationError, InsufficientHoldingsError,
GatewayError/NotFound, ExecutionError, PersistenceError.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_DOWN, Decimal
from typing import Any

from tradebot_agent.core.exceptions import (
    ExecutionError,
    InsufficientHoldingsError,
    PersistenceError,
    ValidationError,
    WalletMissingError,
)
from tradebot_agent.gateway.base import PriceGateway
from tradebot_agent.gateway.models import TokenMetadata
from tradebot_agent.ledger.engine import Holdings, Ledger, summarize
from tradebot_agent.store.models import TradeEvent, TradeKind, UserRecord
from tradebot_agent.store.record_store import RecordStore
from tradebot_agent.trading.executor import (
    SOL_DECIMALS,
    SwapAsset,
    SwapResult,
    TradeExecutor,
    from_base_units,
    sol_asset,
)
from tradebot_agent.tradebot_logging import get_logger
from tradebot_agent.utils.inputs import parse_positive_amount

logger = get_logger(__name__)

BUY_PRESETS_SOL = (Decimal("0.01"), Decimal("0.05"), Decimal("0.1"))
SELL_PRESETS_PERCENT = (Decimal(25), Decimal(50), Decimal(100))
MAX_SELL_PERCENT = Decimal(100)
NO_WALLET_TEXT = "You do not have a wallet set up. Please use /start to create or import your wallet."


@dataclass(frozen=True)
class TradeOutcome:
    event: TradeEvent
    tx_hash: str | None


def min_unit(decimals: int) -> Decimal:
    return Decimal(1).scaleb(-int(decimals))


class TradingService:
    def __init__(
        self,
        store: RecordStore,
        ledger: Ledger,
        gateway: PriceGateway,
        executor: TradeExecutor,
    ) -> None:
        self._store = store
        self._ledger = ledger
        self._gateway = gateway
        self._executor = executor

    def _wallet_record(self, user_id: Any) -> UserRecord:
        record = self._store.load(user_id)
        if record.wallet is None:
            raise WalletMissingError(NO_WALLET_TEXT)
        return record

    async def _swap(
        self,
        record: UserRecord,
        input_asset: SwapAsset,
        output_asset: SwapAsset,
        slippage_bps: int,
    ) -> SwapResult:
        if record.wallet is None:
            raise WalletMissingError(NO_WALLET_TEXT)
        try:
            result = await self._executor.execute_swap(
                input_asset,
                output_asset,
                record.wallet.keypair,
                record.settings.priority_fee,
                slippage_bps=slippage_bps,
            )
        except Exception as e:
            raise ExecutionError(f"Swap failed: {e}") from e
        if not result.success:
            raise ExecutionError(result.error or "Swap failed for an unknown reason.")
        return result

    def _record(self, user_id: Any, event: TradeEvent, tx_hash: str | None) -> TradeOutcome:
        if not self._ledger.append(user_id, event):
            raise PersistenceError(
                "The swap went through but could not be saved to your trade history.",
                details={"tx_hash": tx_hash},
            )
        return TradeOutcome(event=event, tx_hash=tx_hash)

    async def buy(self, user_id: Any, token_address: str, sol_amount: Decimal | str) -> TradeOutcome:
        """Spend sol_amount SOL on token_address."""
        amount = sol_amount if isinstance(sol_amount, Decimal) else parse_positive_amount(str(sol_amount))
        if amount <= 0:
            raise ValidationError("Amount must be positive.")
        record = self._wallet_record(user_id)
        metadata = await self._gateway.get_token_metadata(token_address)
        result = await self._swap(
            record,
            sol_asset(amount),
            SwapAsset(address=token_address, symbol=metadata.symbol, decimals=metadata.decimals),
            record.settings.buy_slippage_bps,
        )
        event = TradeEvent.create(
            TradeKind.BUY,
            token_address=token_address,
            token_symbol=metadata.symbol,
            token_decimals=metadata.decimals,
            counter_asset_amount=from_base_units(result.input_amount_raw, SOL_DECIMALS),
            token_amount=from_base_units(result.output_amount_raw, metadata.decimals),
        )
        logger.info(
            "trade_buy_executed",
            user_id=str(user_id),
            token_address=token_address,
            sol_spent=str(event.counter_asset_amount),
            tx_hash=result.tx_hash,
        )
        return self._record(user_id, event, result.tx_hash)

    def _held(self, record: UserRecord, token_address: str) -> Holdings:
        holdings = summarize(record.transactions, token_address)
        if not holdings.is_held:
            raise InsufficientHoldingsError(f"You don't hold any {token_address[:8]}... tokens.")
        return holdings

    async def _sell(
        self,
        user_id: Any,
        record: UserRecord,
        metadata: TokenMetadata,
        amount: Decimal,
    ) -> TradeOutcome:
        result = await self._swap(
            record,
            SwapAsset(
                address=metadata.address,
                symbol=metadata.symbol,
                decimals=metadata.decimals,
                amount=amount,
            ),
            sol_asset(),
            record.settings.sell_slippage_bps,
        )
        event = TradeEvent.create(
            TradeKind.SELL,
            token_address=metadata.address,
            token_symbol=metadata.symbol,
            token_decimals=metadata.decimals,
            counter_asset_amount=from_base_units(result.output_amount_raw, SOL_DECIMALS),
            token_amount=from_base_units(result.input_amount_raw, metadata.decimals),
        )
        logger.info(
            "trade_sell_executed",
            user_id=str(user_id),
            token_address=metadata.address,
            sol_received=str(event.counter_asset_amount),
            tx_hash=result.tx_hash,
        )
        return self._record(user_id, event, result.tx_hash)

    def _checked_sell_amount(self, amount: Decimal, holdings: Holdings, metadata: TokenMetadata) -> Decimal:
        unit = min_unit(metadata.decimals)
        if amount > holdings.net_held:
            raise InsufficientHoldingsError(
                f"Insufficient token balance. You have {holdings.net_held.normalize()} {metadata.symbol}."
            )
        truncated = amount.quantize(unit, rounding=ROUND_DOWN)
        if truncated < unit:
            raise InsufficientHoldingsError(
                f"The amount ({amount.normalize()} {metadata.symbol}) is too small to sell."
            )
        return truncated

    async def sell_percent(self, user_id: Any, token_address: str, percent: Decimal | str) -> TradeOutcome:
        """Sell percent (0 < p <= 100) of the net holdings recorded in the ledger."""
        pct = percent if isinstance(percent, Decimal) else parse_positive_amount(str(percent), "Percentage")
        if pct <= 0 or pct > MAX_SELL_PERCENT:
            raise ValidationError("Sell percentage must be greater than 0 and at most 100.")
        record = self._wallet_record(user_id)
        holdings = self._held(record, token_address)
        metadata = await self._gateway.get_token_metadata(token_address)
        amount = self._checked_sell_amount(holdings.net_held * pct / MAX_SELL_PERCENT, holdings, metadata)
        return await self._sell(user_id, record, metadata, amount)

    async def sell_amount(self, user_id: Any, token_address: str, amount: Decimal | str) -> TradeOutcome:
        """Sell an explicit token amount (whole units)."""
        value = amount if isinstance(amount, Decimal) else parse_positive_amount(str(amount))
        if value <= 0:
            raise ValidationError("Amount must be positive.")
        record = self._wallet_record(user_id)
        holdings = self._held(record, token_address)
        metadata = await self._gateway.get_token_metadata(token_address)
        checked = self._checked_sell_amount(value, holdings, metadata)
        return await self._sell(user_id, record, metadata, checked)
