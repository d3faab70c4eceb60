"""
PnL engine: cost basis, position value and profit/loss from a ledger slice.

compute_pnl() is pure and deterministic: same events and price, same
report. PnLService wires it to the ledger and the price gateway and is the
only place a price is fetched; it never writes to the store.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Sequence

from tradebot_agent.core.exceptions import GatewayError, ValidationError
from tradebot_agent.gateway.base import PriceGateway
from tradebot_agent.ledger.engine import Holdings, Ledger, summarize
from tradebot_agent.pnl.models import (
    HUNDRED,
    NoHoldings,
    PnLReport,
    PnLResult,
    PriceUnavailable,
    UsdFigures,
)
from tradebot_agent.store.models import TradeEvent
from tradebot_agent.tradebot_logging import get_logger

logger = get_logger(__name__)

# Net holdings with magnitude below this are dust: treated as nothing held.
HOLDINGS_EPSILON = Decimal("1e-18")


def _require_price(price: Any, name: str) -> Decimal:
    if isinstance(price, float) or isinstance(price, bool):
        raise ValidationError(f"{name} must be a Decimal, not {type(price).__name__}.")
    try:
        value = Decimal(price) if not isinstance(price, Decimal) else price
    except (ValueError, ArithmeticError) as e:
        raise ValidationError(f"{name} must be a number.") from e
    if not value.is_finite() or value < 0:
        raise ValidationError(f"{name} must be a finite, non-negative number.")
    return value


def pnl_from_holdings(holdings: Holdings, current_price: Any) -> PnLReport | NoHoldings:
    """Core arithmetic on already-summed holdings."""
    price = _require_price(current_price, "current_price")
    net_held = holdings.net_held
    if net_held <= 0 or abs(net_held) < HOLDINGS_EPSILON:
        return NoHoldings(token_address=holdings.token_address, holdings=holdings)

    net_spent = holdings.net_settlement_spent
    current_value = net_held * price
    pnl_absolute = current_value - net_spent
    pnl_percent: Decimal | None = None
    if net_spent > 0:
        pnl_percent = pnl_absolute / net_spent * HUNDRED

    return PnLReport(
        token_address=holdings.token_address,
        net_held=net_held,
        net_settlement_spent=net_spent,
        avg_cost_basis=net_spent / net_held,
        current_price=price,
        current_value=current_value,
        pnl_absolute=pnl_absolute,
        pnl_percent=pnl_percent,
        token_symbol=holdings.token_symbol,
        token_decimals=holdings.token_decimals,
    )


def compute_pnl(
    events: Sequence[TradeEvent],
    current_price: Any,
    *,
    token_address: str | None = None,
) -> PnLReport | NoHoldings:
    """
    PnL for one token from its ledger slice and a price in SOL per token.

    token_address defaults to the single token present in events; a slice
    mixing tokens without an explicit token_address is a ValidationError.
    """
    events = list(events)
    if token_address is None:
        addresses = {tx.token_address for tx in events}
        if not addresses:
            return NoHoldings(token_address="", reason="no_transactions")
        if len(addresses) > 1:
            raise ValidationError("Ledger slice holds several tokens; pass token_address.")
        token_address = addresses.pop()
    return pnl_from_holdings(summarize(events, token_address), current_price)


class PnLService:
    """Ledger + gateway -> PnLResult for one user and token."""

    def __init__(self, ledger: Ledger, gateway: PriceGateway) -> None:
        self._ledger = ledger
        self._gateway = gateway

    async def pnl_for(self, user_id: Any, token_address: str) -> PnLResult:
        events = self._ledger.events(user_id, token_address)
        if not events:
            return NoHoldings(token_address=token_address, reason="no_transactions")
        holdings = summarize(events, token_address)
        if not holdings.is_held:
            return NoHoldings(token_address=token_address, holdings=holdings)

        try:
            metadata = await self._gateway.get_token_metadata(token_address)
            base_usd = await self._gateway.get_base_asset_usd_price()
        except GatewayError as e:
            logger.warning("pnl_price_unavailable", user_id=str(user_id), token_address=token_address, error=str(e))
            return PriceUnavailable(token_address=token_address, reason=str(e), holdings=holdings)

        token_usd = metadata.price_usd
        if token_usd is None or token_usd <= 0 or base_usd <= 0:
            return PriceUnavailable(
                token_address=token_address,
                reason="No current price is available for this token.",
                holdings=holdings,
            )

        price_in_base = token_usd / base_usd
        result = pnl_from_holdings(holdings, price_in_base)
        if isinstance(result, NoHoldings):
            return result

        net_usd_spent = result.net_settlement_spent * base_usd
        current_value_usd = result.net_held * token_usd
        report = PnLReport(
            token_address=result.token_address,
            net_held=result.net_held,
            net_settlement_spent=result.net_settlement_spent,
            avg_cost_basis=result.avg_cost_basis,
            current_price=result.current_price,
            current_value=result.current_value,
            pnl_absolute=result.pnl_absolute,
            pnl_percent=result.pnl_percent,
            token_symbol=metadata.symbol,
            token_decimals=metadata.decimals,
            usd=UsdFigures(
                base_asset_usd_price=base_usd,
                token_price_usd=token_usd,
                net_usd_spent=net_usd_spent,
                current_value_usd=current_value_usd,
                pnl_usd=current_value_usd - net_usd_spent,
            ),
        )
        logger.info(
            "pnl_computed",
            user_id=str(user_id),
            token_address=token_address,
            pnl_absolute=str(report.pnl_absolute),
        )
        return report

    async def overview(self, user_id: Any) -> list[Holdings]:
        """Held tokens with symbols refreshed from the gateway where possible."""
        out: list[Holdings] = []
        for h in self._ledger.held_tokens(user_id):
            try:
                metadata = await self._gateway.get_token_metadata(h.token_address)
            except GatewayError as e:
                logger.warning("pnl_overview_metadata_failed", token_address=h.token_address, error=str(e))
                out.append(h)
                continue
            out.append(
                Holdings(
                    token_address=h.token_address,
                    bought_total=h.bought_total,
                    sold_total=h.sold_total,
                    settlement_spent=h.settlement_spent,
                    settlement_received=h.settlement_received,
                    event_count=h.event_count,
                    token_symbol=metadata.symbol,
                    token_decimals=metadata.decimals,
                )
            )
        return out
