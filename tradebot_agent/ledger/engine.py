"""
Ledger: append-only trade history per user, and holdings derived from it.

Pure functions (summarize, held_tokens) work on any sequence of TradeEvents;
Ledger binds them to a RecordStore for the per-user operations. Sums are
exact Decimal arithmetic in ledger order.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Iterable

from tradebot_agent.store.models import TradeEvent, TradeKind
from tradebot_agent.store.record_store import RecordStore
from tradebot_agent.tradebot_logging import get_logger

logger = get_logger(__name__)

ZERO = Decimal(0)


@dataclass(frozen=True)
class Holdings:
    """Totals for one token. net_held = bought_total - sold_total."""

    token_address: str
    bought_total: Decimal
    sold_total: Decimal
    settlement_spent: Decimal
    settlement_received: Decimal
    event_count: int
    token_symbol: str | None = None
    token_decimals: int | None = None

    @property
    def net_held(self) -> Decimal:
        return self.bought_total - self.sold_total

    @property
    def net_settlement_spent(self) -> Decimal:
        return self.settlement_spent - self.settlement_received

    @property
    def is_held(self) -> bool:
        return self.net_held > 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "token_address": self.token_address,
            "bought_total": str(self.bought_total),
            "sold_total": str(self.sold_total),
            "net_held": str(self.net_held),
            "net_settlement_spent": str(self.net_settlement_spent),
            "event_count": self.event_count,
            "token_symbol": self.token_symbol,
            "token_decimals": self.token_decimals,
        }


def events_for(events: Iterable[TradeEvent], token_address: str) -> list[TradeEvent]:
    return [tx for tx in events if tx.token_address == token_address]


def summarize(events: Iterable[TradeEvent], token_address: str) -> Holdings:
    """
    Sum buys and sells of token_address. Symbol/decimals come from the latest
    matching event (snapshot only, may be stale).
    """
    bought = sold = spent = received = ZERO
    count = 0
    symbol: str | None = None
    decimals: int | None = None
    for tx in events:
        if tx.token_address != token_address:
            continue
        count += 1
        symbol = tx.token_symbol
        decimals = tx.token_decimals
        if tx.kind is TradeKind.BUY:
            bought += tx.token_amount
            spent += tx.counter_asset_amount
        elif tx.kind is TradeKind.SELL:
            sold += tx.token_amount
            received += tx.counter_asset_amount
    return Holdings(
        token_address=token_address,
        bought_total=bought,
        sold_total=sold,
        settlement_spent=spent,
        settlement_received=received,
        event_count=count,
        token_symbol=symbol,
        token_decimals=decimals,
    )


def held_tokens(events: Iterable[TradeEvent]) -> list[Holdings]:
    """Holdings for every token with net_held > 0, in order of first appearance."""
    events = list(events)
    seen: list[str] = []
    for tx in events:
        if tx.token_address not in seen:
            seen.append(tx.token_address)
    out = []
    for address in seen:
        h = summarize(events, address)
        if h.is_held:
            out.append(h)
    return out


class Ledger:
    """Per-user ledger operations backed by a RecordStore."""

    def __init__(self, store: RecordStore) -> None:
        self._store = store

    def append(self, user_id: Any, event: TradeEvent) -> bool:
        """
        Add event at the end of the user's ledger and persist.

        Prior events are never touched. Returns False when the save failed;
        the cached ledger then does not contain the event.
        """
        record = self._store.load(user_id)
        record.transactions.append(event)
        saved = self._store.save(user_id, record)
        if saved:
            logger.info(
                "ledger_event_appended",
                user_id=str(user_id),
                kind=event.kind.value,
                token_address=event.token_address,
                ledger_size=len(record.transactions),
            )
        return saved

    def events(self, user_id: Any, token_address: str | None = None) -> list[TradeEvent]:
        record = self._store.load(user_id)
        if token_address is None:
            return list(record.transactions)
        return events_for(record.transactions, token_address)

    def holdings_for(self, user_id: Any, token_address: str) -> Holdings:
        return summarize(self._store.load(user_id).transactions, token_address)

    def net_settlement_spent(self, user_id: Any, token_address: str) -> Decimal:
        return self.holdings_for(user_id, token_address).net_settlement_spent

    def held_tokens(self, user_id: Any) -> list[Holdings]:
        return held_tokens(self._store.load(user_id).transactions)
