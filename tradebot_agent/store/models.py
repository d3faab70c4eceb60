"""
Data models for a user's vault record.

UserRecord holds the wallet, trade settings, append-only trade ledger and the
pending conversation state. Money and token quantities are Decimal end to end
and are written to JSON as strings so no float ever touches the ledger.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any

from solders.keypair import Keypair

from tradebot_agent.conversation.states import (
    IDLE,
    ConversationState,
    encode_state,
    is_pending,
)
from tradebot_agent.core.exceptions import ValidationError, WalletReconstructionError
from tradebot_agent.utils.wallet_utils import (
    encode_private_key,
    keypair_from_private_key,
    public_key_of,
)

DEFAULT_BUY_SLIPPAGE_BPS = 50
DEFAULT_SELL_SLIPPAGE_BPS = 50
DEFAULT_PRIORITY_FEE = 0
RECORD_VERSION = 1


def to_decimal(value: Any, name: str = "value") -> Decimal:
    """
    Convert ints, strings and Decimals to Decimal.

    Floats are accepted only from legacy records, via their shortest repr,
    so 0.1 becomes Decimal("0.1") rather than its binary expansion.
    """
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, bool):
        raise ValidationError(f"{name} must be a number.")
    elif isinstance(value, (int, str)):
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation as e:
            raise ValidationError(f"{name} must be a number (got {value!r}).") from e
    elif isinstance(value, float):
        result = Decimal(repr(value))
    else:
        raise ValidationError(f"{name} must be a number (got {type(value).__name__}).")
    if not result.is_finite():
        raise ValidationError(f"{name} must be finite.")
    return result


class TradeKind(str, Enum):
    BUY = "buy"
    SELL = "sell"


@dataclass(frozen=True)
class TradeEvent:
    """
    One executed swap. Immutable once appended.

    counter_asset_amount is SOL spent (buy) or received (sell); token_amount
    is the traded token moved. Both in whole units. token_symbol and
    token_decimals are a snapshot at trade time and are never rewritten.
    """

    kind: TradeKind
    token_address: str
    token_symbol: str
    token_decimals: int
    counter_asset_amount: Decimal
    token_amount: Decimal
    timestamp: str

    @classmethod
    def create(
        cls,
        kind: TradeKind | str,
        token_address: str,
        token_symbol: str,
        token_decimals: int,
        counter_asset_amount: Any,
        token_amount: Any,
        timestamp: datetime | str | None = None,
    ) -> "TradeEvent":
        if isinstance(timestamp, datetime):
            ts = timestamp.astimezone(timezone.utc).isoformat()
        elif timestamp:
            ts = str(timestamp)
        else:
            ts = datetime.now(timezone.utc).isoformat()
        return cls(
            kind=TradeKind(kind),
            token_address=token_address,
            token_symbol=token_symbol or "UNKNOWN",
            token_decimals=int(token_decimals),
            counter_asset_amount=to_decimal(counter_asset_amount, "counter_asset_amount"),
            token_amount=to_decimal(token_amount, "token_amount"),
            timestamp=ts,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.kind.value,
            "tokenAddress": self.token_address,
            "tokenSymbol": self.token_symbol,
            "tokenDecimals": self.token_decimals,
            "solAmount": str(self.counter_asset_amount),
            "tokenAmount": str(self.token_amount),
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TradeEvent":
        return cls(
            kind=TradeKind(data["type"]),
            token_address=str(data["tokenAddress"]),
            token_symbol=str(data.get("tokenSymbol") or "UNKNOWN"),
            token_decimals=int(data.get("tokenDecimals") or 0),
            counter_asset_amount=to_decimal(data["solAmount"], "solAmount"),
            token_amount=to_decimal(data["tokenAmount"], "tokenAmount"),
            timestamp=str(data.get("timestamp") or ""),
        )


@dataclass(frozen=True)
class Wallet:
    """
    Durable wallet fields plus the signing keypair derived from them.

    keypair is recomputed whenever a Wallet is built from stored fields and
    is never serialized.
    """

    public_key: str
    private_key: str
    keypair: Keypair = field(repr=False, compare=False)

    @classmethod
    def from_keypair(cls, keypair: Keypair) -> "Wallet":
        return cls(
            public_key=public_key_of(keypair),
            private_key=encode_private_key(keypair),
            keypair=keypair,
        )

    @classmethod
    def from_stored(cls, public_key: str, private_key: str) -> "Wallet":
        """Rebuild from durable fields. Raises WalletReconstructionError."""
        keypair = keypair_from_private_key(private_key)
        derived = public_key_of(keypair)
        if public_key and derived != public_key:
            raise WalletReconstructionError("Stored public key does not match the private key.")
        return cls(public_key=derived, private_key=private_key.strip(), keypair=keypair)

    def to_dict(self) -> dict[str, str]:
        return {"publicKey": self.public_key, "privateKey": self.private_key}


@dataclass
class TradeSettings:
    buy_slippage_bps: int = DEFAULT_BUY_SLIPPAGE_BPS
    sell_slippage_bps: int = DEFAULT_SELL_SLIPPAGE_BPS
    priority_fee: int = DEFAULT_PRIORITY_FEE

    def __post_init__(self) -> None:
        for name in ("buy_slippage_bps", "sell_slippage_bps", "priority_fee"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ValidationError(f"{name} must be a non-negative integer.")

    def to_dict(self) -> dict[str, int]:
        return {
            "slippageBuy": self.buy_slippage_bps,
            "slippageSell": self.sell_slippage_bps,
            "priorityFee": self.priority_fee,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "TradeSettings":
        """Missing or invalid fields fall back to their defaults."""
        data = data if isinstance(data, dict) else {}

        def _int(key: str, default: int) -> int:
            raw = data.get(key)
            try:
                value = int(raw)
            except (TypeError, ValueError):
                return default
            return value if value >= 0 else default

        return cls(
            buy_slippage_bps=_int("slippageBuy", DEFAULT_BUY_SLIPPAGE_BPS),
            sell_slippage_bps=_int("slippageSell", DEFAULT_SELL_SLIPPAGE_BPS),
            priority_fee=_int("priorityFee", DEFAULT_PRIORITY_FEE),
        )


@dataclass
class UserRecord:
    """
    Everything persisted for one user.

    Records handed out by the store are working copies: mutate them freely,
    then save. A failed save leaves the store's cached copy untouched.
    """

    wallet: Wallet | None = None
    settings: TradeSettings = field(default_factory=TradeSettings)
    transactions: list[TradeEvent] = field(default_factory=list)
    conversation: ConversationState = IDLE

    @property
    def state(self) -> str | None:
        return encode_state(self.conversation)[0]

    @property
    def context(self) -> dict[str, Any]:
        return encode_state(self.conversation)[1]

    @property
    def has_pending_input(self) -> bool:
        return is_pending(self.conversation)

    def clear_conversation(self) -> None:
        self.conversation = IDLE

    def clone(self) -> "UserRecord":
        # Wallet, TradeEvent and states are frozen; sharing them is safe.
        return UserRecord(
            wallet=self.wallet,
            settings=replace(self.settings),
            transactions=list(self.transactions),
            conversation=self.conversation,
        )

    def to_dict(self) -> dict[str, Any]:
        """Durable form. The derived keypair is dropped; only key strings remain."""
        state, context = encode_state(self.conversation)
        return {
            "version": RECORD_VERSION,
            "wallet": self.wallet.to_dict() if self.wallet else None,
            "settings": self.settings.to_dict(),
            "transactions": [tx.to_dict() for tx in self.transactions],
            "state": state,
            "context": context,
        }
