"""
Conversation states: what free-text input a user is currently expected to send.

Each pending state is its own frozen dataclass carrying exactly the context
its handler needs. On disk a state is a (tag, context) pair; unknown tags or
a context missing a required field decode to Idle.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

from tradebot_agent.tradebot_logging import get_logger

logger = get_logger(__name__)


class StateTag(str, Enum):
    """Persisted tag for each pending state."""

    AWAITING_PRIVATE_KEY = "awaiting_private_key"
    AWAITING_BUY_SLIPPAGE = "awaiting_buy_slippage"
    AWAITING_SELL_SLIPPAGE = "awaiting_sell_slippage"
    AWAITING_CUSTOM_PRIORITY_FEE = "awaiting_custom_priority_fee"
    AWAITING_CUSTOM_BUY_AMOUNT = "awaiting_custom_buy_amount"
    AWAITING_CUSTOM_SELL_AMOUNT = "awaiting_custom_sell_amount"


@dataclass(frozen=True)
class Idle:
    tag = None

    def context(self) -> dict[str, Any]:
        return {}


@dataclass(frozen=True)
class AwaitingPrivateKey:
    tag = StateTag.AWAITING_PRIVATE_KEY

    def context(self) -> dict[str, Any]:
        return {}


@dataclass(frozen=True)
class AwaitingBuySlippage:
    tag = StateTag.AWAITING_BUY_SLIPPAGE

    def context(self) -> dict[str, Any]:
        return {}


@dataclass(frozen=True)
class AwaitingSellSlippage:
    tag = StateTag.AWAITING_SELL_SLIPPAGE

    def context(self) -> dict[str, Any]:
        return {}


@dataclass(frozen=True)
class AwaitingCustomPriorityFee:
    tag = StateTag.AWAITING_CUSTOM_PRIORITY_FEE

    def context(self) -> dict[str, Any]:
        return {}


@dataclass(frozen=True)
class AwaitingCustomBuyAmount:
    target_token_address: str
    tag = StateTag.AWAITING_CUSTOM_BUY_AMOUNT

    def context(self) -> dict[str, Any]:
        return {"targetTokenAddress": self.target_token_address}


@dataclass(frozen=True)
class AwaitingCustomSellAmount:
    target_token_address: str
    tag = StateTag.AWAITING_CUSTOM_SELL_AMOUNT

    def context(self) -> dict[str, Any]:
        return {"targetTokenAddress": self.target_token_address}


ConversationState = Union[
    Idle,
    AwaitingPrivateKey,
    AwaitingBuySlippage,
    AwaitingSellSlippage,
    AwaitingCustomPriorityFee,
    AwaitingCustomBuyAmount,
    AwaitingCustomSellAmount,
]

IDLE = Idle()

_SIMPLE_STATES: dict[StateTag, ConversationState] = {
    StateTag.AWAITING_PRIVATE_KEY: AwaitingPrivateKey(),
    StateTag.AWAITING_BUY_SLIPPAGE: AwaitingBuySlippage(),
    StateTag.AWAITING_SELL_SLIPPAGE: AwaitingSellSlippage(),
    StateTag.AWAITING_CUSTOM_PRIORITY_FEE: AwaitingCustomPriorityFee(),
}


def is_pending(state: ConversationState) -> bool:
    return not isinstance(state, Idle)


def encode_state(state: ConversationState) -> tuple[str | None, dict[str, Any]]:
    """Return the (tag, context) pair stored in the user record."""
    if isinstance(state, Idle):
        return None, {}
    return state.tag.value, state.context()


def decode_state(tag: Any, context: Any) -> ConversationState:
    """Rebuild a state from its stored (tag, context); anything unusable decodes to Idle."""
    if tag is None:
        return IDLE
    try:
        state_tag = StateTag(tag)
    except ValueError:
        logger.warning("conversation_state_unknown_tag", tag=str(tag))
        return IDLE
    if state_tag in _SIMPLE_STATES:
        return _SIMPLE_STATES[state_tag]
    ctx = context if isinstance(context, dict) else {}
    target = ctx.get("targetTokenAddress")
    if not isinstance(target, str) or not target.strip():
        logger.warning("conversation_state_missing_context", tag=state_tag.value)
        return IDLE
    if state_tag is StateTag.AWAITING_CUSTOM_BUY_AMOUNT:
        return AwaitingCustomBuyAmount(target_token_address=target.strip())
    return AwaitingCustomSellAmount(target_token_address=target.strip())
