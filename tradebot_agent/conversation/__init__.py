"""
Conversation package — pending-input states and the machine that consumes them.

Only the states are exported here; import ConversationMachine from
tradebot_agent.conversation.machine (the store depends on the states).
"""

from tradebot_agent.conversation.states import (
    IDLE,
    AwaitingBuySlippage,
    AwaitingCustomBuyAmount,
    AwaitingCustomPriorityFee,
    AwaitingCustomSellAmount,
    AwaitingPrivateKey,
    AwaitingSellSlippage,
    ConversationState,
    Idle,
    StateTag,
    decode_state,
    encode_state,
    is_pending,
)

__all__ = [
    "IDLE",
    "AwaitingBuySlippage",
    "AwaitingCustomBuyAmount",
    "AwaitingCustomPriorityFee",
    "AwaitingCustomSellAmount",
    "AwaitingPrivateKey",
    "AwaitingSellSlippage",
    "ConversationState",
    "Idle",
    "StateTag",
    "decode_state",
    "encode_state",
    "is_pending",
]
