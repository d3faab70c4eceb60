"""
Conversation state machine.

A pending state means the user's next free-text message is the answer to a
prompt. consume() clears and persists the state before running the handler
registered for it, so a crash or a bad input never leaves a user stuck in a
prompt. Handlers persist their own record changes.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable

from tradebot_agent.conversation.states import IDLE, ConversationState, Idle
from tradebot_agent.core.exceptions import TradebotError
from tradebot_agent.core.replies import Reply
from tradebot_agent.store.record_store import RecordStore
from tradebot_agent.tradebot_logging import get_logger

logger = get_logger(__name__)

StateHandler = Callable[[Any, Any, str], Awaitable[Reply]]


class ConversationMachine:
    def __init__(self, store: RecordStore) -> None:
        self._store = store
        self._handlers: dict[type, StateHandler] = {}

    def register(self, state_cls: type, handler: StateHandler) -> None:
        """handler(user_id, state, text) -> Reply, for states of type state_cls."""
        self._handlers[state_cls] = handler

    def current(self, user_id: Any) -> ConversationState:
        return self._store.load(user_id).conversation

    def enter(self, user_id: Any, state: ConversationState) -> bool:
        record = self._store.load(user_id)
        record.conversation = state
        saved = self._store.save(user_id, record)
        if saved:
            logger.info("conversation_state_entered", user_id=str(user_id), state=record.state)
        return saved

    def clear(self, user_id: Any) -> bool:
        return self.enter(user_id, IDLE)

    async def consume(self, user_id: Any, text: str) -> Reply | None:
        """Route text to the pending state's handler; None when nothing is pending."""
        record = self._store.load(user_id)
        state = record.conversation
        if isinstance(state, Idle):
            return None

        record.clear_conversation()
        if not self._store.save(user_id, record):
            return Reply.failure("Failed to save your session. Please try again.")

        handler = self._handlers.get(type(state))
        if handler is None:
            logger.warning("conversation_no_handler", user_id=str(user_id), state=state.tag.value)
            return Reply.failure("That prompt is no longer active. Please start again.")

        try:
            return await handler(user_id, state, text)
        except TradebotError as e:
            logger.warning(
                "conversation_handler_failed",
                user_id=str(user_id),
                state=state.tag.value,
                error=e.code,
            )
            return Reply.from_error(e)
