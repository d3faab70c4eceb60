"""
Ledger package — append-only trade history and derived holdings.
"""

from tradebot_agent.ledger.engine import (
    Holdings,
    Ledger,
    events_for,
    held_tokens,
    summarize,
)

__all__ = ["Holdings", "Ledger", "events_for", "held_tokens", "summarize"]
