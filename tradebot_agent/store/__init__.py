"""
Record store package — per-user durable records plus the in-memory cache.

Models (UserRecord, TradeEvent, Wallet, TradeSettings) and the store
backends that persist them.
"""

from tradebot_agent.store.models import (
    TradeEvent,
    TradeKind,
    TradeSettings,
    UserRecord,
    Wallet,
)
from tradebot_agent.store.record_store import (
    FileRecordStore,
    MemoryRecordStore,
    RecordStore,
)

__all__ = [
    "FileRecordStore",
    "MemoryRecordStore",
    "RecordStore",
    "TradeEvent",
    "TradeKind",
    "TradeSettings",
    "UserRecord",
    "Wallet",
]
