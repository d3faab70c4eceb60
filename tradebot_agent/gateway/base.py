"""
Price gateway collaborator interface.

Implementations raise NotFound for unknown tokens and GatewayError for any
other upstream failure. They must never substitute a placeholder price.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Protocol, runtime_checkable

from tradebot_agent.gateway.models import TokenMetadata


@runtime_checkable
class PriceGateway(Protocol):
    async def get_token_metadata(self, address: str) -> TokenMetadata:
        ...

    async def get_base_asset_usd_price(self) -> Decimal:
        ...
