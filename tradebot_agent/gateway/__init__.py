"""
Price gateway package — token metadata and prices from external providers.
"""

from tradebot_agent.gateway.base import PriceGateway
from tradebot_agent.gateway.jupiter import JupiterGateway
from tradebot_agent.gateway.models import TokenMetadata

__all__ = ["JupiterGateway", "PriceGateway", "TokenMetadata"]
