"""
Jupiter token search + CoinGecko SOL/USD price, over httpx.AsyncClient.

Responsibilities:
- get_token_metadata(): GET {search_url}?query=<mint>, pick the matching
  token, normalize to TokenMetadata.
- get_base_asset_usd_price(): GET {price_url}?ids=solana&vs_currencies=usd.
- Map transport failures to GatewayError / NotFound. No retries here.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

import httpx

from tradebot_agent.config.env import (
    DEFAULT_COINGECKO_PRICE_URL,
    DEFAULT_GATEWAY_TIMEOUT_SEC,
    DEFAULT_JUPITER_SEARCH_URL,
)
from tradebot_agent.core.exceptions import GatewayError, NotFound
from tradebot_agent.gateway.models import TokenMetadata, optional_decimal
from tradebot_agent.tradebot_logging import get_logger

logger = get_logger(__name__)

BASE_ASSET_COINGECKO_ID = "solana"


def parse_search_item(address: str, token: dict[str, Any]) -> TokenMetadata:
    """Normalize one /tokens/v2/search result. Raises GatewayError without decimals."""
    decimals = token.get("decimals")
    if decimals is None:
        raise GatewayError("Token decimals could not be determined from Jupiter.")
    stats = token.get("stats24h") or {}
    buy_volume = optional_decimal(stats.get("buyVolume"))
    sell_volume = optional_decimal(stats.get("sellVolume"))
    volume = None
    if buy_volume is not None or sell_volume is not None:
        volume = (buy_volume or Decimal(0)) + (sell_volume or Decimal(0))
    audit = token.get("audit") or {}
    tags = tuple(str(t) for t in (token.get("tags") or []))
    holder_count = token.get("holderCount")
    supply = token.get("totalSupply")
    if supply is None:
        supply = token.get("circSupply")
    return TokenMetadata(
        address=address,
        name=token.get("name") or "N/A",
        symbol=token.get("symbol") or "N/A",
        decimals=int(decimals),
        price_usd=optional_decimal(token.get("usdPrice")),
        liquidity=optional_decimal(token.get("liquidity")),
        volume=volume,
        market_cap=optional_decimal(token.get("mcap")),
        fdv=optional_decimal(token.get("fdv")),
        supply=optional_decimal(supply),
        verified="verified" in tags,
        tags=tags,
        mint_authority_disabled=audit.get("mintAuthorityDisabled"),
        freeze_authority_disabled=audit.get("freezeAuthorityDisabled"),
        holder_count=int(holder_count) if holder_count is not None else None,
        launchpad=token.get("launchpad"),
        logo_uri=token.get("icon"),
    )


class JupiterGateway:
    """
    PriceGateway backed by Jupiter's public search API and CoinGecko.

    Pass client to share a connection pool (or a MockTransport in tests);
    otherwise the gateway owns one and aclose() releases it.
    """

    def __init__(
        self,
        *,
        search_url: str = DEFAULT_JUPITER_SEARCH_URL,
        price_url: str = DEFAULT_COINGECKO_PRICE_URL,
        timeout_sec: float = DEFAULT_GATEWAY_TIMEOUT_SEC,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._search_url = search_url
        self._price_url = price_url
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout_sec),
            headers={"Accept": "application/json"},
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "JupiterGateway":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.aclose()

    async def _get_json(self, url: str, params: dict[str, Any], *, not_found_msg: str) -> Any:
        try:
            r = await self._client.get(url, params=params)
            if r.status_code == 404:
                raise NotFound(not_found_msg)
            r.raise_for_status()
            return r.json()
        except NotFound:
            raise
        except httpx.HTTPError as e:
            raise GatewayError(f"Request to {url} failed: {e}") from e
        except ValueError as e:
            raise GatewayError(f"Invalid JSON from {url}") from e

    async def get_token_metadata(self, address: str) -> TokenMetadata:
        data = await self._get_json(
            self._search_url,
            {"query": address},
            not_found_msg=f"Token {address} not found on Jupiter.",
        )
        if not isinstance(data, list):
            raise GatewayError("Unexpected Jupiter search payload.")
        # search is fuzzy; only an exact mint match describes the requested token
        token = next((t for t in data if isinstance(t, dict) and t.get("id") == address), None)
        if token is None:
            raise NotFound(f"Token {address} not found in Jupiter search results.")
        metadata = parse_search_item(address, token)
        logger.debug("gateway_token_metadata", token_address=address, symbol=metadata.symbol)
        return metadata

    async def get_base_asset_usd_price(self) -> Decimal:
        data = await self._get_json(
            self._price_url,
            {"ids": BASE_ASSET_COINGECKO_ID, "vs_currencies": "usd"},
            not_found_msg="SOL price not found on CoinGecko.",
        )
        try:
            price = optional_decimal(data[BASE_ASSET_COINGECKO_ID]["usd"])
        except (KeyError, TypeError) as e:
            raise GatewayError("Unexpected CoinGecko price payload.") from e
        if price is None or price <= 0:
            raise GatewayError("CoinGecko returned no usable SOL price.")
        return price
