"""
Pytest tests for JupiterGateway over httpx.MockTransport (no network).
"""

from __future__ import annotations

import asyncio
from decimal import Decimal

import httpx
import pytest

TOKEN_X = "9QCfNuQuxct1Xk9ytFYgxc5fThmTzL4pHQnSjjrVUrka"
SEARCH_URL = "https://jup.test/tokens/v2/search"
PRICE_URL = "https://coingecko.test/simple/price"

SEARCH_ITEM = {
    "id": TOKEN_X,
    "name": "X Token",
    "symbol": "XTK",
    "decimals": 6,
    "usdPrice": 0.0123,
    "liquidity": 50000.5,
    "mcap": 1200000,
    "fdv": 1500000,
    "totalSupply": 1000000000000,
    "holderCount": 4321,
    "tags": ["verified", "community"],
    "audit": {"mintAuthorityDisabled": True, "freezeAuthorityDisabled": False},
    "stats24h": {"buyVolume": 1000, "sellVolume": 250.5},
    "launchpad": "pump.fun",
}


def _gateway(handler):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    from tradebot_agent.gateway.jupiter import JupiterGateway

    return JupiterGateway(search_url=SEARCH_URL, price_url=PRICE_URL, client=client)


def test_token_metadata_parsed():
    def handler(request):
        assert request.url.params["query"] == TOKEN_X
        return httpx.Response(200, json=[{"id": "other", "decimals": 9}, SEARCH_ITEM])

    metadata = asyncio.run(_gateway(handler).get_token_metadata(TOKEN_X))
    assert metadata.symbol == "XTK"
    assert metadata.decimals == 6
    assert metadata.price_usd == Decimal("0.0123")
    assert metadata.volume == Decimal("1250.5")
    assert metadata.verified is True
    assert metadata.mint_authority_disabled is True
    assert metadata.freeze_authority_disabled is False
    assert metadata.holder_count == 4321
    assert metadata.display_supply == Decimal("1000000")


def test_empty_search_is_not_found():
    from tradebot_agent.core.exceptions import NotFound

    gateway = _gateway(lambda request: httpx.Response(200, json=[]))
    with pytest.raises(NotFound):
        asyncio.run(gateway.get_token_metadata(TOKEN_X))


def test_search_without_exact_mint_is_not_found():
    from tradebot_agent.core.exceptions import NotFound

    other = {"id": "7F1WzVNQ1Qpurqxxdyv3UrFQR3uoNepULVW9A4bAJ5nZ", "symbol": "OTH", "decimals": 9, "usdPrice": 42}
    gateway = _gateway(lambda request: httpx.Response(200, json=[other]))
    with pytest.raises(NotFound):
        asyncio.run(gateway.get_token_metadata(TOKEN_X))


def test_missing_decimals_is_gateway_error():
    from tradebot_agent.core.exceptions import GatewayError

    gateway = _gateway(lambda request: httpx.Response(200, json=[{"id": TOKEN_X, "symbol": "X"}]))
    with pytest.raises(GatewayError):
        asyncio.run(gateway.get_token_metadata(TOKEN_X))


def test_http_errors_map_to_gateway_error():
    from tradebot_agent.core.exceptions import GatewayError, NotFound

    with pytest.raises(NotFound):
        asyncio.run(_gateway(lambda r: httpx.Response(404)).get_token_metadata(TOKEN_X))
    with pytest.raises(GatewayError):
        asyncio.run(_gateway(lambda r: httpx.Response(503)).get_token_metadata(TOKEN_X))

    def boom(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(GatewayError):
        asyncio.run(_gateway(boom).get_base_asset_usd_price())


def test_sol_price():
    from tradebot_agent.core.exceptions import GatewayError

    def handler(request):
        assert request.url.params["ids"] == "solana"
        return httpx.Response(200, json={"solana": {"usd": 142.37}})

    assert asyncio.run(_gateway(handler).get_base_asset_usd_price()) == Decimal("142.37")

    zero = _gateway(lambda r: httpx.Response(200, json={"solana": {"usd": 0}}))
    with pytest.raises(GatewayError):
        asyncio.run(zero.get_base_asset_usd_price())
    odd = _gateway(lambda r: httpx.Response(200, json={"bitcoin": {}}))
    with pytest.raises(GatewayError):
        asyncio.run(odd.get_base_asset_usd_price())
