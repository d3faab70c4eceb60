"""
Pytest fixtures for tradebot-agent tests. Stores live in a temp dir or memory;
the price gateway and trade executor are in-process fakes.
"""

from __future__ import annotations

from decimal import Decimal

import pytest

# Valid Solana pubkeys (base58, 32 bytes)
TOKEN_X = "9QCfNuQuxct1Xk9ytFYgxc5fThmTzL4pHQnSjjrVUrka"
TOKEN_Y = "7F1WzVNQ1Qpurqxxdyv3UrFQR3uoNepULVW9A4bAJ5nZ"
TEST_KEY = bytes(range(32))


class FakeGateway:
    """PriceGateway double: metadata per address, fixed SOL/USD price, optional failures."""

    def __init__(self, sol_usd: Decimal = Decimal("100")):
        from tradebot_agent.gateway.models import TokenMetadata

        self.sol_usd = sol_usd
        self.fail_price = False
        self.metadata_calls: list[str] = []
        self.tokens = {
            TOKEN_X: TokenMetadata(address=TOKEN_X, symbol="XTK", decimals=6, name="X Token", price_usd=Decimal("3")),
            TOKEN_Y: TokenMetadata(address=TOKEN_Y, symbol="YTK", decimals=9, name="Y Token", price_usd=None),
        }

    async def get_token_metadata(self, address):
        from tradebot_agent.core.exceptions import NotFound

        self.metadata_calls.append(address)
        if address not in self.tokens:
            raise NotFound(f"Token {address} not found.")
        return self.tokens[address]

    async def get_base_asset_usd_price(self):
        from tradebot_agent.core.exceptions import GatewayError

        if self.fail_price:
            raise GatewayError("price feed down")
        return self.sol_usd


class FakeExecutor:
    """
    TradeExecutor double. Buys fill at `tokens_per_sol`; sells return
    `sol_per_token`. Records every call; set `result` to force an outcome.
    """

    def __init__(self, tokens_per_sol: Decimal = Decimal("1000"), sol_per_token: Decimal = Decimal("0.001")):
        self.tokens_per_sol = tokens_per_sol
        self.sol_per_token = sol_per_token
        self.calls: list[dict] = []
        self.result = None
        self.raise_error: Exception | None = None

    async def execute_swap(self, input_asset, output_asset, signer, priority_fee, *, slippage_bps):
        from tradebot_agent.trading.executor import SOL_MINT_ADDRESS, SwapResult

        self.calls.append(
            {
                "input": input_asset,
                "output": output_asset,
                "signer": signer,
                "priority_fee": priority_fee,
                "slippage_bps": slippage_bps,
            }
        )
        if self.raise_error is not None:
            raise self.raise_error
        if self.result is not None:
            return self.result
        amount = input_asset.amount
        if input_asset.address == SOL_MINT_ADDRESS:
            out = amount * self.tokens_per_sol
        else:
            out = amount * self.sol_per_token
        return SwapResult(
            success=True,
            input_amount_raw=int(amount.scaleb(input_asset.decimals)),
            output_amount_raw=int(out.scaleb(output_asset.decimals)),
            tx_hash=f"tx{len(self.calls)}",
        )


@pytest.fixture
def key():
    return TEST_KEY


@pytest.fixture
def codec(key):
    from tradebot_agent.vault.codec import VaultCodec

    return VaultCodec(key)


@pytest.fixture
def file_store(tmp_path, codec):
    """FileRecordStore writing vault files under a temp dir."""
    from tradebot_agent.store.record_store import FileRecordStore

    return FileRecordStore(tmp_path / "user_data", codec)


@pytest.fixture
def memory_store():
    from tradebot_agent.store.record_store import MemoryRecordStore

    return MemoryRecordStore()


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def executor():
    return FakeExecutor()


@pytest.fixture
def keypair():
    from solders.keypair import Keypair

    return Keypair()


@pytest.fixture
def agent(memory_store, gateway, executor):
    from tradebot_agent.agent.bot import TradingAgent

    return TradingAgent(memory_store, gateway, executor)


@pytest.fixture
def wallet_user(memory_store, keypair):
    """User "u1" with a wallet and an empty ledger."""
    from tradebot_agent.store.models import Wallet

    record = memory_store.load("u1")
    record.wallet = Wallet.from_keypair(keypair)
    assert memory_store.save("u1", record)
    return "u1"
