"""
Pytest tests for TradingAgent: commands, menu actions and pending-input flows,
end to end over a memory store, fake gateway and fake executor.
"""

from __future__ import annotations

import asyncio
from decimal import Decimal

TOKEN_X = "9QCfNuQuxct1Xk9ytFYgxc5fThmTzL4pHQnSjjrVUrka"


def _run(coro):
    return asyncio.run(coro)


# --- Commands ---


def test_start_without_and_with_wallet(agent):
    reply = _run(agent.handle_command("u1", "/start"))
    assert reply.ok
    assert reply.data["has_wallet"] is False
    assert "create_wallet" in reply.action_list()

    created = _run(agent.handle_action("u1", "create_wallet"))
    assert created.ok
    assert created.data["public_key"] in created.text

    again = _run(agent.handle_command("u1", "/start@tradebot"))
    assert again.data["has_wallet"] is True
    assert "Welcome back" in again.text


def test_unknown_command_and_text(agent):
    assert _run(agent.handle_command("u1", "/nope")).ok is False
    reply = _run(agent.handle_text("u1", "hello there"))
    assert reply.ok is False
    assert "don't understand" in reply.text


def test_settings_and_help(agent):
    settings = _run(agent.handle_command("u1", "/settings"))
    assert settings.data["settings"] == {"slippageBuy": 50, "slippageSell": 50, "priorityFee": 0}
    assert "0.5%" in settings.text
    assert "Send a Solana contract address" in _run(agent.handle_action("u1", "show_help")).text


# --- Wallet ---


def test_import_wallet_flow(agent, memory_store, keypair):
    from tradebot_agent.utils.wallet_utils import encode_private_key

    prompt = _run(agent.handle_action("u2", "import_wallet"))
    assert prompt.data["state"] == "awaiting_private_key"

    reply = _run(agent.handle_text("u2", encode_private_key(keypair)))
    assert reply.ok
    record = memory_store.load("u2")
    assert record.wallet.public_key == str(keypair.pubkey())
    assert record.state is None


def test_import_invalid_key_clears_state(agent, memory_store):
    _run(agent.handle_action("u2", "import_wallet"))
    reply = _run(agent.handle_text("u2", "definitely-not-a-key"))
    assert reply.ok is False
    assert reply.data["error"] == "wallet_reconstruction_error"
    assert memory_store.load("u2").wallet is None
    assert memory_store.load("u2").state is None


def test_view_private_key_requires_wallet(agent, wallet_user, memory_store):
    assert _run(agent.handle_action("nobody", "view_private_key")).data["error"] == "wallet_missing"
    reply = _run(agent.handle_action(wallet_user, "view_private_key"))
    assert memory_store.load(wallet_user).wallet.private_key in reply.text


# --- Settings input ---


def test_slippage_flow(agent, memory_store):
    _run(agent.handle_action("u3", "set_slippage_sell"))
    assert memory_store.load("u3").state == "awaiting_sell_slippage"

    reply = _run(agent.handle_text("u3", "1.255"))
    assert reply.ok
    assert memory_store.load("u3").settings.sell_slippage_bps == 126


def test_invalid_slippage_reprompts_and_keeps_setting(agent, memory_store):
    _run(agent.handle_action("u3", "set_slippage_buy"))
    reply = _run(agent.handle_text("u3", "250"))
    assert reply.ok is False
    assert "between 0.01 and 100" in reply.text
    record = memory_store.load("u3")
    assert record.settings.buy_slippage_bps == 50
    assert record.state is None


def test_priority_fee_preset_and_custom(agent, memory_store):
    assert _run(agent.handle_action("u4", "set_priority_fee_preset_3")).ok
    assert memory_store.load("u4").settings.priority_fee == 3

    _run(agent.handle_action("u4", "set_priority_fee_custom"))
    assert _run(agent.handle_text("u4", "10.6")).ok
    assert memory_store.load("u4").settings.priority_fee == 11


# --- Trading ---


def test_custom_buy_completes(agent, memory_store, wallet_user):
    """awaiting-custom-buy-amount{X} + "0.05" -> idle, empty context, exactly one buy for X."""
    prompt = _run(agent.handle_action(wallet_user, f"buy_x_sol_{TOKEN_X}"))
    assert prompt.ok
    record = memory_store.load(wallet_user)
    assert record.state == "awaiting_custom_buy_amount"
    assert record.context == {"targetTokenAddress": TOKEN_X}

    reply = _run(agent.handle_text(wallet_user, "0.05"))
    assert reply.ok, reply.text
    record = memory_store.load(wallet_user)
    assert record.state is None
    assert record.context == {}
    assert len(record.transactions) == 1
    tx = record.transactions[0]
    assert tx.kind.value == "buy"
    assert tx.token_address == TOKEN_X
    assert tx.counter_asset_amount == Decimal("0.05")
    assert reply.data["tx_hash"] == "tx1"


def test_custom_buy_prompt_requires_wallet(agent, memory_store):
    reply = _run(agent.handle_action("u5", f"buy_x_sol_{TOKEN_X}"))
    assert reply.ok is False
    assert memory_store.load("u5").state is None


def test_custom_buy_bad_amount(agent, memory_store, executor, wallet_user):
    _run(agent.handle_action(wallet_user, f"buy_x_sol_{TOKEN_X}"))
    reply = _run(agent.handle_text(wallet_user, "-1"))
    assert reply.ok is False
    assert executor.calls == []
    assert memory_store.load(wallet_user).state is None


def test_preset_buy_then_sell_and_pnl(agent, memory_store, wallet_user):
    buy = _run(agent.handle_action(wallet_user, f"buy_0.1_{TOKEN_X}"))
    assert buy.ok
    assert buy.data["pnl"]["net_held"] == "100"

    sell = _run(agent.handle_action(wallet_user, f"sell_50_{TOKEN_X}"))
    assert sell.ok
    assert len(memory_store.load(wallet_user).transactions) == 2

    pnl = _run(agent.handle_action(wallet_user, f"view_pnl_{TOKEN_X}"))
    assert pnl.ok
    assert Decimal(pnl.data["pnl"]["net_held"]) == Decimal("50")
    assert f"refresh_pnl_{TOKEN_X}" in pnl.action_list()


def test_custom_sell_insufficient_holdings(agent, memory_store, executor, wallet_user):
    _run(agent.handle_action(wallet_user, f"buy_0.01_{TOKEN_X}"))
    prompt = _run(agent.handle_action(wallet_user, f"sell_x_amount_{TOKEN_X}"))
    assert "You currently hold 10" in prompt.text

    reply = _run(agent.handle_text(wallet_user, "11"))
    assert reply.ok is False
    assert reply.data["error"] == "insufficient_holdings"
    assert len(executor.calls) == 1
    assert memory_store.load(wallet_user).state is None


def test_sell_without_holdings(agent, wallet_user):
    reply = _run(agent.handle_action(wallet_user, f"sell_100_{TOKEN_X}"))
    assert reply.ok is False
    assert reply.data["error"] == "insufficient_holdings"


def test_pnl_overview(agent, wallet_user):
    empty = _run(agent.handle_command(wallet_user, "/pnl"))
    assert "no recorded" in empty.text

    _run(agent.handle_action(wallet_user, f"buy_0.05_{TOKEN_X}"))
    overview = _run(agent.handle_command(wallet_user, "/pnl"))
    assert overview.data["holdings"][0]["token_address"] == TOKEN_X
    assert f"view_pnl_{TOKEN_X}" in overview.action_list()


def test_view_pnl_without_position(agent, wallet_user):
    reply = _run(agent.handle_action(wallet_user, f"view_pnl_{TOKEN_X}"))
    assert reply.ok
    assert reply.data["reason"] == "no_transactions"


# --- Analysis and errors ---


def test_token_analysis(agent):
    reply = _run(agent.handle_text("u6", TOKEN_X))
    assert reply.ok
    assert "TOKEN ANALYSIS" in reply.text
    assert reply.data["token"]["symbol"] == "XTK"
    assert f"buy_0.05_{TOKEN_X}" in reply.action_list()


def test_unknown_token_is_error_reply(agent):
    reply = _run(agent.handle_text("u6", "So11111111111111111111111111111111111111112"))
    assert reply.ok is False
    assert reply.data["error"] == "not_found"


def test_unknown_action_is_error_reply(agent):
    reply = _run(agent.handle_action("u6", "close_menu"))
    assert reply.ok is False
    assert reply.data["error"] == "validation_error"


def test_concurrent_buys_for_one_user_are_serialized(agent, memory_store, wallet_user):
    """Two buys dispatched together both land in the ledger."""

    async def both():
        return await asyncio.gather(
            agent.handle_action(wallet_user, f"buy_0.01_{TOKEN_X}"),
            agent.handle_action(wallet_user, f"buy_0.05_{TOKEN_X}"),
        )

    replies = _run(both())
    assert all(r.ok for r in replies)
    assert len(memory_store.load(wallet_user).transactions) == 2
    assert agent._locks == {}


def test_idle_user_locks_are_dropped(agent):
    _run(agent.handle_command("a", "/start"))
    _run(agent.handle_text("b", "hello"))
    _run(agent.handle_action("c", "not_an_action"))
    assert agent._locks == {}
    assert agent._lock_users == {}
