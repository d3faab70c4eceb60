"""
Reply text and button menus.

Rendering only: nothing here touches the store or the gateway.
"""

from __future__ import annotations

from decimal import ROUND_DOWN, ROUND_HALF_UP, Decimal, InvalidOperation

from tradebot_agent.agent.actions import (
    ActionKind,
    address_payload,
    buy_payload,
    preset_payload,
    sell_payload,
)
from tradebot_agent.core.replies import Button
from tradebot_agent.gateway.models import TokenMetadata
from tradebot_agent.ledger.engine import Holdings
from tradebot_agent.pnl.models import PnLReport
from tradebot_agent.store.models import TradeEvent, TradeKind, UserRecord
from tradebot_agent.trading.service import BUY_PRESETS_SOL, SELL_PRESETS_PERCENT
from tradebot_agent.utils.inputs import bps_to_percent

PRIORITY_FEE_PRESETS = ((3, "Fast"), (7, "Beast"))
KEY_WARNING = (
    "WARNING: Your private key is stored on this server. Save it in a secure "
    "place and delete it from the chat immediately."
)


def fmt(value: Decimal | None, places: int = 6, rounding: str = ROUND_HALF_UP, *, grouping: bool = False) -> str:
    """Fixed-point text with at most `places` decimals and no trailing zeros."""
    if value is None:
        return "N/A"
    try:
        q = value.quantize(Decimal(1).scaleb(-places), rounding=rounding).normalize()
    except InvalidOperation:
        q = value
    return format(q, ",f" if grouping else "f")


def short(address: str) -> str:
    return f"{address[:8]}..."


def usd(value: Decimal | None, places: int = 2) -> str:
    return "N/A" if value is None else f"${fmt(value, places, grouping=True)}"


# Menus

def main_menu() -> list[list[Button]]:
    return [
        [("📊 PnL Overview", ActionKind.SHOW_PNL_OVERVIEW.value)],
        [("⚙️ Settings", ActionKind.SHOW_SETTINGS.value)],
        [("❓ Help", ActionKind.SHOW_HELP.value)],
    ]


def wallet_setup_menu() -> list[list[Button]]:
    return [
        [
            ("➕ Create New Wallet", ActionKind.CREATE_WALLET.value),
            ("📥 Import Wallet (Private Key)", ActionKind.IMPORT_WALLET.value),
        ]
    ]


def settings_menu() -> list[list[Button]]:
    return [
        [("👁️ View Private Key", ActionKind.VIEW_PRIVATE_KEY.value)],
        [("✨ Set Buy Slippage", ActionKind.SET_SLIPPAGE_BUY.value)],
        [("✨ Set Sell Slippage", ActionKind.SET_SLIPPAGE_SELL.value)],
        [("⚡ Set Priority Fee", ActionKind.SET_PRIORITY_FEE.value)],
        [("⬅️ Back to Main Menu", ActionKind.SHOW_MAIN_MENU.value)],
    ]


def priority_fee_menu() -> list[list[Button]]:
    rows: list[list[Button]] = [[(f"{label} ({fee} micro-lamports/CU)", preset_payload(fee))] for fee, label in PRIORITY_FEE_PRESETS]
    rows.append([("Manual Fee (micro-lamports/CU)", ActionKind.SET_PRIORITY_FEE_CUSTOM.value)])
    rows.append([("⬅️ Back to Settings", ActionKind.SHOW_SETTINGS.value)])
    return rows


def trading_menu(address: str, *, refresh: ActionKind = ActionKind.REFRESH) -> list[list[Button]]:
    rows: list[list[Button]] = [
        [(f"🟢 Buy {amount} SOL", buy_payload(amount, address)) for amount in BUY_PRESETS_SOL],
        [("🟢 Buy X SOL", address_payload(ActionKind.BUY_CUSTOM, address))],
        [(f"🔴 Sell {pct}%", sell_payload(pct, address)) for pct in SELL_PRESETS_PERCENT],
        [("🔴 Sell X Amt", address_payload(ActionKind.SELL_CUSTOM, address))],
    ]
    if refresh is ActionKind.REFRESH:
        rows.append(
            [
                ("🔄 Refresh", address_payload(ActionKind.REFRESH, address)),
                ("📈 View PnL", address_payload(ActionKind.VIEW_PNL, address)),
            ]
        )
    else:
        rows.append([("🔄 Refresh PnL", address_payload(ActionKind.REFRESH_PNL, address))])
    return rows


def pnl_menu(address: str) -> list[list[Button]]:
    return trading_menu(address, refresh=ActionKind.REFRESH_PNL)


def pnl_overview_menu(holdings: list[Holdings]) -> list[list[Button]]:
    return [
        [(f"📈 View PnL for {h.token_symbol or '???'}", address_payload(ActionKind.VIEW_PNL, h.token_address))]
        for h in holdings
    ]


# Texts

HELP_TEXT = """I am a Solana token analysis and trading bot.
Features:
- Create or import your Solana wallet.
- Customize trading settings (slippage, priority fee).
- Analyze token contracts for detailed information.
- Execute token trades (buy/sell).
- Track PnL for your holdings.

How to use:
- Send a Solana contract address directly to analyze it.
- Use /start to manage your wallet or access the main menu.
- Use /settings to configure slippage or view your private key.
- Use /pnl to see your profit/loss for held tokens."""


def settings_text(record: UserRecord) -> str:
    wallet = f"Public Key: {short(record.wallet.public_key)}" if record.wallet else "Wallet not set."
    s = record.settings
    return (
        "⚙️ Settings\n"
        f"{wallet}\n"
        f"Current Buy Slippage: {fmt(bps_to_percent(s.buy_slippage_bps), 2)}%\n"
        f"Current Sell Slippage: {fmt(bps_to_percent(s.sell_slippage_bps), 2)}%\n"
        f"Current Priority Fee: {s.priority_fee} micro-lamports/CU\n\n"
        "Select an option:"
    )


def wallet_text(headline: str, public_key: str, private_key: str) -> str:
    return (
        f"✅ {headline}\n"
        f"Your Public Key: {public_key}\n"
        f"Your Private Key: {private_key}\n\n"
        f"{KEY_WARNING}"
    )


def token_analysis_text(metadata: TokenMetadata) -> str:
    token_places = min(metadata.decimals, 6)
    lines = [
        "🪙 TOKEN ANALYSIS",
        "",
        f"Name: {metadata.name}",
        f"Symbol: {metadata.symbol}",
        f"Contract: {metadata.address}",
        f"Decimals: {metadata.decimals}",
        f"Data Source: {metadata.source}",
        f"Price (USD): {usd(metadata.price_usd, 9)}",
        f"24h Volume: {usd(metadata.volume)}",
        f"Market Cap: {usd(metadata.market_cap)}",
        f"Liquidity: {usd(metadata.liquidity)}",
        f"FDV: {usd(metadata.fdv)}",
        f"Total Supply: {fmt(metadata.display_supply, token_places, ROUND_DOWN, grouping=True)}",
        "✅ Verified" if metadata.verified else "⚠️ Unverified",
    ]
    if metadata.mint_authority_disabled is not None:
        lines.append(f"Mint Disabled: {'✅ Yes' if metadata.mint_authority_disabled else '❌ No'}")
    if metadata.freeze_authority_disabled is not None:
        lines.append(f"Freeze Disabled: {'✅ Yes' if metadata.freeze_authority_disabled else '❌ No'}")
    if metadata.launchpad:
        lines.append(f"Launchpad: {metadata.launchpad}")
    if metadata.holder_count is not None:
        lines.append(f"Holders: {metadata.holder_count:,}")
    if metadata.tags:
        lines.append(f"Tags: {', '.join(metadata.tags)}")
    lines += ["", "💰 Ready to trade?"]
    return "\n".join(lines)


def trade_text(event: TradeEvent, tx_hash: str | None) -> str:
    symbol = event.token_symbol or "UNKNOWN_TOKEN"
    amount = fmt(event.token_amount, min(event.token_decimals, 6), ROUND_DOWN)
    sol = fmt(event.counter_asset_amount, 9)
    if event.kind is TradeKind.BUY:
        head, body = "Buy Successful!", f"Bought {amount} {symbol} for {sol} SOL."
    else:
        head, body = "Sell Successful!", f"Sold {amount} {symbol} for {sol} SOL."
    return f"✅ {head}\n{body}\nTransaction: {tx_hash or 'N/A'}"


def pnl_text(report: PnLReport) -> str:
    symbol = report.token_symbol or "???"
    if report.percent_defined:
        percent = f"{fmt(report.display_percent, 2)}%"
    else:
        percent = f"{fmt(report.display_percent, 2)}%, no net cost"
    lines = [
        f"📊 PnL for {symbol} ({short(report.token_address)})",
        "",
        f"Current Holdings: {fmt(report.net_held)} {symbol}",
        f"Avg. Cost Basis (SOL): {fmt(report.avg_cost_basis, 9)} SOL/{symbol}",
        f"Current Price (SOL): {fmt(report.current_price, 9)} SOL/{symbol}",
    ]
    if report.usd is not None:
        lines.append(f"Current Price (USD): {usd(report.usd.token_price_usd, 9)} USD/{symbol}")
    lines += [
        "",
        f"Net SOL Spent: {fmt(report.net_settlement_spent)} SOL",
        f"Current Value (SOL): {fmt(report.current_value)} SOL",
        f"Profit/Loss (SOL): {fmt(report.pnl_absolute)} SOL ({percent})",
    ]
    if report.usd is not None:
        lines += [
            "",
            f"Net USD Spent: {usd(report.usd.net_usd_spent)}",
            f"Current Value (USD): {usd(report.usd.current_value_usd)}",
            f"Profit/Loss (USD): {usd(report.usd.pnl_usd)} ({percent})",
        ]
    return "\n".join(lines)


def pnl_overview_text(holdings: list[Holdings]) -> str:
    lines = ["📊 Your Current Holdings & PnL Overview", ""]
    for h in holdings:
        symbol = h.token_symbol or "???"
        lines.append(f"- {symbol} ({short(h.token_address)}): Held: {fmt(h.net_held)} {symbol}")
    lines += ["", "Select a token to view detailed PnL:"]
    return "\n".join(lines)
