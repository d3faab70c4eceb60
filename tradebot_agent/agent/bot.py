"""
Trading agent: the single entry point a chat transport (or the console driver)
talks to.

Responsibilities:
- Route /commands, free text and menu callbacks for one user at a time
  (one asyncio.Lock per user id; different users never wait on each other).
- Feed pending-input text to the conversation machine before anything else.
- Turn every TradebotError into a failed Reply; nothing here crashes the loop.
"""

from __future__ import annotations

import asyncio
from dataclasses import replace
from typing import Any, Awaitable, Callable

from tradebot_agent.agent import views
from tradebot_agent.agent.actions import Action, parse_action
from tradebot_agent.conversation.machine import ConversationMachine
from tradebot_agent.conversation.states import (
    AwaitingBuySlippage,
    AwaitingCustomBuyAmount,
    AwaitingCustomPriorityFee,
    AwaitingCustomSellAmount,
    AwaitingPrivateKey,
    AwaitingSellSlippage,
    ConversationState,
)
from tradebot_agent.core.exceptions import TradebotError, ValidationError, WalletMissingError
from tradebot_agent.core.replies import Reply
from tradebot_agent.gateway.base import PriceGateway
from tradebot_agent.ledger.engine import Ledger
from tradebot_agent.pnl.engine import PnLService
from tradebot_agent.pnl.models import NoHoldings, PnLReport, PriceUnavailable
from tradebot_agent.store.models import UserRecord, Wallet
from tradebot_agent.store.record_store import RecordStore, normalize_user_id
from tradebot_agent.trading.executor import TradeExecutor
from tradebot_agent.trading.service import NO_WALLET_TEXT, TradeOutcome, TradingService
from tradebot_agent.tradebot_logging import bind_user, get_logger
from tradebot_agent.utils.inputs import (
    bps_to_percent,
    parse_positive_amount,
    parse_priority_fee,
    parse_slippage_bps,
)
from tradebot_agent.utils.wallet_utils import (
    generate_keypair,
    is_valid_address,
    keypair_from_private_key,
    looks_like_address,
)

logger = get_logger(__name__)

SAVE_FAILED_TEXT = "Failed to save your changes. Please try again."


class TradingAgent:
    def __init__(
        self,
        store: RecordStore,
        gateway: PriceGateway,
        executor: TradeExecutor,
    ) -> None:
        self.store = store
        self.gateway = gateway
        self.ledger = Ledger(store)
        self.trading = TradingService(store, self.ledger, gateway, executor)
        self.pnl = PnLService(self.ledger, gateway)
        self.machine = ConversationMachine(store)
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}

        self.machine.register(AwaitingPrivateKey, self._on_private_key)
        self.machine.register(AwaitingBuySlippage, self._on_buy_slippage)
        self.machine.register(AwaitingSellSlippage, self._on_sell_slippage)
        self.machine.register(AwaitingCustomPriorityFee, self._on_priority_fee)
        self.machine.register(AwaitingCustomBuyAmount, self._on_custom_buy)
        self.machine.register(AwaitingCustomSellAmount, self._on_custom_sell)

        self._commands: dict[str, Callable[[str], Awaitable[Reply]]] = {
            "start": self._start,
            "help": self._help,
            "settings": self._settings,
            "pnl": self._pnl_overview,
        }

    # Entry points

    async def handle_command(self, user_id: Any, command: str) -> Reply:
        """/start, /help, /settings, /pnl. Also accepts /cmd@botname."""
        parts = (command or "").strip().split(maxsplit=1)
        name = parts[0].lstrip("/").split("@", 1)[0].lower() if parts else ""
        handler = self._commands.get(name)
        if handler is None:
            return Reply.failure("Unknown command. Use /start, /help, /settings or /pnl.")
        uid = normalize_user_id(user_id)
        return await self._locked(uid, "command", lambda: handler(uid))

    async def handle_text(self, user_id: Any, text: str) -> Reply:
        """Free text: pending prompt first, then token address, else a hint."""
        if (text or "").startswith("/"):
            return await self.handle_command(user_id, text)
        uid = normalize_user_id(user_id)
        return await self._locked(uid, "text", lambda: self._text(uid, text or ""))

    async def handle_action(self, user_id: Any, data: str) -> Reply:
        """Menu button callback data."""
        uid = normalize_user_id(user_id)
        return await self._locked(uid, "action", lambda: self._action(uid, data))

    def lock_for(self, user_id: Any) -> asyncio.Lock:
        uid = normalize_user_id(user_id)
        lock = self._locks.get(uid)
        if lock is None:
            lock = self._locks[uid] = asyncio.Lock()
        return lock

    async def _locked(self, uid: str, kind: str, call: Callable[[], Awaitable[Reply]]) -> Reply:
        log = bind_user(uid)
        lock = self.lock_for(uid)
        self._lock_users[uid] = self._lock_users.get(uid, 0) + 1
        try:
            async with lock:
                try:
                    return await call()
                except TradebotError as e:
                    log.warning("agent_request_failed", kind=kind, error=e.code, message=e.message)
                    return Reply.from_error(e)
                except Exception:
                    log.exception("agent_request_crashed", kind=kind)
                    return Reply.failure("An unexpected error occurred. Please try again.")
        finally:
            # last request out drops the lock so idle users cost nothing
            remaining = self._lock_users[uid] - 1
            if remaining:
                self._lock_users[uid] = remaining
            else:
                del self._lock_users[uid]
                self._locks.pop(uid, None)

    # Commands

    async def _start(self, uid: str) -> Reply:
        record = self.store.load(uid)
        if record.wallet is not None:
            return Reply(
                text=f"Welcome back! Your wallet ({views.short(record.wallet.public_key)}) is loaded. Choose an option:",
                menu=views.main_menu(),
                data={"has_wallet": True},
            )
        return Reply(
            text="Welcome! You don't have a wallet yet. Please choose an option below:",
            menu=views.wallet_setup_menu(),
            data={"has_wallet": False},
        )

    async def _help(self, uid: str) -> Reply:
        return Reply(text=views.HELP_TEXT, menu=views.main_menu())

    async def _settings(self, uid: str) -> Reply:
        record = self.store.load(uid)
        return Reply(
            text=views.settings_text(record),
            menu=views.settings_menu(),
            data={"settings": record.settings.to_dict()},
        )

    async def _pnl_overview(self, uid: str) -> Reply:
        self._require_wallet(self.store.load(uid))
        holdings = await self.pnl.overview(uid)
        if not holdings:
            return Reply(text="You have no recorded buy/sell transactions yet, or no tokens are currently held.")
        return Reply(
            text=views.pnl_overview_text(holdings),
            menu=views.pnl_overview_menu(holdings),
            data={"holdings": [h.to_dict() for h in holdings]},
        )

    # Free text

    async def _text(self, uid: str, text: str) -> Reply:
        reply = await self.machine.consume(uid, text)
        if reply is not None:
            return reply
        candidate = text.strip()
        if looks_like_address(candidate):
            return await self._analyze(candidate)
        return Reply.failure("I don't understand that. Please send a Solana contract address or use /start or /settings.")

    async def _analyze(self, address: str) -> Reply:
        if not is_valid_address(address):
            raise ValidationError("Invalid contract address.", details={"token_address": address})
        metadata = await self.gateway.get_token_metadata(address)
        logger.info("token_analyzed", token_address=address, symbol=metadata.symbol)
        return Reply(
            text=views.token_analysis_text(metadata),
            menu=views.trading_menu(address),
            data={"token": metadata.to_dict()},
        )

    # Pending-input handlers: machine.consume() has already cleared the state.

    async def _on_private_key(self, uid: str, state: ConversationState, text: str) -> Reply:
        keypair = keypair_from_private_key(text.strip())
        record = self.store.load(uid)
        record.wallet = Wallet.from_keypair(keypair)
        if not self.store.save(uid, record):
            return Reply.failure("Failed to save wallet. Please try again.")
        logger.info("wallet_imported", user_id=uid, public_key=record.wallet.public_key)
        return Reply(
            text=views.wallet_text("Wallet successfully imported!", record.wallet.public_key, record.wallet.private_key),
            menu=views.main_menu(),
            data={"public_key": record.wallet.public_key},
        )

    async def _update_settings(self, uid: str, text: str, **changes: int) -> Reply:
        record = self.store.load(uid)
        record.settings = replace(record.settings, **changes)
        if not self.store.save(uid, record):
            return Reply.failure(SAVE_FAILED_TEXT)
        return Reply(text=text, menu=views.settings_menu(), data={"settings": record.settings.to_dict()})

    async def _on_buy_slippage(self, uid: str, state: ConversationState, text: str) -> Reply:
        bps = parse_slippage_bps(text)
        return await self._update_settings(
            uid,
            f"✅ Buy Slippage successfully set to {views.fmt(bps_to_percent(bps), 2)}%.",
            buy_slippage_bps=bps,
        )

    async def _on_sell_slippage(self, uid: str, state: ConversationState, text: str) -> Reply:
        bps = parse_slippage_bps(text)
        return await self._update_settings(
            uid,
            f"✅ Sell Slippage successfully set to {views.fmt(bps_to_percent(bps), 2)}%.",
            sell_slippage_bps=bps,
        )

    async def _on_priority_fee(self, uid: str, state: ConversationState, text: str) -> Reply:
        fee = parse_priority_fee(text)
        return await self._update_settings(
            uid,
            f"✅ Custom Priority Fee successfully set to {fee} micro-lamports/CU.",
            priority_fee=fee,
        )

    async def _on_custom_buy(self, uid: str, state: AwaitingCustomBuyAmount, text: str) -> Reply:
        amount = parse_positive_amount(text)
        outcome = await self.trading.buy(uid, state.target_token_address, amount)
        return await self._trade_reply(uid, outcome)

    async def _on_custom_sell(self, uid: str, state: AwaitingCustomSellAmount, text: str) -> Reply:
        amount = parse_positive_amount(text)
        outcome = await self.trading.sell_amount(uid, state.target_token_address, amount)
        return await self._trade_reply(uid, outcome)

    # Menu actions

    async def _action(self, uid: str, data: str) -> Reply:
        action = parse_action(data)
        logger.debug("agent_action", user_id=uid, action=action.kind.value, token_address=action.token_address)
        handler = getattr(self, f"_act_{action.kind.name.lower()}")
        return await handler(uid, action)

    async def _act_create_wallet(self, uid: str, action: Action) -> Reply:
        record = self.store.load(uid)
        record.wallet = Wallet.from_keypair(generate_keypair())
        if not self.store.save(uid, record):
            return Reply.failure("Failed to create wallet. Please try again.")
        logger.info("wallet_created", user_id=uid, public_key=record.wallet.public_key)
        return Reply(
            text=views.wallet_text("New wallet successfully created!", record.wallet.public_key, record.wallet.private_key),
            menu=views.main_menu(),
            data={"public_key": record.wallet.public_key},
        )

    async def _act_import_wallet(self, uid: str, action: Action) -> Reply:
        return self._prompt(
            uid,
            AwaitingPrivateKey(),
            f"Please send your Solana wallet private key in Base58 format.\n\n{views.KEY_WARNING}",
        )

    async def _act_view_private_key(self, uid: str, action: Action) -> Reply:
        record = self.store.load(uid)
        wallet = self._require_wallet(record)
        return Reply(
            text=(
                f"🔒 Your Private Key: {wallet.private_key}\n\n"
                "WARNING: This key grants full access to your funds. Do NOT share it with anyone."
            ),
        )

    async def _act_show_main_menu(self, uid: str, action: Action) -> Reply:
        return Reply(text="Choose an option from the main menu:", menu=views.main_menu())

    async def _act_show_settings(self, uid: str, action: Action) -> Reply:
        return await self._settings(uid)

    async def _act_show_help(self, uid: str, action: Action) -> Reply:
        return await self._help(uid)

    async def _act_show_pnl_overview(self, uid: str, action: Action) -> Reply:
        return await self._pnl_overview(uid)

    async def _act_set_slippage_buy(self, uid: str, action: Action) -> Reply:
        current = self.store.load(uid).settings.buy_slippage_bps
        return self._prompt(
            uid,
            AwaitingBuySlippage(),
            f"Current Buy Slippage is {views.fmt(bps_to_percent(current), 2)}%. "
            "Please enter the new Buy slippage percentage (e.g., 0.5 for 0.5%, 1 for 1%). Min: 0.01, Max: 100.",
        )

    async def _act_set_slippage_sell(self, uid: str, action: Action) -> Reply:
        current = self.store.load(uid).settings.sell_slippage_bps
        return self._prompt(
            uid,
            AwaitingSellSlippage(),
            f"Current Sell Slippage is {views.fmt(bps_to_percent(current), 2)}%. "
            "Please enter the new Sell slippage percentage (e.g., 0.5 for 0.5%, 1 for 1%). Min: 0.01, Max: 100.",
        )

    async def _act_set_priority_fee(self, uid: str, action: Action) -> Reply:
        fee = self.store.load(uid).settings.priority_fee
        return Reply(
            text=f"⚡ Set Priority Fee\nCurrent Fee: {fee} micro-lamports/CU\n\nChoose a preset or enter a custom value:",
            menu=views.priority_fee_menu(),
        )

    async def _act_set_priority_fee_preset(self, uid: str, action: Action) -> Reply:
        fee = int(action.amount())
        return await self._update_settings(
            uid,
            f"✅ Priority Fee successfully set to {fee} micro-lamports/CU.",
            priority_fee=fee,
        )

    async def _act_set_priority_fee_custom(self, uid: str, action: Action) -> Reply:
        return self._prompt(
            uid,
            AwaitingCustomPriorityFee(),
            "Please enter the desired custom priority fee in micro-lamports per Compute Unit (e.g., 1, 10, 100).",
        )

    async def _act_buy_custom(self, uid: str, action: Action) -> Reply:
        address = action.address()
        self._require_wallet(self.store.load(uid))
        return self._prompt(
            uid,
            AwaitingCustomBuyAmount(target_token_address=address),
            f"Please enter the amount of SOL you want to spend (e.g., 0.05, 1, 2.5) for token {views.short(address)}.",
        )

    async def _act_sell_custom(self, uid: str, action: Action) -> Reply:
        address = action.address()
        self._require_wallet(self.store.load(uid))
        holdings = self.ledger.holdings_for(uid, address)
        symbol = holdings.token_symbol or "tokens"
        return self._prompt(
            uid,
            AwaitingCustomSellAmount(target_token_address=address),
            f"You currently hold {views.fmt(max(holdings.net_held, 0))} {symbol}.\n"
            f"Please enter the amount of {symbol} you want to sell (e.g., 100, 5000, 0.01) for token {views.short(address)}.",
        )

    async def _act_view_pnl(self, uid: str, action: Action) -> Reply:
        return await self._pnl_reply(uid, action.address())

    async def _act_refresh_pnl(self, uid: str, action: Action) -> Reply:
        return await self._pnl_reply(uid, action.address())

    async def _act_refresh(self, uid: str, action: Action) -> Reply:
        return await self._analyze(action.address())

    async def _act_buy(self, uid: str, action: Action) -> Reply:
        outcome = await self.trading.buy(uid, action.address(), action.amount())
        return await self._trade_reply(uid, outcome)

    async def _act_sell(self, uid: str, action: Action) -> Reply:
        outcome = await self.trading.sell_percent(uid, action.address(), action.amount())
        return await self._trade_reply(uid, outcome)

    # Helpers

    @staticmethod
    def _require_wallet(record: UserRecord) -> Wallet:
        if record.wallet is None:
            raise WalletMissingError(NO_WALLET_TEXT)
        return record.wallet

    def _prompt(self, uid: str, state: ConversationState, text: str) -> Reply:
        if not self.machine.enter(uid, state):
            return Reply.failure(SAVE_FAILED_TEXT)
        return Reply(text=text, data={"state": state.tag.value})

    async def _pnl_reply(self, uid: str, address: str) -> Reply:
        result = await self.pnl.pnl_for(uid, address)
        if isinstance(result, PnLReport):
            return Reply(text=views.pnl_text(result), menu=views.pnl_menu(address), data={"pnl": result.to_dict()})
        if isinstance(result, PriceUnavailable):
            return Reply.failure(
                f"Could not get a current price for {views.short(address)}: {result.reason}",
                token_address=address,
                reason="price_unavailable",
            )
        symbol = (result.holdings.token_symbol if result.holdings else None) or "???"
        return Reply(
            text=(
                f"You no longer hold any {symbol} ({views.short(address)}) token. "
                "All tokens have been sold or you never bought any."
            ),
            data={"token_address": address, "reason": result.reason},
        )

    async def _trade_reply(self, uid: str, outcome: TradeOutcome) -> Reply:
        event = outcome.event
        text = views.trade_text(event, outcome.tx_hash)
        data: dict[str, Any] = {"tx_hash": outcome.tx_hash, "event": event.to_dict()}
        pnl = await self.pnl.pnl_for(uid, event.token_address)
        if isinstance(pnl, PnLReport):
            text = f"{text}\n\n{views.pnl_text(pnl)}"
            data["pnl"] = pnl.to_dict()
        elif isinstance(pnl, NoHoldings):
            data["pnl"] = None
        return Reply(text=text, menu=views.pnl_menu(event.token_address), data=data)
