"""
Callback-data grammar for menu buttons.

Button payloads are plain strings such as ``buy_0.05_<mint>`` or
``set_priority_fee_preset_3``. parse_action() turns them into a typed Action
and rejects anything malformed with ValidationError; the builders below are
the only place payloads are produced.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from tradebot_agent.core.exceptions import ValidationError
from tradebot_agent.utils.inputs import parse_decimal
from tradebot_agent.utils.wallet_utils import looks_like_address


class ActionKind(str, Enum):
    CREATE_WALLET = "create_wallet"
    IMPORT_WALLET = "import_wallet"
    VIEW_PRIVATE_KEY = "view_private_key"
    SHOW_MAIN_MENU = "show_main_menu"
    SHOW_SETTINGS = "show_settings"
    SHOW_HELP = "show_help"
    SHOW_PNL_OVERVIEW = "show_pnl_overview"
    SET_SLIPPAGE_BUY = "set_slippage_buy"
    SET_SLIPPAGE_SELL = "set_slippage_sell"
    SET_PRIORITY_FEE = "set_priority_fee"
    SET_PRIORITY_FEE_CUSTOM = "set_priority_fee_custom"
    SET_PRIORITY_FEE_PRESET = "set_priority_fee_preset"
    BUY_CUSTOM = "buy_x_sol"
    SELL_CUSTOM = "sell_x_amount"
    VIEW_PNL = "view_pnl"
    REFRESH_PNL = "refresh_pnl"
    REFRESH = "refresh"
    BUY = "buy"
    SELL = "sell"


# Actions whose payload is exactly the kind's value.
_PLAIN = {
    ActionKind.CREATE_WALLET,
    ActionKind.IMPORT_WALLET,
    ActionKind.VIEW_PRIVATE_KEY,
    ActionKind.SHOW_MAIN_MENU,
    ActionKind.SHOW_SETTINGS,
    ActionKind.SHOW_HELP,
    ActionKind.SHOW_PNL_OVERVIEW,
    ActionKind.SET_SLIPPAGE_BUY,
    ActionKind.SET_SLIPPAGE_SELL,
    ActionKind.SET_PRIORITY_FEE,
    ActionKind.SET_PRIORITY_FEE_CUSTOM,
}

# "<prefix>_<address>"; longer prefixes first so refresh_pnl_ wins over refresh_.
_ADDRESS_ONLY = (
    ActionKind.BUY_CUSTOM,
    ActionKind.SELL_CUSTOM,
    ActionKind.REFRESH_PNL,
    ActionKind.VIEW_PNL,
    ActionKind.REFRESH,
)


@dataclass(frozen=True)
class Action:
    kind: ActionKind
    token_address: str | None = None
    value: Decimal | None = None

    def address(self) -> str:
        """token_address, for kinds whose callback data carries one."""
        if self.token_address is None:
            raise ValidationError(f"Action {self.kind.value} has no token address.")
        return self.token_address

    def amount(self) -> Decimal:
        if self.value is None:
            raise ValidationError(f"Action {self.kind.value} has no value.")
        return self.value


def _address(raw: str, data: str) -> str:
    address = raw.strip()
    if "_" in address or not looks_like_address(address):
        raise ValidationError(
            "Invalid token address in callback data. Please try analyzing the token again.",
            details={"action": data},
        )
    return address


def parse_action(data: str) -> Action:
    """Parse one callback payload. Unknown or malformed payloads raise ValidationError."""
    raw = (data or "").strip()
    for kind in _PLAIN:
        if raw == kind.value:
            return Action(kind)

    preset_prefix = ActionKind.SET_PRIORITY_FEE_PRESET.value + "_"
    if raw.startswith(preset_prefix):
        value = parse_decimal(raw[len(preset_prefix):], "Priority fee preset")
        if value < 0 or value != value.to_integral_value():
            raise ValidationError("Invalid preset value. Please try again.")
        return Action(ActionKind.SET_PRIORITY_FEE_PRESET, value=value)

    for kind in _ADDRESS_ONLY:
        prefix = kind.value + "_"
        if raw.startswith(prefix):
            return Action(kind, token_address=_address(raw[len(prefix):], raw))

    head, sep, rest = raw.partition("_")
    if sep and head in (ActionKind.BUY.value, ActionKind.SELL.value):
        amount, sep, address = rest.partition("_")
        if sep:
            kind = ActionKind(head)
            what = "Amount" if kind is ActionKind.BUY else "Percentage"
            return Action(kind, token_address=_address(address, raw), value=parse_decimal(amount, what))

    raise ValidationError(
        "An unknown action was requested. Please try again or use /start.",
        details={"action": raw},
    )


def buy_payload(amount: Decimal | str, address: str) -> str:
    return f"{ActionKind.BUY.value}_{amount}_{address}"


def sell_payload(percent: Decimal | int | str, address: str) -> str:
    return f"{ActionKind.SELL.value}_{percent}_{address}"


def address_payload(kind: ActionKind, address: str) -> str:
    return f"{kind.value}_{address}"


def preset_payload(fee: int) -> str:
    return f"{ActionKind.SET_PRIORITY_FEE_PRESET.value}_{fee}"
