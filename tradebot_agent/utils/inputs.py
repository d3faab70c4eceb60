"""Parsing of user-typed numbers (amounts, slippage, fees). Raises ValidationError."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from tradebot_agent.core.exceptions import ValidationError

MIN_SLIPPAGE_PERCENT = Decimal("0.01")
MAX_SLIPPAGE_PERCENT = Decimal("100")
BPS_PER_PERCENT = Decimal(100)


def parse_decimal(text: str, what: str = "Value") -> Decimal:
    raw = (text or "").strip()
    try:
        value = Decimal(raw)
    except InvalidOperation as e:
        raise ValidationError(f"{what} must be a number (got {raw!r}).") from e
    if not value.is_finite():
        raise ValidationError(f"{what} must be a finite number.")
    return value


def parse_positive_amount(text: str, what: str = "Amount") -> Decimal:
    value = parse_decimal(text, what)
    if value <= 0:
        raise ValidationError(f"{what} must be positive.")
    return value


def parse_slippage_bps(text: str) -> int:
    """Percentage in [0.01, 100] -> basis points, rounded half-up."""
    percent = parse_decimal(text, "Slippage")
    if percent < MIN_SLIPPAGE_PERCENT or percent > MAX_SLIPPAGE_PERCENT:
        raise ValidationError("Slippage must be a number between 0.01 and 100.")
    return int((percent * BPS_PER_PERCENT).to_integral_value(rounding=ROUND_HALF_UP))


def parse_priority_fee(text: str) -> int:
    """Non-negative micro-lamports per compute unit, rounded half-up to an integer."""
    fee = parse_decimal(text, "Priority fee")
    if fee < 0:
        raise ValidationError("Priority fee must be a non-negative number.")
    return int(fee.to_integral_value(rounding=ROUND_HALF_UP))


def bps_to_percent(bps: int) -> Decimal:
    return Decimal(bps) / BPS_PER_PERCENT
