# utils/currency.py
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Iterable, Optional, Union

from app.core.errors import ClientInputError, INVALID_AMOUNT

Number = Union[int, float, str, Decimal]

CURRENCY_SYMBOLS = {
    "gbp": "£",
    "usd": "$",
    "eur": "€",
}

HUNDRED = Decimal("100")


def normalize_currency(code: Optional[str], supported: Iterable[str], fallback: str) -> str:
    """Lower-case ``code``; anything unrecognised (or missing) becomes ``fallback``."""
    fallback = fallback.lower()
    if not isinstance(code, str):
        return fallback
    code = code.strip().lower()
    return code if code in set(supported) else fallback


def parse_amount(value: Optional[Number]) -> Optional[Decimal]:
    """Parse a JSON amount (number or numeric string) into a Decimal in major units."""
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float, str, Decimal)):
        raise ClientInputError(INVALID_AMOUNT, "Amount must be a number")
    try:
        amount = Decimal(value.strip()) if isinstance(value, str) else Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ClientInputError(INVALID_AMOUNT, "Amount must be a number")
    if not amount.is_finite():
        raise ClientInputError(INVALID_AMOUNT, "Amount must be a finite number")
    return amount


def to_minor_units(amount: Decimal) -> int:
    # Round half away from zero on the decimal value: 1.005 -> 101
    return int((amount * HUNDRED).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def from_minor_units(minor: Optional[int]) -> float:
    return (minor or 0) / 100


def format_money(amount: Number, currency: str) -> str:
    value = Decimal(str(amount)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    symbol = CURRENCY_SYMBOLS.get(currency.lower())
    if symbol:
        return f"{symbol}{value:,.2f}"
    return f"{value:,.2f} {currency.upper()}"


def amount_str(amount: Optional[Decimal]) -> str:
    """Serialise an amount for Stripe metadata (plain decimal string)."""
    if amount is None:
        return "0"
    return format(amount.normalize(), "f") if amount == amount.to_integral() else format(amount, "f")
