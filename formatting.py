import math
import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Union

Number = Union[Decimal, int, float, str]

CENT = Decimal("0.01")

CURRENCY_SYMBOLS = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
}

_GROUPED_THOUSANDS = re.compile(r"^-?\d{1,3}(,\d{3})+$")

_COMPACT_STEPS = (
    (Decimal("1000000000"), "B"),
    (Decimal("1000000"), "M"),
    (Decimal("1000"), "K"),
)


def quantize_money(value: Number) -> Decimal:
    """Round a monetary value to cents, half away from zero.

    Floats go through ``str`` so 0.1 becomes Decimal("0.10") and not the
    binary expansion of 0.1.
    """
    if isinstance(value, float):
        value = str(value)
    try:
        amount = Decimal(value)
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise ValueError("Invalid amount") from exc
    if not amount.is_finite():
        raise ValueError("Invalid amount")
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def to_cents(value: Number) -> int:
    return int(quantize_money(value) * 100)


def from_cents(cents: int) -> Decimal:
    return (Decimal(cents) / 100).quantize(CENT)


def currency_prefix(currency_code: str) -> str:
    code = currency_code.upper()
    return CURRENCY_SYMBOLS.get(code, f"{code} ")


def format_amount(amount: Number) -> str:
    return f"{quantize_money(amount):,.2f}"


def format_currency(amount: Number, currency_code: str = "USD") -> str:
    value = quantize_money(amount)
    sign = "-" if value < 0 else ""
    return f"{sign}{currency_prefix(currency_code)}{abs(value):,.2f}"


def format_compact(amount: Number, currency_code: str = "USD") -> str:
    value = quantize_money(amount)
    magnitude = abs(value)
    for step, suffix in _COMPACT_STEPS:
        if magnitude >= step:
            sign = "-" if value < 0 else ""
            scaled = (magnitude / step).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
            return f"{sign}{currency_prefix(currency_code)}{scaled}{suffix}"
    return format_currency(value, currency_code)


def format_percentage(value: float, decimals: int = 1) -> str:
    if value is None or math.isnan(value) or math.isinf(value):
        value = 0.0
    return f"{value:.{decimals}f}%"


def parse_amount(value: str) -> Decimal:
    clean = value.strip()
    for symbol in CURRENCY_SYMBOLS.values():
        clean = clean.replace(symbol, "")
    clean = clean.replace(" ", "")
    if "," in clean and "." in clean:
        # whichever separator comes last is the decimal point
        if clean.rfind(",") > clean.rfind("."):
            clean = clean.replace(".", "").replace(",", ".")
        else:
            clean = clean.replace(",", "")
    elif _GROUPED_THOUSANDS.match(clean):
        clean = clean.replace(",", "")
    else:
        clean = clean.replace(",", ".")
    if clean.count(".") > 1:
        parts = clean.split(".")
        clean = "".join(parts[:-1]) + "." + parts[-1]
    if not clean:
        raise ValueError("Invalid amount")
    return quantize_money(clean)
