from decimal import Decimal

import pytest

from formatting import (
    format_amount,
    format_compact,
    format_currency,
    format_percentage,
    parse_amount,
    quantize_money,
    to_cents,
)


def test_quantize_money_rounds_half_up() -> None:
    assert quantize_money("2.345") == Decimal("2.35")
    assert quantize_money(0.1) == Decimal("0.10")
    assert quantize_money(7) == Decimal("7.00")
    assert to_cents("12.345") == 1235


def test_quantize_money_rejects_garbage() -> None:
    with pytest.raises(ValueError):
        quantize_money("abc")
    with pytest.raises(ValueError):
        quantize_money(float("nan"))
    with pytest.raises(ValueError):
        quantize_money(None)


def test_format_currency() -> None:
    assert format_currency(Decimal("1234.5")) == "$1,234.50"
    assert format_currency(Decimal("-50")) == "-$50.00"
    assert format_currency(10, "EUR") == "€10.00"
    assert format_currency(10, "CHF") == "CHF 10.00"
    assert format_amount(Decimal("1234.5")) == "1,234.50"


def test_format_compact() -> None:
    assert format_compact(Decimal("1500")) == "$1.5K"
    assert format_compact(Decimal("2000000")) == "$2.0M"
    assert format_compact(Decimal("-1000000000")) == "-$1.0B"
    assert format_compact(Decimal("999.99")) == "$999.99"


def test_format_percentage_guards_non_finite() -> None:
    assert format_percentage(90.0) == "90.0%"
    assert format_percentage(125.456, decimals=2) == "125.46%"
    assert format_percentage(float("nan")) == "0.0%"
    assert format_percentage(float("inf")) == "0.0%"


def test_parse_amount_accepts_symbols_and_separators() -> None:
    assert parse_amount("$12.50") == Decimal("12.50")
    assert parse_amount("12,5 €") == Decimal("12.50")
    assert parse_amount("1.234,56") == Decimal("1234.56")
    assert parse_amount("1,000") == Decimal("1000.00")
    assert parse_amount("$1,234") == Decimal("1234.00")
    assert parse_amount("1,234,567.8") == Decimal("1234567.80")
    assert parse_amount("1,5") == Decimal("1.50")
    with pytest.raises(ValueError):
        parse_amount("   ")
