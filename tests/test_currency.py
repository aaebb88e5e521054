"""
Tests for currency display helpers.
"""

import math

import pytest

from dbef.finance.currency import (
    currency_symbol,
    format_compact,
    format_currency,
    format_multiple_currencies,
    format_percentage,
    is_supported_currency,
    parse_currency,
    supported_currencies,
)


class TestFormatCurrency:
    """Tests for format_currency."""

    @pytest.mark.parametrize(
        "code,value,expected",
        [
            ("USD", 1234.5, "$1,234.50"),
            ("EUR", "99.9", "€99.90"),
            ("JPY", 1234.4, "¥1,234"),
            ("KES", 1000000, "KSh1,000,000.00"),
        ],
    )
    def test_symbols_and_decimals(self, code, value, expected):
        assert format_currency(code, value) == expected

    def test_negative_sign_before_symbol(self):
        assert format_currency("USD", -42) == "-$42.00"

    def test_lowercase_code(self):
        assert format_currency("gbp", 5) == "£5.00"

    def test_unknown_code_uses_code_as_symbol(self):
        assert format_currency("ABC", 10) == "ABC10.00"

    def test_missing_value_is_zero(self):
        assert format_currency("USD", None) == "$0.00"
        assert format_currency("USD", "not a number") == "$0.00"

    def test_options(self):
        assert format_currency("USD", 5, show_code=True) == "$5.00 USD"
        assert format_currency("USD", 5, show_symbol=False) == "5.00"
        assert format_currency("USD", 1234.56, decimals=0) == "$1,235"

    def test_compact(self):
        assert format_currency("USD", 1_500_000, compact=True) == "$1.5M"
        assert format_currency("USD", 999, compact=True) == "$999.00"

    def test_format_compact(self):
        assert format_compact(2_300_000_000) == "2.3B"
        assert format_compact(12_400) == "12.4K"
        assert format_compact(12) == "12"


class TestCurrencyHelpers:
    """Tests for the remaining helpers."""

    def test_symbol_lookup(self):
        assert currency_symbol("NGN") == "₦"
        assert currency_symbol("XYZ") == "XYZ"

    def test_supported(self):
        assert is_supported_currency("usd")
        assert not is_supported_currency("XYZ")
        assert "GHS" in supported_currencies()

    def test_parse_currency(self):
        assert parse_currency("$1,234.56") == 1234.56
        assert parse_currency("-€10.00") == -10.0
        assert parse_currency("") == 0.0
        assert parse_currency("abc") == 0.0

    def test_multiple_currencies(self):
        formatted = format_multiple_currencies(
            [{"currency": "usd", "amount": "10"}, {"currency": "EUR", "amount": None}]
        )
        assert formatted == [
            {"currency": "USD", "formatted": "$10.00", "amount": 10.0},
            {"currency": "EUR", "formatted": "€0.00", "amount": 0.0},
        ]


class TestFormatPercentage:
    """Tests for format_percentage."""

    def test_regular(self):
        assert format_percentage(12.5, decimals=1) == "12.5%"
        assert format_percentage(50) == "50.00%"

    def test_missing(self):
        assert format_percentage(None) == "N/A"
        assert format_percentage(math.nan) == "N/A"

    def test_infinite(self):
        assert format_percentage(math.inf) == "∞%"
        assert format_percentage(-math.inf) == "-∞%"
