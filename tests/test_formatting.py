"""Tests for money display formatting."""

import pytest
from decimal import Decimal

from lifeledger.formatting import currency_symbol, format_money
from lifeledger.models.records import Currency


class TestCurrencySymbol:
    @pytest.mark.parametrize(
        "currency,symbol",
        [
            (Currency.USD, "$"),
            (Currency.GBP, "£"),
            (Currency.EUR, "€"),
            ("EUR", "€"),
            ("JPY", "£"),
            (None, "£"),
        ],
    )
    def test_symbols(self, currency, symbol):
        assert currency_symbol(currency) == symbol


class TestFormatMoney:
    def test_always_two_decimals(self):
        assert format_money(Decimal("12.5"), "EUR") == "€12.50"
        assert format_money(3, Currency.USD) == "$3.00"
        assert format_money("1800", Currency.GBP) == "£1800.00"

    def test_rounds_half_up(self):
        assert format_money(Decimal("2.675")) == "£2.68"

    def test_default_and_none(self):
        assert format_money(None) == "£0.00"
        assert format_money(Decimal("7"), "XYZ") == "£7.00"
