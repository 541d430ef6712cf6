"""
Display formatting for money amounts.

Amounts are always shown with the currency symbol and exactly
two decimal places. No conversion happens here.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Union

from lifeledger.models.records import Currency

# Used for any code outside the supported set
DEFAULT_SYMBOL = "£"

TWO_PLACES = Decimal("0.01")


def currency_symbol(currency: Union[Currency, str, None]) -> str:
    """
    Symbol for a currency code.

    Unrecognised codes (and None) fall back to the pound sign,
    matching how the app has always rendered unknown currencies.
    """
    try:
        code = Currency(currency)
    except ValueError:
        return DEFAULT_SYMBOL

    if code is Currency.USD:
        return "$"
    elif code is Currency.GBP:
        return "£"
    elif code is Currency.EUR:
        return "€"
    return DEFAULT_SYMBOL


def format_money(
    amount: Union[Decimal, int, float, str, None],
    currency: Union[Currency, str, None] = Currency.GBP,
) -> str:
    """Format an amount for display, e.g. ``(12.5, "EUR")`` -> ``€12.50``."""
    value = Decimal(str(amount)) if amount is not None else Decimal("0")
    value = value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)
    return f"{currency_symbol(currency)}{value}"
