import math
from decimal import Decimal

import pytest

from elowen_client.core.enums import Currency
from elowen_client.core.exceptions import InvalidCurrency
from elowen_client.services.amounts import (
    fix_decimals,
    format_number,
    from_token_format,
    get_decimals_by_currency,
    to_fixed_down,
    to_token_format,
)


def test_to_token_format_scales_ui_amounts():
    assert to_token_format(1.5) == 1_500_000_000
    assert to_token_format(0.1) == 100_000_000
    assert to_token_format(2, 6) == 2_000_000
    assert to_token_format(7, 0) == 7


def test_to_token_format_keeps_large_values_exact():
    # product above 2**53: the decimal string of the input is used instead
    assert to_token_format(1e10) == 10 ** 19
    assert to_token_format(Decimal("12345678901.123456789")) == 12_345_678_901_123_456_789
    assert to_token_format(10 ** 30, 9) == 10 ** 39


@pytest.mark.parametrize("amount", [-1, -0.5, math.nan, math.inf, True])
def test_to_token_format_rejects_invalid_amounts(amount):
    with pytest.raises(ValueError):
        to_token_format(amount)


@pytest.mark.parametrize(
    "value, decimals",
    [(42.0, 0), (3.0, 0), (1.5, 6), (123.456789, 6), (0.000001, 6), (1.5, 9), (0.123456789, 9)],
)
def test_round_trip(value, decimals):
    assert from_token_format(to_token_format(value, decimals), decimals) == value


def test_from_token_format_accepts_strings():
    assert from_token_format("1500000000") == 1.5
    assert from_token_format(2_500_000, 6) == 2.5


def test_decimals_by_currency():
    assert get_decimals_by_currency(Currency.USDC) == 6
    assert get_decimals_by_currency("sol") == 9
    assert get_decimals_by_currency("ELW") == 9
    with pytest.raises(InvalidCurrency):
        get_decimals_by_currency("BTC")


def test_invalid_currency_is_a_value_error():
    with pytest.raises(ValueError):
        get_decimals_by_currency("DOGE")


def test_fix_decimals_floors():
    assert fix_decimals(1.23456, 2) == 1.23
    assert fix_decimals(0.999, 1) == 0.9


def test_to_fixed_down_truncates():
    assert to_fixed_down(1.999, 2) == 1.99
    assert to_fixed_down(5.7) == 5.0
    assert to_fixed_down(Decimal("0.123456789"), 4) == 0.1234


def test_format_number():
    assert format_number(1234.5) == "1,234.50"
    assert format_number(0) == "0.00"
    assert format_number(0.00012345, 6) == "0.000123"
    assert format_number("2.5", 9) == "2.50"
