import math
from decimal import Decimal, ROUND_DOWN, ROUND_HALF_EVEN, InvalidOperation
from typing import Final, Union

from ..core.constants import TOKEN_DECIMALS, USDC_DECIMALS, SOL_DECIMALS
from ..core.enums import Currency
from ..core.exceptions import InvalidCurrency

Number = Union[int, float, Decimal]

# floats hold every integer exactly only below 2**53
MAX_SAFE_INTEGER: Final[int] = 2 ** 53

DECIMALS_BY_CURRENCY: Final[dict[Currency, int]] = {
    Currency.USDC: USDC_DECIMALS,
    Currency.SOL: SOL_DECIMALS,
    Currency.WSOL: SOL_DECIMALS,
    Currency.ELW: TOKEN_DECIMALS,
}


def to_currency(currency: Union[Currency, str]) -> Currency:
    if isinstance(currency, Currency):
        return currency
    try:
        return Currency(str(currency).upper())
    except ValueError as e:
        raise InvalidCurrency(f"Invalid currency: {currency}") from e


def get_decimals_by_currency(currency: Union[Currency, str]) -> int:
    currency = to_currency(currency)
    if currency not in DECIMALS_BY_CURRENCY:
        raise InvalidCurrency(f"No decimals known for {currency.value}")
    return DECIMALS_BY_CURRENCY[currency]


def _exact_scaled(amount: Number, decimals: int) -> int:
    # repr() gives the shortest decimal string that round-trips the float
    try:
        scaled = Decimal(repr(amount) if isinstance(amount, float) else amount).scaleb(decimals)
        return int(scaled.to_integral_value(rounding=ROUND_HALF_EVEN))
    except (InvalidOperation, ValueError, OverflowError) as e:
        raise ValueError(f"Cannot scale {amount!r} by 10^{decimals}") from e


def to_token_format(amount: Number, decimals: int = TOKEN_DECIMALS) -> int:
    """
    Converts a UI amount (1.5 ELW) into base units (1_500_000_000).

    The float product is used while it stays below 2**53; beyond that, or when
    the multiplication overflows, the integer is built from the decimal string
    of `amount` so no precision is lost.
    """
    if isinstance(amount, bool):
        raise ValueError("Token amount must be a number")
    if isinstance(amount, float) and not math.isfinite(amount):
        raise ValueError(f"Token amount must be finite, got {amount}")
    if amount < 0:
        raise ValueError(f"Token amount must be non-negative, got {amount}")
    if isinstance(amount, int):
        return amount * 10 ** decimals
    if isinstance(amount, Decimal):
        return _exact_scaled(amount, decimals)
    try:
        scaled = amount * 10 ** decimals
    except OverflowError:
        return _exact_scaled(amount, decimals)
    if not math.isfinite(scaled) or scaled >= MAX_SAFE_INTEGER:
        return _exact_scaled(amount, decimals)
    return int(round(scaled))


def from_token_format(amount: Union[int, str], decimals: int = TOKEN_DECIMALS) -> float:
    """Converts base units into a UI float: 1_500_000_000 -> 1.5."""
    return int(str(amount)) / 10 ** decimals


def fix_decimals(value: float, decimals: int) -> float:
    """Floors `value` to `decimals` fractional digits."""
    return math.floor(value * 10 ** decimals) / 10 ** decimals


def to_fixed_down(value: Number, decimals: int = 0) -> float:
    """Truncates `value` toward zero at `decimals` fractional digits, exactly."""
    exact = Decimal(repr(value) if isinstance(value, float) else value)
    return float(exact.quantize(Decimal(1).scaleb(-decimals), rounding=ROUND_DOWN))


def format_number(value: Union[float, str], decimals: int = 2) -> str:
    num = float(value)
    use_decimals = decimals if num < 0.01 and num != 0 else 2
    return f"{num:,.{use_decimals}f}"
