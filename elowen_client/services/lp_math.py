from dataclasses import dataclass
from typing import Union

from ..core.dto import PoolState
from ..core.enums import RoundDirection
from ..core.exceptions import DivisionByZero


@dataclass(frozen=True)
class TradingTokenAmounts:
    elw_amount: int
    quote_amount: int


def checked_div(dividend: int, divisor: int) -> int:
    if divisor == 0:
        raise DivisionByZero("divisor is zero")
    return dividend // divisor


def checked_rem(dividend: int, divisor: int) -> int:
    if divisor == 0:
        raise DivisionByZero("divisor is zero")
    return dividend % divisor


def _non_negative(**values: int) -> None:
    for name, value in values.items():
        if value < 0:
            raise ValueError(f"{name} must be non-negative, got {value}")


def lp_tokens_to_trading_tokens(
    lp_token_amount: int,
    lp_token_supply: int,
    elw_vault_amount: int,
    quote_vault_amount: int,
    round_direction: Union[RoundDirection, str],
) -> TradingTokenAmounts:
    """
    Amounts of both pool tokens backing `lp_token_amount` LP tokens.

    Mirrors the pool program: floor division, and for CEILING a side is bumped
    by one unit only when its division left a remainder and its floored amount
    is non-zero.
    """
    round_direction = RoundDirection(round_direction)
    _non_negative(
        lp_token_amount=lp_token_amount,
        elw_vault_amount=elw_vault_amount,
        quote_vault_amount=quote_vault_amount,
    )

    elw_amount = checked_div(lp_token_amount * elw_vault_amount, lp_token_supply)
    quote_amount = checked_div(lp_token_amount * quote_vault_amount, lp_token_supply)

    if round_direction is RoundDirection.ceiling:
        if checked_rem(lp_token_amount * elw_vault_amount, lp_token_supply) > 0 and elw_amount > 0:
            elw_amount += 1
        if checked_rem(lp_token_amount * quote_vault_amount, lp_token_supply) > 0 and quote_amount > 0:
            quote_amount += 1

    return TradingTokenAmounts(elw_amount=elw_amount, quote_amount=quote_amount)


def trading_tokens_to_lp_tokens(
    elw_amount: int,
    quote_amount: int,
    lp_token_supply: int,
    elw_vault_amount: int,
    quote_vault_amount: int,
    round_direction: Union[RoundDirection, str],
) -> int:
    """
    LP tokens matching a pair of trading token amounts.

    The scarcer side decides (min of both). Deposits use FLOOR so no more LP
    is minted than the transferred tokens back; withdrawals use CEILING so the
    LP burned always covers the tokens taken out.
    """
    round_direction = RoundDirection(round_direction)
    _non_negative(elw_amount=elw_amount, quote_amount=quote_amount, lp_token_supply=lp_token_supply)

    lp_from_elw = checked_div(elw_amount * lp_token_supply, elw_vault_amount)
    lp_from_quote = checked_div(quote_amount * lp_token_supply, quote_vault_amount)
    lp_token_amount = min(lp_from_elw, lp_from_quote)

    if round_direction is RoundDirection.ceiling:
        elw_remainder = checked_rem(elw_amount * lp_token_supply, elw_vault_amount)
        quote_remainder = checked_rem(quote_amount * lp_token_supply, quote_vault_amount)
        if (elw_remainder > 0 or quote_remainder > 0) and lp_token_amount > 0:
            lp_token_amount += 1

    return lp_token_amount


def lp_tokens_for_deposit(
    pool: PoolState,
    elw_vault_amount: int,
    quote_vault_amount: int,
    elw_amount: int,
    quote_amount: int,
) -> int:
    return trading_tokens_to_lp_tokens(
        elw_amount, quote_amount, pool.lp_supply, elw_vault_amount, quote_vault_amount, RoundDirection.floor
    )


def lp_tokens_for_withdraw(
    pool: PoolState,
    elw_vault_amount: int,
    quote_vault_amount: int,
    elw_amount: int,
    quote_amount: int,
) -> int:
    return trading_tokens_to_lp_tokens(
        elw_amount, quote_amount, pool.lp_supply, elw_vault_amount, quote_vault_amount, RoundDirection.ceiling
    )
