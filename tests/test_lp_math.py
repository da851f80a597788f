import itertools

import pytest
from solders.pubkey import Pubkey

from elowen_client.core.dto import PoolState
from elowen_client.core.enums import RoundDirection
from elowen_client.core.exceptions import DivisionByZero
from elowen_client.services.lp_math import (
    TradingTokenAmounts,
    lp_tokens_for_deposit,
    lp_tokens_for_withdraw,
    lp_tokens_to_trading_tokens,
    trading_tokens_to_lp_tokens,
)


def make_pool(lp_supply: int) -> PoolState:
    keys = [Pubkey.new_unique() for _ in range(10)]
    return PoolState(
        *keys,
        bump=255,
        status=0,
        lp_decimals=9,
        elw_decimals=9,
        quote_decimals=6,
        lp_supply=lp_supply,
        elw_protocol_fees=0,
        quote_protocol_fees=0,
        elw_fund_fees=0,
        quote_fund_fees=0,
        open_time=0,
    )


def test_lp_to_trading_tokens_example():
    assert lp_tokens_to_trading_tokens(3, 1000, 500, 2000, RoundDirection.floor) == TradingTokenAmounts(1, 6)
    assert lp_tokens_to_trading_tokens(3, 1000, 500, 2000, RoundDirection.ceiling) == TradingTokenAmounts(2, 6)


def test_zero_lp_gives_nothing():
    for direction in RoundDirection:
        assert lp_tokens_to_trading_tokens(0, 1000, 500, 2000, direction) == TradingTokenAmounts(0, 0)


def test_ceiling_does_not_bump_floored_zero():
    # 1 * 1 / 1000 leaves a remainder but floors to zero
    assert lp_tokens_to_trading_tokens(1, 1000, 1, 1, RoundDirection.ceiling) == TradingTokenAmounts(0, 0)


def test_zero_supply_raises():
    with pytest.raises(DivisionByZero):
        lp_tokens_to_trading_tokens(1, 0, 500, 2000, RoundDirection.floor)
    with pytest.raises(ZeroDivisionError):
        lp_tokens_to_trading_tokens(1, 0, 500, 2000, RoundDirection.ceiling)


def test_zero_reserve_raises():
    with pytest.raises(DivisionByZero):
        trading_tokens_to_lp_tokens(1, 1, 1000, 0, 2000, RoundDirection.floor)


def test_round_direction_from_string():
    assert trading_tokens_to_lp_tokens(3, 13, 1000, 500, 2000, "ceiling") == 7
    with pytest.raises(ValueError):
        trading_tokens_to_lp_tokens(3, 13, 1000, 500, 2000, "up")


def test_negative_amounts_rejected():
    with pytest.raises(ValueError):
        lp_tokens_to_trading_tokens(-1, 1000, 500, 2000, RoundDirection.floor)
    with pytest.raises(ValueError):
        trading_tokens_to_lp_tokens(1, -1, 1000, 500, 2000, RoundDirection.floor)


def test_ceiling_within_one_of_floor():
    for lp, supply, elw, quote in itertools.product([0, 1, 7, 999], [1, 3, 1000], [1, 500, 10 ** 12], [2, 2000]):
        floor = lp_tokens_to_trading_tokens(lp, supply, elw, quote, RoundDirection.floor)
        ceiling = lp_tokens_to_trading_tokens(lp, supply, elw, quote, RoundDirection.ceiling)
        assert floor.elw_amount <= ceiling.elw_amount <= floor.elw_amount + 1
        assert floor.quote_amount <= ceiling.quote_amount <= floor.quote_amount + 1

        lp_floor = trading_tokens_to_lp_tokens(elw, quote, supply, elw + 1, quote + 3, RoundDirection.floor)
        lp_ceiling = trading_tokens_to_lp_tokens(elw, quote, supply, elw + 1, quote + 3, RoundDirection.ceiling)
        assert lp_floor <= lp_ceiling <= lp_floor + 1


def test_proportional_deposit_round_trips_exactly():
    minted = trading_tokens_to_lp_tokens(50, 200, 1000, 500, 2000, RoundDirection.floor)
    assert minted == 100
    assert trading_tokens_to_lp_tokens(50, 200, 1000, 500, 2000, RoundDirection.ceiling) == 100
    returned = lp_tokens_to_trading_tokens(minted, 1000, 500, 2000, RoundDirection.ceiling)
    assert returned == TradingTokenAmounts(50, 200)


def test_withdraw_burns_at_least_what_deposit_mints():
    for elw, quote in [(3, 13), (1, 1), (499, 7), (17, 1999)]:
        minted = trading_tokens_to_lp_tokens(elw, quote, 1000, 500, 2000, RoundDirection.floor)
        burned = trading_tokens_to_lp_tokens(elw, quote, 1000, 500, 2000, RoundDirection.ceiling)
        assert burned >= minted


def test_pool_wrappers_pick_rounding():
    pool = make_pool(lp_supply=1000)
    assert lp_tokens_for_deposit(pool, 500, 2000, 3, 13) == 6
    assert lp_tokens_for_withdraw(pool, 500, 2000, 3, 13) == 7


def test_integers_stay_exact():
    supply = 10 ** 30
    amounts = lp_tokens_to_trading_tokens(10 ** 29 + 1, supply, 3 * 10 ** 30, 7 * 10 ** 30, RoundDirection.floor)
    assert amounts == TradingTokenAmounts(3 * 10 ** 29 + 3, 7 * 10 ** 29 + 7)
