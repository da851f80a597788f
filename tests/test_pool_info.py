import asyncio
import struct

import pytest
from solders.pubkey import Pubkey

from elowen_client.core.constants import AMM_CONFIG_INDEX, CPMM_PROGRAM_IDS, LOCKING_PROGRAM_IDS
from elowen_client.core.enums import Currency
from elowen_client.core.exceptions import DivisionByZero, LayoutError
from elowen_client.services.pool_info import (
    get_locked_liquidity_info,
    get_pool_info,
    get_pool_state,
    get_price,
    pool_address_by_currency,
    pool_addresses,
    price_by_vaults,
)
from elowen_client.utils import (
    get_amm_config_address,
    get_locked_liquidity_address,
    get_pool_address,
    get_pool_vault_address,
    is_smaller_pubkey,
)
from factories import FakeRpc, make_client


def pool_state_bytes(keys: list[Pubkey]) -> bytes:
    return (
        bytes(8)
        + b"".join(bytes(k) for k in keys)
        + struct.pack("<5B6Q", 254, 0, 9, 9, 6, 2_500_000_000_000, 1_000_000_000, 2_000_000, 3_000_000_000, 500_000, 0)
        + bytes(32 * 8)
    )


def test_price_by_vaults():
    price = price_by_vaults(1_000_000_000_000, 9, 50_000_000, 6)

    assert price.elw_to_quote == 0.05
    assert price.quote_to_elw == 20.0
    assert price.quote_to_elw_formatted == "20.00"


def test_price_of_empty_pool():
    with pytest.raises(DivisionByZero):
        price_by_vaults(0, 9, 50_000_000, 6)


def test_pool_info_scales_by_pool_decimals():
    keys = [Pubkey.new_unique() for _ in range(10)]
    address = Pubkey.new_unique()
    client = make_client(FakeRpc({}, accounts={address: pool_state_bytes(keys)}))

    info = asyncio.run(get_pool_info(client, address))

    assert info.lp_supply == 2500.0
    assert info.lp_supply_formatted == "2,500.00"
    assert info.fees.elw_protocol_fees == 1.0
    assert info.fees.quote_protocol_fees == 2.0
    assert info.fees.elw_fund_fees == 3.0
    assert info.fees.quote_fund_fees == 0.5
    assert info.fees.formatted["quote_fund_fees"] == "0.50"
    assert info.state.elw_vault == keys[2]


def test_pool_info_rejects_truncated_account():
    address = Pubkey.new_unique()
    client = make_client(FakeRpc({}, accounts={address: bytes(100)}))

    with pytest.raises(LayoutError):
        asyncio.run(get_pool_info(client, address))


def test_price_reads_vault_balances():
    keys = [Pubkey.new_unique() for _ in range(10)]
    address = Pubkey.new_unique()
    rpc = FakeRpc({}, accounts={
        address: pool_state_bytes(keys),
        keys[2]: (4_000_000_000_000, 9),
        keys[3]: (1_000_000_000, 6),
    })
    client = make_client(rpc)

    async def run():
        return await get_price(client, await get_pool_state(client, address))

    price = asyncio.run(run())

    assert price.elw_to_quote == 0.25
    assert price.quote_to_elw == 4.0


def test_locked_liquidity_info():
    fee_nft_mint = Pubkey.new_unique()
    locking_program = LOCKING_PROGRAM_IDS["devnet"]
    data = (
        bytes(8)
        + struct.pack("<4Q", 3_000_000_000, 1_000_000_000, 2_000_000_000, 0)
        + bytes(16)
        + struct.pack("<Q", 0)
        + b"".join(bytes(Pubkey.new_unique()) for _ in range(4))
        + bytes(64)
    )
    address = get_locked_liquidity_address(fee_nft_mint, locking_program)
    client = make_client(FakeRpc({}, accounts={address: data}))

    info = asyncio.run(get_locked_liquidity_info(client, fee_nft_mint, locking_program))

    assert info.locked_lp_amount == 3.0
    assert info.unclaimed_lp_amount == 2.0


def test_pool_address_by_currency(ctx):
    cpmm_program = CPMM_PROGRAM_IDS["devnet"]
    usdc_pool = pool_address_by_currency(ctx, Currency.USDC, cpmm_program)

    assert usdc_pool == pool_address_by_currency(ctx, "usdc", cpmm_program)
    assert usdc_pool != pool_address_by_currency(ctx, Currency.SOL, cpmm_program)


def test_pool_addresses_derive_from_pool(ctx):
    cpmm_program = CPMM_PROGRAM_IDS["devnet"]
    addresses = pool_addresses(ctx, Currency.USDC, cpmm_program)

    assert addresses.amm_config == get_amm_config_address(AMM_CONFIG_INDEX, cpmm_program)
    assert addresses.pool == pool_address_by_currency(ctx, Currency.USDC, cpmm_program)
    assert addresses.elw_vault == get_pool_vault_address(addresses.pool, ctx.elw_mint, cpmm_program)
    assert addresses.quote_vault == get_pool_vault_address(addresses.pool, ctx.usdc_mint, cpmm_program)
    assert len({addresses.pool, addresses.elw_vault, addresses.quote_vault, addresses.lp_mint, addresses.observation}) == 5


def test_pool_address_orders_mints():
    cpmm_program = CPMM_PROGRAM_IDS["devnet"]
    amm_config = get_amm_config_address(AMM_CONFIG_INDEX, cpmm_program)
    first, second = Pubkey.new_unique(), Pubkey.new_unique()

    assert is_smaller_pubkey(first, second) != is_smaller_pubkey(second, first)
    assert get_pool_address(amm_config, first, second, cpmm_program) == get_pool_address(
        amm_config, second, first, cpmm_program
    )
