import asyncio
from dataclasses import dataclass
from typing import Optional, Union

from solders.pubkey import Pubkey

from ..core.config import get_settings
from ..core.constants import AMM_CONFIG_INDEX, LP_DECIMALS
from ..core.dto import AmmConfig, LockedLiquidityState, ObservationState, PoolState
from ..core.enums import Currency
from ..core.exceptions import DivisionByZero
from ..layouts.amm_pool import (
    decode_amm_config,
    decode_locked_liquidity_state,
    decode_observation_state,
    decode_pool_state,
)
from ..utils import (
    get_amm_config_address,
    get_locked_liquidity_address,
    get_observation_address,
    get_pool_address,
    get_pool_lp_mint_address,
    get_pool_vault_address,
)
from .amounts import fix_decimals, format_number, from_token_format
from .context import ClassifierContext


@dataclass(frozen=True)
class PoolFees:
    elw_fund_fees: float
    quote_fund_fees: float
    elw_protocol_fees: float
    quote_protocol_fees: float

    @property
    def formatted(self) -> dict[str, str]:
        return {name: format_number(value) for name, value in self.__dict__.items()}


@dataclass(frozen=True)
class PoolInfo:
    """Display view of a `PoolState`: integer fields scaled by the pool's own decimals."""
    state: PoolState
    lp_supply: float
    fees: PoolFees

    @classmethod
    def from_state(cls, state: PoolState) -> "PoolInfo":
        return cls(
            state=state,
            lp_supply=from_token_format(state.lp_supply, state.lp_decimals),
            fees=PoolFees(
                elw_fund_fees=from_token_format(state.elw_fund_fees, state.elw_decimals),
                quote_fund_fees=from_token_format(state.quote_fund_fees, state.quote_decimals),
                elw_protocol_fees=from_token_format(state.elw_protocol_fees, state.elw_decimals),
                quote_protocol_fees=from_token_format(state.quote_protocol_fees, state.quote_decimals),
            ),
        )

    @property
    def lp_supply_formatted(self) -> str:
        return format_number(self.lp_supply, self.state.lp_decimals)


@dataclass(frozen=True)
class LockedLiquidityInfo:
    state: LockedLiquidityState
    locked_lp_amount: float
    claimed_lp_amount: float
    unclaimed_lp_amount: float

    @classmethod
    def from_state(cls, state: LockedLiquidityState) -> "LockedLiquidityInfo":
        return cls(
            state=state,
            locked_lp_amount=from_token_format(state.locked_lp_amount, LP_DECIMALS),
            claimed_lp_amount=from_token_format(state.claimed_lp_amount, LP_DECIMALS),
            unclaimed_lp_amount=from_token_format(state.unclaimed_lp_amount, LP_DECIMALS),
        )


@dataclass(frozen=True)
class PoolPrice:
    elw_to_quote: float
    quote_to_elw: float
    elw_to_quote_formatted: str
    quote_to_elw_formatted: str


def price_by_vaults(elw_amount: int, elw_decimals: int, quote_amount: int, quote_decimals: int) -> PoolPrice:
    """
    Spot price of the pool from its raw vault balances.

    An empty vault has no price and raises `DivisionByZero`.
    """
    if elw_amount == 0 or quote_amount == 0:
        raise DivisionByZero("Pool vault is empty")
    elw_ui = from_token_format(elw_amount, elw_decimals)
    quote_ui = from_token_format(quote_amount, quote_decimals)
    elw_to_quote = quote_ui / elw_ui
    quote_to_elw = elw_ui / quote_ui
    return PoolPrice(
        elw_to_quote=fix_decimals(elw_to_quote, elw_decimals),
        quote_to_elw=fix_decimals(quote_to_elw, quote_decimals),
        elw_to_quote_formatted=format_number(elw_to_quote, elw_decimals),
        quote_to_elw_formatted=format_number(quote_to_elw, quote_decimals),
    )


@dataclass(frozen=True)
class PoolAddresses:
    """Program derived accounts of one ELW/quote CPMM pool."""
    amm_config: Pubkey
    pool: Pubkey
    elw_vault: Pubkey
    quote_vault: Pubkey
    lp_mint: Pubkey
    observation: Pubkey


def pool_addresses(
    ctx: ClassifierContext,
    currency: Union[Currency, str],
    cpmm_program: Optional[Pubkey] = None,
) -> PoolAddresses:
    if cpmm_program is None:
        cpmm_program = get_settings().cpmm_program
    quote_mint = ctx.quote_mint(currency)
    amm_config = get_amm_config_address(AMM_CONFIG_INDEX, cpmm_program)
    pool = get_pool_address(amm_config, ctx.elw_mint, quote_mint, cpmm_program)
    return PoolAddresses(
        amm_config=amm_config,
        pool=pool,
        elw_vault=get_pool_vault_address(pool, ctx.elw_mint, cpmm_program),
        quote_vault=get_pool_vault_address(pool, quote_mint, cpmm_program),
        lp_mint=get_pool_lp_mint_address(pool, cpmm_program),
        observation=get_observation_address(pool, cpmm_program),
    )


def pool_address_by_currency(
    ctx: ClassifierContext,
    currency: Union[Currency, str],
    cpmm_program: Optional[Pubkey] = None,
) -> Pubkey:
    return pool_addresses(ctx, currency, cpmm_program).pool


async def get_amm_config(client, address: Pubkey) -> AmmConfig:
    return decode_amm_config(await client.get_account_data(address))


async def get_pool_state(client, address: Pubkey) -> PoolState:
    return decode_pool_state(await client.get_account_data(address))


async def get_observation_state(client, address: Pubkey) -> ObservationState:
    return decode_observation_state(await client.get_account_data(address))


async def get_locked_liquidity_state(
    client, fee_nft_mint: Pubkey, locking_program: Optional[Pubkey] = None
) -> LockedLiquidityState:
    if locking_program is None:
        locking_program = get_settings().locking_program
    address = get_locked_liquidity_address(fee_nft_mint, locking_program)
    return decode_locked_liquidity_state(await client.get_account_data(address))


async def get_pool_info(client, address: Pubkey) -> PoolInfo:
    return PoolInfo.from_state(await get_pool_state(client, address))


async def get_locked_liquidity_info(
    client, fee_nft_mint: Pubkey, locking_program: Optional[Pubkey] = None
) -> LockedLiquidityInfo:
    return LockedLiquidityInfo.from_state(await get_locked_liquidity_state(client, fee_nft_mint, locking_program))


async def get_price(client, pool: PoolState) -> PoolPrice:
    """Current price of a pool, read from its two vault token accounts."""
    (elw_amount, elw_decimals), (quote_amount, quote_decimals) = await asyncio.gather(
        client.get_token_account_balance(pool.elw_vault),
        client.get_token_account_balance(pool.quote_vault),
    )
    return price_by_vaults(elw_amount, elw_decimals, quote_amount, quote_decimals)
