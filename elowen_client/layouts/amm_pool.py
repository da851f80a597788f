from typing import Final

from construct import Struct, Int8ul, Int16ul, Int32ul, Int64ul, Bytes, Array, Flag, BytesInteger, ConstructError
from solders.pubkey import Pubkey

from ..core.constants import DISCRIMINATOR_SIZE
from ..core.dto import AmmConfig, PoolState, Observation, ObservationState, LockedLiquidityState
from ..core.exceptions import LayoutError

PUBKEY_LAYOUT = Bytes(32)
U128_LAYOUT = BytesInteger(16, signed=False, swapped=True)

OBSERVATION_NUM = 100

AmmConfigLayout = Struct(
    "bump" / Int8ul,
    "disable_create_pool" / Flag,
    "index" / Int16ul,
    "trade_fee_rate" / Int64ul,
    "protocol_fee_rate" / Int64ul,
    "fund_fee_rate" / Int64ul,
    "create_pool_fee" / Int64ul,
    "protocol_owner" / PUBKEY_LAYOUT,
    "fund_owner" / PUBKEY_LAYOUT,
    "padding" / Array(16, Int64ul),
)

PoolStateLayout = Struct(
    "config_id" / PUBKEY_LAYOUT,
    "pool_creator" / PUBKEY_LAYOUT,
    "elw_vault" / PUBKEY_LAYOUT,
    "quote_vault" / PUBKEY_LAYOUT,
    "lp_mint" / PUBKEY_LAYOUT,
    "elw_mint" / PUBKEY_LAYOUT,
    "quote_mint" / PUBKEY_LAYOUT,
    "elw_mint_program" / PUBKEY_LAYOUT,
    "quote_mint_program" / PUBKEY_LAYOUT,
    "observation_id" / PUBKEY_LAYOUT,
    "bump" / Int8ul,
    "status" / Int8ul,
    "lp_decimals" / Int8ul,
    "elw_decimals" / Int8ul,
    "quote_decimals" / Int8ul,
    "lp_supply" / Int64ul,
    "elw_protocol_fees" / Int64ul,
    "quote_protocol_fees" / Int64ul,
    "elw_fund_fees" / Int64ul,
    "quote_fund_fees" / Int64ul,
    "open_time" / Int64ul,
    "padding" / Array(32, Int64ul),
)

ObservationLayout = Struct(
    "block_timestamp" / Int32ul,
    "cumulative_token_0_price_x32" / U128_LAYOUT,
    "cumulative_token_1_price_x32" / U128_LAYOUT,
)

ObservationStateLayout = Struct(
    "initialized" / Flag,
    "observation_index" / Int16ul,
    "pool_id" / PUBKEY_LAYOUT,
    "observations" / Array(OBSERVATION_NUM, ObservationLayout),
    "padding" / Array(4, Int64ul),
)

LockedLiquidityStateLayout = Struct(
    "locked_lp_amount" / Int64ul,
    "claimed_lp_amount" / Int64ul,
    "unclaimed_lp_amount" / Int64ul,
    "last_lp" / Int64ul,
    "last_k" / U128_LAYOUT,
    "recent_epoch" / Int64ul,
    "pool_id" / PUBKEY_LAYOUT,
    "fee_nft_mint" / PUBKEY_LAYOUT,
    "locked_owner" / PUBKEY_LAYOUT,
    "locked_lp_mint" / PUBKEY_LAYOUT,
    "padding" / Array(8, Int64ul),
)

AMM_CONFIG_SIZE: Final[int] = DISCRIMINATOR_SIZE + AmmConfigLayout.sizeof()
POOL_STATE_SIZE: Final[int] = DISCRIMINATOR_SIZE + PoolStateLayout.sizeof()
OBSERVATION_STATE_SIZE: Final[int] = DISCRIMINATOR_SIZE + ObservationStateLayout.sizeof()
LOCKED_LIQUIDITY_STATE_SIZE: Final[int] = DISCRIMINATOR_SIZE + LockedLiquidityStateLayout.sizeof()


def _parse(layout: Struct, size: int, data: bytes, label: str):
    """Skips the 8-byte account discriminator and parses the fixed-size body."""
    if len(data) < size:
        raise LayoutError(f"{label} account needs {size} bytes, got {len(data)}")
    try:
        return layout.parse(bytes(data[DISCRIMINATOR_SIZE:size]))
    except ConstructError as e:
        raise LayoutError(f"Malformed {label} account: {e}") from e


def _pubkeys(parsed, *names: str) -> dict:
    return {name: Pubkey.from_bytes(parsed[name]) for name in names}


def decode_amm_config(data: bytes) -> AmmConfig:
    parsed = _parse(AmmConfigLayout, AMM_CONFIG_SIZE, data, "AmmConfig")
    return AmmConfig(
        bump=parsed.bump,
        disable_create_pool=bool(parsed.disable_create_pool),
        index=parsed.index,
        trade_fee_rate=parsed.trade_fee_rate,
        protocol_fee_rate=parsed.protocol_fee_rate,
        fund_fee_rate=parsed.fund_fee_rate,
        create_pool_fee=parsed.create_pool_fee,
        **_pubkeys(parsed, "protocol_owner", "fund_owner"),
    )


def decode_pool_state(data: bytes) -> PoolState:
    parsed = _parse(PoolStateLayout, POOL_STATE_SIZE, data, "PoolState")
    return PoolState(
        **_pubkeys(
            parsed,
            "config_id", "pool_creator", "elw_vault", "quote_vault", "lp_mint",
            "elw_mint", "quote_mint", "elw_mint_program", "quote_mint_program", "observation_id",
        ),
        bump=parsed.bump,
        status=parsed.status,
        lp_decimals=parsed.lp_decimals,
        elw_decimals=parsed.elw_decimals,
        quote_decimals=parsed.quote_decimals,
        lp_supply=parsed.lp_supply,
        elw_protocol_fees=parsed.elw_protocol_fees,
        quote_protocol_fees=parsed.quote_protocol_fees,
        elw_fund_fees=parsed.elw_fund_fees,
        quote_fund_fees=parsed.quote_fund_fees,
        open_time=parsed.open_time,
    )


def decode_observation_state(data: bytes) -> ObservationState:
    parsed = _parse(ObservationStateLayout, OBSERVATION_STATE_SIZE, data, "ObservationState")
    return ObservationState(
        initialized=bool(parsed.initialized),
        observation_index=parsed.observation_index,
        pool_id=Pubkey.from_bytes(parsed.pool_id),
        observations=tuple(
            Observation(
                block_timestamp=o.block_timestamp,
                cumulative_token_0_price_x32=o.cumulative_token_0_price_x32,
                cumulative_token_1_price_x32=o.cumulative_token_1_price_x32,
            )
            for o in parsed.observations
        ),
    )


def decode_locked_liquidity_state(data: bytes) -> LockedLiquidityState:
    parsed = _parse(LockedLiquidityStateLayout, LOCKED_LIQUIDITY_STATE_SIZE, data, "LockedLiquidityState")
    return LockedLiquidityState(
        locked_lp_amount=parsed.locked_lp_amount,
        claimed_lp_amount=parsed.claimed_lp_amount,
        unclaimed_lp_amount=parsed.unclaimed_lp_amount,
        last_lp=parsed.last_lp,
        last_k=parsed.last_k,
        recent_epoch=parsed.recent_epoch,
        **_pubkeys(parsed, "pool_id", "fee_nft_mint", "locked_owner", "locked_lp_mint"),
    )
