from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from solders.pubkey import Pubkey

from .enums import Currency, PresaleType, SwapDirection, TransactionType, VaultAccount


@dataclass(frozen=True)
class AmmConfig:
    bump: int
    disable_create_pool: bool
    index: int
    trade_fee_rate: int
    protocol_fee_rate: int
    fund_fee_rate: int
    create_pool_fee: int
    protocol_owner: Pubkey
    fund_owner: Pubkey

@dataclass(frozen=True)
class PoolState:
    config_id: Pubkey
    pool_creator: Pubkey
    elw_vault: Pubkey
    quote_vault: Pubkey
    lp_mint: Pubkey
    elw_mint: Pubkey
    quote_mint: Pubkey
    elw_mint_program: Pubkey
    quote_mint_program: Pubkey
    observation_id: Pubkey
    bump: int
    status: int
    lp_decimals: int
    elw_decimals: int
    quote_decimals: int
    lp_supply: int
    elw_protocol_fees: int
    quote_protocol_fees: int
    elw_fund_fees: int
    quote_fund_fees: int
    open_time: int

@dataclass(frozen=True)
class Observation:
    block_timestamp: int
    cumulative_token_0_price_x32: int
    cumulative_token_1_price_x32: int

@dataclass(frozen=True)
class ObservationState:
    initialized: bool
    observation_index: int
    pool_id: Pubkey
    observations: tuple[Observation, ...]

    def recent(self, n: int) -> list[Observation]:
        """
        Returns up to `n` written observations, newest first.

        The ring buffer is walked backwards from `observation_index`, wrapping
        around; slots that were never written (zero timestamp) are skipped.
        """
        size = len(self.observations)
        if not self.initialized or size == 0 or n <= 0:
            return []
        result: list[Observation] = []
        for step in range(size):
            observation = self.observations[(self.observation_index - step) % size]
            if observation.block_timestamp == 0:
                continue
            result.append(observation)
            if len(result) == n:
                break
        return result

@dataclass(frozen=True)
class LockedLiquidityState:
    locked_lp_amount: int
    claimed_lp_amount: int
    unclaimed_lp_amount: int
    last_lp: int
    last_k: int
    recent_epoch: int
    pool_id: Pubkey
    fee_nft_mint: Pubkey
    locked_owner: Pubkey
    locked_lp_mint: Pubkey

    @property
    def is_balanced(self) -> bool:
        # locked == claimed + unclaimed is maintained by the locking program
        return self.locked_lp_amount == self.claimed_lp_amount + self.unclaimed_lp_amount


class DetailsModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

class Withdraw(DetailsModel):
    receiver: str
    amount: float

class PoolAction(DetailsModel):
    elw_amount: float
    quote_amount: float
    quote_currency: Currency

class MiningPoolAction(DetailsModel):
    elw_amount: float
    quote_amount: float
    pool: str

class MiningReward(DetailsModel):
    miner: str
    amount: float
    pool: str

class Swap(DetailsModel):
    input_amount: float
    output_amount: float
    input_currency: Currency
    output_currency: Currency
    swap_direction: SwapDirection

class VaultSwap(Swap):
    vault_account: VaultAccount

class CollectFees(DetailsModel):
    elw_collected: float
    quote_collected: float
    elw_transferred_to_eda: float
    quote_transferred_to_eda: float
    burned_elw: float

class PresalePurchase(DetailsModel):
    paid_amount: float
    currency: Currency
    received_amount: float
    transferred_to_eda: float
    transferred_to_liquidity: float
    presale_type: PresaleType

class PresaleClaim(DetailsModel):
    claimed_amount: float

class Burn(DetailsModel):
    amount: float

class PremiumPurchase(DetailsModel):
    payer: str
    amount: float
    currency: Currency
    burned_elw: Optional[float] = Field(default=None, alias="burnedELW")


TransactionDetails = Union[
    VaultSwap,
    Swap,
    Withdraw,
    PoolAction,
    MiningPoolAction,
    MiningReward,
    CollectFees,
    PresalePurchase,
    PresaleClaim,
    Burn,
    PremiumPurchase,
    str,
]

class TransactionResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: TransactionType
    name: str
    signature: str
    signer: str
    fee: float
    date: Optional[datetime] = None
    details: Optional[TransactionDetails] = None
