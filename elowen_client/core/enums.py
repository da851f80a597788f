from enum import Enum
from typing import Any, TypeVar

E = TypeVar("E", bound=Enum)


class Currency(str, Enum):
    USDC = "USDC"
    SOL = "SOL"
    ELW = "ELW"
    WSOL = "WSOL"


class VaultAccount(str, Enum):
    eda = "eda"
    team = "team"
    reward = "reward"
    presale = "presale"
    treasury = "treasury"
    liquidity = "liquidity"
    platform = "platform"


class PresaleType(str, Enum):
    three_months_lockup = "ThreeMonthsLockup"
    six_months_lockup = "SixMonthsLockup"


class SwapDirection(str, Enum):
    input = "input"
    output = "output"


class RoundDirection(str, Enum):
    floor = "floor"
    ceiling = "ceiling"


class TransactionType(str, Enum):
    initialize_elw = "initialize_elw"
    withdraw_eda_elw = "withdraw_eda_elw"
    withdraw_eda_sol = "withdraw_eda_sol"
    withdraw_eda_usdc = "withdraw_eda_usdc"
    withdraw_platform_elw = "withdraw_platform_elw"
    burn_platform_elw = "burn_platform_elw"
    claim_team_elw = "claim_team_elw"
    claim_elw_reward = "claim_elw_reward"
    buy_presale_elw = "buy_presale_elw"
    claim_presale_elw = "claim_presale_elw"
    burn_unsold_presale_elw = "burn_unsold_presale_elw"
    initialize_cpmm_liquidity = "initialize_cpmm_liquidity"
    deposit_cpmm_liquidity = "deposit_cpmm_liquidity"
    swap_cpmm = "swap_cpmm"
    vault_swap_cpmm = "vault_swap_cpmm"
    collect_locked_liquidity_fees = "collect_locked_liquidity_fees"
    deposit_mining_liquidity = "deposit_mining_liquidity"
    withdraw_mining_liquidity = "withdraw_mining_liquidity"
    claim_mining_rewards = "claim_mining_rewards"
    buy_premium = "buy_premium"
    withdraw_treasury_elw = "withdraw_treasury_elw"
    withdraw_treasury_usdc = "withdraw_treasury_usdc"
    save_address_lookup_table = "save_address_lookup_table"
    upgrade = "upgrade"
    unknown = "unknown"


def _normalize(name: str) -> str:
    return name.replace("_", "").lower()


def from_borsh_index(enum_cls: type[E], index: int) -> E:
    """Borsh encodes a unit enum as its variant index, in declaration order."""
    members = list(enum_cls)
    if not 0 <= index < len(members):
        raise ValueError(f"{index} is not a valid {enum_cls.__name__} variant")
    return members[index]


def from_rust_enum(enum_cls: type[E], value: Any) -> E:
    """
    Resolves a decoded Rust enum into `enum_cls`.

    Accepts a member, a borsh variant index, or Anchor's JSON form where the
    active variant is the only key of a dict (``{"usdc": {}}``). Dicts with
    zero or several recognized keys are rejected.
    """
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, bool):
        raise ValueError(f"Cannot read {enum_cls.__name__} from {value!r}")
    if isinstance(value, int):
        return from_borsh_index(enum_cls, value)
    if isinstance(value, dict):
        by_name = {_normalize(m.name): m for m in enum_cls}
        by_name.update({_normalize(m.value): m for m in enum_cls})
        matched = {by_name[_normalize(k)] for k in value if _normalize(k) in by_name}
        if len(matched) != 1:
            raise ValueError(
                f"Expected exactly one {enum_cls.__name__} variant, got keys {sorted(value)}"
            )
        return matched.pop()
    raise ValueError(f"Cannot read {enum_cls.__name__} from {value!r}")
