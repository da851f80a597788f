import hashlib
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Final

from construct import Struct, Int8ul, Int16ul, Int64ul, Int64sl, Int32ul, Bytes, PascalString, PrefixedArray, ConstructError
from solders.pubkey import Pubkey

from ..core.enums import Currency, PresaleType, SwapDirection, VaultAccount, from_borsh_index, from_rust_enum
from ..core.exceptions import InstructionDecodeError

DISCRIMINATOR_SIZE = 8

# borsh unit enums travel as a single u8 variant index
ENUM_LAYOUT = Int8ul
PUBKEY_LAYOUT = Bytes(32)

ClaimableRewardLayout = Struct(
    "timestamp" / Int64sl,
    "percentage" / Int16ul,
)

AmountArgs = Struct("amount" / Int64ul)

LiquidityArgs = Struct(
    "currency" / ENUM_LAYOUT,
    "lp_token_amount" / Int64ul,
    "maximum_elw_amount" / Int64ul,
    "maximum_quote_amount" / Int64ul,
)

INSTRUCTION_ARGS: Final[dict[str, Struct]] = {
    "initialize_elw": Struct("metadata_uri" / PascalString(Int32ul, "utf8")),
    "withdraw_eda_elw": AmountArgs,
    "withdraw_eda_sol": AmountArgs,
    "withdraw_eda_usdc": AmountArgs,
    "withdraw_platform_elw": AmountArgs,
    "burn_platform_elw": AmountArgs,
    "claim_team_elw": Struct(),
    "claim_elw_reward": Struct("claimable_rewards" / PrefixedArray(Int32ul, ClaimableRewardLayout)),
    "buy_presale_elw": Struct(
        "presale_type" / ENUM_LAYOUT,
        "amount_to_buy" / Int64ul,
        "currency" / ENUM_LAYOUT,
    ),
    "claim_presale_elw": Struct("_presale_type" / ENUM_LAYOUT),
    "burn_unsold_presale_elw": Struct(),
    "initialize_cpmm_liquidity": Struct(
        "currency" / ENUM_LAYOUT,
        "elw_amount" / Int64ul,
        "quote_amount" / Int64ul,
        "open_time" / Int64ul,
    ),
    "deposit_cpmm_liquidity": LiquidityArgs,
    "swap_cpmm": Struct(
        "input_amount" / Int64ul,
        "output_amount" / Int64ul,
        "input_currency" / ENUM_LAYOUT,
        "output_currency" / ENUM_LAYOUT,
        "swap_direction" / ENUM_LAYOUT,
    ),
    "vault_swap_cpmm": Struct(
        "input_amount" / Int64ul,
        "output_amount" / Int64ul,
        "vault" / ENUM_LAYOUT,
        "input_currency" / ENUM_LAYOUT,
        "output_currency" / ENUM_LAYOUT,
        "swap_direction" / ENUM_LAYOUT,
    ),
    "collect_locked_liquidity_fees": Struct("currency" / ENUM_LAYOUT),
    "deposit_mining_liquidity": LiquidityArgs,
    "withdraw_mining_liquidity": Struct(
        "currency" / ENUM_LAYOUT,
        "lp_token_amount" / Int64ul,
        "minimum_elw_amount" / Int64ul,
        "minimum_quote_amount" / Int64ul,
    ),
    "claim_mining_rewards": Struct("_currency" / ENUM_LAYOUT),
    "buy_premium": Struct(
        "amount_to_pay" / Int64ul,
        "currency" / ENUM_LAYOUT,
    ),
    "withdraw_treasury_elw": AmountArgs,
    "withdraw_treasury_usdc": AmountArgs,
    "save_address_lookup_table": Struct("lookup_table" / PUBKEY_LAYOUT),
}

ENUM_ARGS: Final[dict[str, type[Enum]]] = {
    "currency": Currency,
    "_currency": Currency,
    "input_currency": Currency,
    "output_currency": Currency,
    "presale_type": PresaleType,
    "_presale_type": PresaleType,
    "swap_direction": SwapDirection,
    "vault": VaultAccount,
}

PUBKEY_ARGS: Final[frozenset[str]] = frozenset({"lookup_table"})


def instruction_discriminator(name: str) -> bytes:
    """Anchor discriminator: first 8 bytes of sha256("global:<name>")."""
    return hashlib.sha256(f"global:{name}".encode()).digest()[:DISCRIMINATOR_SIZE]

DISCRIMINATORS: Final[dict[bytes, str]] = {instruction_discriminator(name): name for name in INSTRUCTION_ARGS}


@dataclass(frozen=True)
class DecodedInstruction:
    name: str
    data: dict[str, Any] = field(default_factory=dict)


def _to_python(key: str, value: Any) -> Any:
    if key in ENUM_ARGS:
        return from_borsh_index(ENUM_ARGS[key], value)
    if key in PUBKEY_ARGS:
        return Pubkey.from_bytes(value)
    if isinstance(value, list):
        return [{k: v for k, v in item.items() if not k.startswith("_io")} for item in value]
    return value


def decode_instruction(data: bytes) -> DecodedInstruction:
    """Decodes raw Elowen instruction data into its name and typed arguments."""
    name = DISCRIMINATORS.get(bytes(data[:DISCRIMINATOR_SIZE]))
    if name is None:
        raise InstructionDecodeError(f"Unknown instruction discriminator {bytes(data[:DISCRIMINATOR_SIZE]).hex()}")
    try:
        parsed = INSTRUCTION_ARGS[name].parse(bytes(data[DISCRIMINATOR_SIZE:]))
        args = {k: _to_python(k, v) for k, v in parsed.items() if not k.startswith("_io")}
    except (ConstructError, ValueError) as e:
        raise InstructionDecodeError(f"Malformed {name} instruction data: {e}") from e
    return DecodedInstruction(name=name, data=args)


def encode_instruction(name: str, args: dict[str, Any] | None = None) -> bytes:
    """Inverse of `decode_instruction`; enum arguments may be members or Anchor JSON dicts."""
    if name not in INSTRUCTION_ARGS:
        raise InstructionDecodeError(f"Unknown instruction {name}")
    values = {}
    for key, value in (args or {}).items():
        if key in ENUM_ARGS:
            value = list(ENUM_ARGS[key]).index(from_rust_enum(ENUM_ARGS[key], value))
        elif key in PUBKEY_ARGS:
            value = bytes(value)
        values[key] = value
    return instruction_discriminator(name) + INSTRUCTION_ARGS[name].build(values)
