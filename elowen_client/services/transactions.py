import asyncio
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Any, Callable, Optional, Sequence, Union

import base58
from solders.pubkey import Pubkey

from ..core.constants import (
    BPF_UPGRADEABLE_LOADER_ID,
    UPGRADE_LOADER_PROGRAM_NAME,
    SOL_DECIMALS,
    TOKEN_DECIMALS,
)
from ..core.dto import (
    Burn,
    CollectFees,
    MiningPoolAction,
    MiningReward,
    PoolAction,
    PremiumPurchase,
    PresaleClaim,
    PresalePurchase,
    Swap,
    TransactionDetails,
    TransactionResponse,
    VaultSwap,
    Withdraw,
)
from ..core.enums import Currency, PresaleType, SwapDirection, TransactionType, VaultAccount, from_rust_enum
from ..core.exceptions import DetailNotFound, ElowenError
from ..core.logger import logger
from ..layouts.instructions import DecodedInstruction, decode_instruction
from .amounts import from_token_format, get_decimals_by_currency
from .context import ClassifierContext
from .matcher import InnerInstructionMatcher, MatchRule, system_transfer, token_instruction
from .parsed_tx import ParsedInstruction, ParsedTransaction, TokenBalance

UPGRADE_DETAILS = "Upgrade the program"
UPPERCASE_WORDS = frozenset({"ELW", "USDC", "SOL", "WSOL", "EDA"})

DetailsBuilder = Callable[[ParsedTransaction, dict, ClassifierContext], Optional[TransactionDetails]]


def find_program_instruction(
    instructions: Sequence[ParsedInstruction], program_id: Pubkey
) -> Optional[ParsedInstruction]:
    return next((ix for ix in instructions if ix.program_id == program_id), None)


def program_instruction_position(tx: ParsedTransaction, ctx: ClassifierContext) -> Optional[int]:
    """
    Position of the top-level instruction carrying the Elowen call: the call
    itself, or else the Squads execution that relays it. Inner instruction
    groups are keyed by this position.
    """
    for program_id in (ctx.program_id, ctx.squads_program_id):
        for position, ix in enumerate(tx.instructions):
            if ix.program_id == program_id:
                return position
    return None


def program_inner_instructions(tx: ParsedTransaction, ctx: ClassifierContext) -> tuple[ParsedInstruction, ...]:
    return tx.inner_instructions_for(program_instruction_position(tx, ctx))


def locate_program_instruction(tx: ParsedTransaction, ctx: ClassifierContext) -> Optional[ParsedInstruction]:
    """
    Elowen instruction of `tx`: a top-level one, or, when the transaction is a
    Squads execution, the Elowen call nested in its inner instructions.
    """
    instruction = find_program_instruction(tx.instructions, ctx.program_id)
    if instruction is None and find_program_instruction(tx.instructions, ctx.squads_program_id) is not None:
        instruction = find_program_instruction(program_inner_instructions(tx, ctx), ctx.program_id)
    return instruction


def is_upgrade_transaction(tx: ParsedTransaction) -> bool:
    return any(
        ix.program == UPGRADE_LOADER_PROGRAM_NAME or ix.program_id == BPF_UPGRADEABLE_LOADER_ID
        for ix in tx.instructions
    )


def decode_program_instruction(instruction: Optional[ParsedInstruction], signature: str = "") -> Optional[DecodedInstruction]:
    if instruction is None or not instruction.data:
        return None
    try:
        return decode_instruction(base58.b58decode(instruction.data))
    except (ElowenError, ValueError) as e:
        logger.warning("cannot decode program instruction", signature=signature, error=str(e))
        return None


def get_transaction_type(
    tx: ParsedTransaction, ctx: ClassifierContext
) -> tuple[TransactionType, Optional[DecodedInstruction]]:
    decoded = decode_program_instruction(locate_program_instruction(tx, ctx), tx.signature)
    if decoded is not None:
        return TransactionType(decoded.name), decoded
    if is_upgrade_transaction(tx):
        return TransactionType.upgrade, None
    return TransactionType.unknown, None


def format_transaction_name(transaction_type: Union[TransactionType, str]) -> str:
    value = transaction_type.value if isinstance(transaction_type, TransactionType) else transaction_type
    words = [word.capitalize() for word in value.split("_")]
    return " ".join(word.upper() if word.upper() in UPPERCASE_WORDS else word for word in words)


def _amount(ix: ParsedInstruction, decimals: int = TOKEN_DECIMALS) -> float:
    return from_token_format(ix.raw_amount, decimals)


def _signer(tx: ParsedTransaction) -> str:
    signer = tx.first_signer
    return str(signer) if signer is not None else ""


def _match(tx: ParsedTransaction, ctx: ClassifierContext, *rules: MatchRule) -> dict[str, ParsedInstruction]:
    return InnerInstructionMatcher(rules).match(program_inner_instructions(tx, ctx), tx.signature)


def _receiver_balance(tx: ParsedTransaction, vault: Pubkey, mint: Optional[Pubkey] = None) -> TokenBalance:
    """Post balance of the account on the other side of a vault transfer."""
    for balance in tx.post_token_balances:
        if balance.owner is None or balance.owner == vault:
            continue
        if mint is not None and balance.mint != mint:
            continue
        return balance
    raise DetailNotFound(f"No post token balance outside vault {vault}")


def _vault_withdraw(vault: VaultAccount, currency: Currency) -> DetailsBuilder:
    def build(tx: ParsedTransaction, args: dict, ctx: ClassifierContext) -> Withdraw:
        balance = _receiver_balance(tx, ctx.vault(vault), ctx.mint(currency))
        decimals = TOKEN_DECIMALS if vault is VaultAccount.platform else balance.decimals
        return Withdraw(receiver=str(balance.owner), amount=from_token_format(args["amount"], decimals))
    return build


def _vault_claim(vault: VaultAccount) -> DetailsBuilder:
    def build(tx: ParsedTransaction, args: dict, ctx: ClassifierContext) -> Withdraw:
        balance = _receiver_balance(tx, ctx.vault(vault), ctx.elw_mint)
        roles = _match(tx, ctx, MatchRule("transfer", token_instruction("transfer")))
        return Withdraw(receiver=str(balance.owner), amount=_amount(roles["transfer"]))
    return build


def _withdraw_eda_sol(tx: ParsedTransaction, args: dict, ctx: ClassifierContext) -> Withdraw:
    transfer = _match(tx, ctx, MatchRule("transfer", system_transfer()))["transfer"]
    return Withdraw(receiver=str(transfer.info_pubkey("destination")), amount=_amount(transfer, SOL_DECIMALS))


def _mining_liquidity(tx: ParsedTransaction, args: dict, ctx: ClassifierContext) -> MiningPoolAction:
    currency = from_rust_enum(Currency, args["currency"])
    roles = _match(
        tx,
        ctx,
        MatchRule("elw", token_instruction("transferChecked", mint=ctx.elw_mint)),
        MatchRule("quote", token_instruction("transferChecked", not_mint=ctx.elw_mint)),
    )
    return MiningPoolAction(
        pool=f"ELW/{currency.value}",
        elw_amount=_amount(roles["elw"]),
        quote_amount=_amount(roles["quote"], get_decimals_by_currency(currency)),
    )


def _claim_mining_rewards(tx: ParsedTransaction, args: dict, ctx: ClassifierContext) -> MiningReward:
    currency = from_rust_enum(Currency, args["_currency"])
    roles = _match(tx, ctx, MatchRule("reward", token_instruction("transfer")))
    return MiningReward(
        pool=f"ELW/{currency.value}",
        miner=_signer(tx),
        amount=_amount(roles["reward"]),
    )


def _swap(tx: ParsedTransaction, args: dict, ctx: ClassifierContext) -> Swap:
    input_currency = from_rust_enum(Currency, args["input_currency"])
    output_currency = from_rust_enum(Currency, args["output_currency"])
    # the pool authority signs the payout leg, the trader signs the pay-in leg
    roles = _match(
        tx,
        ctx,
        MatchRule("input", token_instruction(
            "transferChecked", mint=ctx.mint(input_currency), not_authority=ctx.cpmm_authority,
        )),
        MatchRule("output", token_instruction(
            "transferChecked", mint=ctx.mint(output_currency), authority=ctx.cpmm_authority,
        )),
    )
    fields = dict(
        input_currency=input_currency,
        output_currency=output_currency,
        swap_direction=from_rust_enum(SwapDirection, args["swap_direction"]),
        input_amount=_amount(roles["input"], get_decimals_by_currency(input_currency)),
        output_amount=_amount(roles["output"], get_decimals_by_currency(output_currency)),
    )
    if "vault" in args:
        return VaultSwap(vault_account=from_rust_enum(VaultAccount, args["vault"]), **fields)
    return Swap(**fields)


def _deposit_cpmm_liquidity(tx: ParsedTransaction, args: dict, ctx: ClassifierContext) -> PoolAction:
    currency = from_rust_enum(Currency, args["currency"])
    quote_mint = ctx.quote_mint(currency)
    liquidity_vault = ctx.vault(VaultAccount.liquidity)
    roles = _match(
        tx,
        ctx,
        MatchRule("elw", token_instruction("transferChecked", not_mint=quote_mint, authority=liquidity_vault)),
        MatchRule("quote", token_instruction("transferChecked", mint=quote_mint, authority=liquidity_vault)),
    )
    return PoolAction(
        quote_currency=currency,
        elw_amount=_amount(roles["elw"]),
        quote_amount=_amount(roles["quote"], get_decimals_by_currency(currency)),
    )


def _initialize_cpmm_liquidity(tx: ParsedTransaction, args: dict, ctx: ClassifierContext) -> PoolAction:
    currency = from_rust_enum(Currency, args["currency"])
    return PoolAction(
        quote_currency=currency,
        elw_amount=from_token_format(args["elw_amount"]),
        quote_amount=from_token_format(args["quote_amount"], get_decimals_by_currency(currency)),
    )


def _collect_locked_liquidity_fees(tx: ParsedTransaction, args: dict, ctx: ClassifierContext) -> CollectFees:
    currency = from_rust_enum(Currency, args["currency"])
    quote_mint = ctx.quote_mint(currency)
    quote_decimals = get_decimals_by_currency(currency)
    roles = _match(
        tx,
        ctx,
        MatchRule("elw_collected", token_instruction(
            "transferChecked", not_mint=quote_mint, authority=ctx.cpmm_authority,
        )),
        MatchRule("quote_collected", token_instruction(
            "transferChecked", mint=quote_mint, authority=ctx.cpmm_authority,
        )),
        MatchRule("elw_to_eda", token_instruction(
            "transfer", destination=ctx.vault_ata(VaultAccount.eda, ctx.elw_mint),
        )),
        MatchRule("quote_to_eda", token_instruction(
            "transfer", destination=ctx.vault_ata(VaultAccount.eda, quote_mint),
        )),
        MatchRule("burn", token_instruction("burn", not_authority=ctx.locking_authority)),
    )
    return CollectFees(
        elw_collected=_amount(roles["elw_collected"]),
        quote_collected=_amount(roles["quote_collected"], quote_decimals),
        elw_transferred_to_eda=_amount(roles["elw_to_eda"]),
        quote_transferred_to_eda=_amount(roles["quote_to_eda"], quote_decimals),
        burned_elw=_amount(roles["burn"]),
    )


def _buy_presale_elw(tx: ParsedTransaction, args: dict, ctx: ClassifierContext) -> PresalePurchase:
    currency = from_rust_enum(Currency, args["currency"])
    decimals = get_decimals_by_currency(currency)
    if currency in (Currency.SOL, Currency.WSOL):
        roles = _match(
            tx,
            ctx,
            MatchRule("eda", system_transfer(destination=ctx.vault(VaultAccount.eda))),
            MatchRule("liquidity", system_transfer(
                destination=ctx.vault_ata(VaultAccount.liquidity, ctx.wsol_mint),
            )),
        )
    else:
        quote_mint = ctx.quote_mint(currency)
        roles = _match(
            tx,
            ctx,
            MatchRule("eda", token_instruction(
                "transfer", destination=ctx.vault_ata(VaultAccount.eda, quote_mint),
            )),
            MatchRule("liquidity", token_instruction(
                "transfer", destination=ctx.vault_ata(VaultAccount.liquidity, quote_mint),
            )),
        )
    to_eda = roles["eda"].raw_amount
    to_liquidity = roles["liquidity"].raw_amount
    return PresalePurchase(
        currency=currency,
        presale_type=from_rust_enum(PresaleType, args["presale_type"]),
        transferred_to_eda=from_token_format(to_eda, decimals),
        transferred_to_liquidity=from_token_format(to_liquidity, decimals),
        paid_amount=from_token_format(to_eda + to_liquidity, decimals),
        received_amount=from_token_format(args["amount_to_buy"]),
    )


def _claim_presale_elw(tx: ParsedTransaction, args: dict, ctx: ClassifierContext) -> PresaleClaim:
    roles = _match(tx, ctx, MatchRule("claim", token_instruction("transfer")))
    return PresaleClaim(claimed_amount=_amount(roles["claim"]))


def _burn_platform_elw(tx: ParsedTransaction, args: dict, ctx: ClassifierContext) -> Burn:
    return Burn(amount=from_token_format(args["amount"]))


def _buy_premium(tx: ParsedTransaction, args: dict, ctx: ClassifierContext) -> PremiumPurchase:
    currency = from_rust_enum(Currency, args["currency"])
    decimals = get_decimals_by_currency(currency)
    payer = _receiver_balance(tx, ctx.vault(VaultAccount.treasury))
    burned_elw = None
    if currency is Currency.ELW:
        roles = _match(tx, ctx, MatchRule("burn", token_instruction("burn", mint=ctx.elw_mint)))
        burned_elw = _amount(roles["burn"], decimals)
    return PremiumPurchase(
        currency=currency,
        payer=str(payer.owner),
        amount=from_token_format(args["amount_to_pay"], decimals),
        burned_elw=burned_elw,
    )


DETAILS_BUILDERS: dict[TransactionType, DetailsBuilder] = {
    TransactionType.withdraw_treasury_usdc: _vault_withdraw(VaultAccount.treasury, Currency.USDC),
    TransactionType.withdraw_treasury_elw: _vault_withdraw(VaultAccount.treasury, Currency.ELW),
    TransactionType.withdraw_platform_elw: _vault_withdraw(VaultAccount.platform, Currency.ELW),
    TransactionType.withdraw_eda_usdc: _vault_withdraw(VaultAccount.eda, Currency.USDC),
    TransactionType.withdraw_eda_elw: _vault_withdraw(VaultAccount.eda, Currency.ELW),
    TransactionType.withdraw_eda_sol: _withdraw_eda_sol,
    TransactionType.claim_elw_reward: _vault_claim(VaultAccount.reward),
    TransactionType.claim_team_elw: _vault_claim(VaultAccount.team),
    TransactionType.swap_cpmm: _swap,
    TransactionType.vault_swap_cpmm: _swap,
    TransactionType.deposit_cpmm_liquidity: _deposit_cpmm_liquidity,
    TransactionType.initialize_cpmm_liquidity: _initialize_cpmm_liquidity,
    TransactionType.deposit_mining_liquidity: _mining_liquidity,
    TransactionType.withdraw_mining_liquidity: _mining_liquidity,
    TransactionType.claim_mining_rewards: _claim_mining_rewards,
    TransactionType.collect_locked_liquidity_fees: _collect_locked_liquidity_fees,
    TransactionType.buy_presale_elw: _buy_presale_elw,
    TransactionType.claim_presale_elw: _claim_presale_elw,
    TransactionType.burn_platform_elw: _burn_platform_elw,
    TransactionType.buy_premium: _buy_premium,
}


def transaction_details(
    tx: ParsedTransaction,
    transaction_type: TransactionType,
    decoded: Optional[DecodedInstruction],
    ctx: ClassifierContext,
) -> Optional[TransactionDetails]:
    if transaction_type is TransactionType.upgrade:
        return UPGRADE_DETAILS
    builder = DETAILS_BUILDERS.get(transaction_type)
    if builder is None or decoded is None:
        return None
    return builder(tx, decoded.data, ctx)


def prepare_transaction_response(tx: ParsedTransaction, ctx: ClassifierContext) -> TransactionResponse:
    """
    Classifies one transaction. Never raises for unexpected transaction
    content: a detail that cannot be reconstructed is logged and left as None.
    """
    transaction_type, decoded = get_transaction_type(tx, ctx)
    try:
        details = transaction_details(tx, transaction_type, decoded, ctx)
    except (ElowenError, LookupError, ValueError, TypeError) as e:
        logger.warning(
            "transaction details unavailable",
            signature=tx.signature,
            type=transaction_type.value,
            error=str(e),
        )
        details = None
    return TransactionResponse(
        type=transaction_type,
        name=format_transaction_name(transaction_type),
        signature=tx.signature,
        signer=_signer(tx),
        fee=from_token_format(tx.fee, SOL_DECIMALS),
        date=datetime.fromtimestamp(tx.block_time, tz=timezone.utc) if tx.block_time is not None else None,
        details=details,
    )


def classify_raw_transaction(raw: Optional[dict[str, Any]], ctx: ClassifierContext) -> Optional[TransactionResponse]:
    """Classifies an RPC jsonParsed payload; None stays None (transaction not found)."""
    if raw is None:
        return None
    try:
        tx = ParsedTransaction.from_json(raw)
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        logger.warning("malformed transaction payload", error=str(e))
        return None
    return prepare_transaction_response(tx, ctx)


def prepare_transaction_responses(
    transactions: Sequence[Union[ParsedTransaction, dict, None]],
    ctx: ClassifierContext,
    max_workers: Optional[int] = None,
) -> list[Optional[TransactionResponse]]:
    """
    Classifies a batch concurrently; results keep the input order. An item that
    fails to classify comes back as None without affecting the rest.
    """
    def classify(item: Union[ParsedTransaction, dict, None]) -> Optional[TransactionResponse]:
        try:
            if isinstance(item, ParsedTransaction):
                return prepare_transaction_response(item, ctx)
            return classify_raw_transaction(item, ctx)
        except Exception as e:
            signature = item.signature if isinstance(item, ParsedTransaction) else None
            logger.error("transaction classification failed", signature=signature, error=repr(e))
            return None

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        return list(executor.map(classify, transactions))


async def get_transactions(
    client,
    ctx: ClassifierContext,
    *,
    address: Optional[Pubkey] = None,
    limit: int = 25,
    via_wait: bool = False,
    before: Optional[str] = None,
) -> list[Optional[TransactionResponse]]:
    """
    Fetches the latest transactions touching `address` (the program by default)
    and classifies them, newest first.

    `client` is a `SolanaClient`; with `via_wait` transactions are fetched one
    by one, 100ms apart, for RPC endpoints with tight rate limits.
    """
    if address is None:
        address = ctx.program_id
    signatures = await client.get_signatures_for_address(address, limit=limit, before=before)
    if via_wait:
        raw = []
        for signature in signatures:
            await asyncio.sleep(0.1)
            raw.append(await client.get_parsed_transaction(signature))
    else:
        raw = await client.get_parsed_transactions(signatures)
    return await asyncio.to_thread(prepare_transaction_responses, raw, ctx)
