from solders.pubkey import Pubkey
from spl.token.instructions import get_associated_token_address

from .core.constants import (
    AMM_CONFIG_SEED,
    AUTH_SEED,
    POOL_SEED,
    POOL_VAULT_SEED,
    POOL_LP_MINT_SEED,
    OBSERVATION_SEED,
    LOCK_CP_AUTH_SEED,
    LOCKED_LIQUIDITY_SEED,
)
from .core.enums import VaultAccount

def u16_to_bytes(value: int) -> bytes:
    return value.to_bytes(2, "big")

def is_smaller_pubkey(first: Pubkey, second: Pubkey) -> bool:
    return bytes(first) < bytes(second)

def get_amm_config_address(index: int, program_id: Pubkey) -> Pubkey:
    result, _ = Pubkey.find_program_address([AMM_CONFIG_SEED, u16_to_bytes(index)], program_id)
    return result

def get_authority_address(program_id: Pubkey) -> Pubkey:
    result, _ = Pubkey.find_program_address([AUTH_SEED], program_id)
    return result

def get_locking_authority_address(locking_program_id: Pubkey) -> Pubkey:
    result, _ = Pubkey.find_program_address([LOCK_CP_AUTH_SEED], locking_program_id)
    return result

def get_locked_liquidity_address(fee_nft_mint: Pubkey, locking_program_id: Pubkey) -> Pubkey:
    result, _ = Pubkey.find_program_address([LOCKED_LIQUIDITY_SEED, bytes(fee_nft_mint)], locking_program_id)
    return result

def get_pool_address(amm_config: Pubkey, elw_mint: Pubkey, quote_mint: Pubkey, program_id: Pubkey) -> Pubkey:
    # seeds take token_0 < token_1
    token_0, token_1 = (elw_mint, quote_mint) if is_smaller_pubkey(elw_mint, quote_mint) else (quote_mint, elw_mint)
    result, _ = Pubkey.find_program_address(
        [POOL_SEED, bytes(amm_config), bytes(token_0), bytes(token_1)], program_id
    )
    return result

def get_pool_vault_address(pool: Pubkey, vault_token_mint: Pubkey, program_id: Pubkey) -> Pubkey:
    result, _ = Pubkey.find_program_address(
        [POOL_VAULT_SEED, bytes(pool), bytes(vault_token_mint)], program_id
    )
    return result

def get_pool_lp_mint_address(pool: Pubkey, program_id: Pubkey) -> Pubkey:
    result, _ = Pubkey.find_program_address([POOL_LP_MINT_SEED, bytes(pool)], program_id)
    return result

def get_observation_address(pool: Pubkey, program_id: Pubkey) -> Pubkey:
    result, _ = Pubkey.find_program_address([OBSERVATION_SEED, bytes(pool)], program_id)
    return result

def get_vault_account(vault: VaultAccount, program_id: Pubkey) -> Pubkey:
    result, _ = Pubkey.find_program_address([vault.value.encode()], program_id)
    return result

def get_vault_account_token_ata(vault: VaultAccount, mint: Pubkey, program_id: Pubkey) -> Pubkey:
    # vault PDAs are off-curve owners
    return get_associated_token_address(owner=get_vault_account(vault, program_id), mint=mint)
