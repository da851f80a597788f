import pytest
from solders.pubkey import Pubkey

from elowen_client.core.constants import (
    CPMM_PROGRAM_IDS,
    ELOWEN_PROGRAM_ID,
    LOCKING_PROGRAM_IDS,
    SQUADS_PROGRAM_ID,
    USDC_MINTS,
)
from elowen_client.core.enums import VaultAccount
from elowen_client.services.context import ClassifierContext
from elowen_client.utils import get_authority_address, get_locking_authority_address, get_vault_account


@pytest.fixture(scope="session")
def elw_mint() -> Pubkey:
    return Pubkey.new_unique()


@pytest.fixture(scope="session")
def ctx(elw_mint: Pubkey) -> ClassifierContext:
    return ClassifierContext(
        program_id=ELOWEN_PROGRAM_ID,
        squads_program_id=SQUADS_PROGRAM_ID,
        cpmm_authority=get_authority_address(CPMM_PROGRAM_IDS["devnet"]),
        locking_authority=get_locking_authority_address(LOCKING_PROGRAM_IDS["devnet"]),
        elw_mint=elw_mint,
        usdc_mint=USDC_MINTS["devnet"],
        vaults={vault: get_vault_account(vault, ELOWEN_PROGRAM_ID) for vault in VaultAccount},
    )
