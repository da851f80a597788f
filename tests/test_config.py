import pytest
from pydantic import ValidationError
from solders.pubkey import Pubkey

from elowen_client.core.config import Settings, get_settings
from elowen_client.core.constants import CPMM_PROGRAM_IDS, ELOWEN_PROGRAM_ID, SOL_WRAPPED_MINT, USDC_MINTS
from elowen_client.core.enums import Currency, VaultAccount
from elowen_client.core.exceptions import InvalidCurrency
from elowen_client.services.context import ClassifierContext
from elowen_client.utils import get_vault_account


def test_cluster_selects_addresses():
    settings = Settings(cluster="devnet", cpmm_program_id=None, locking_program_id=None)

    assert settings.usdc_mint == USDC_MINTS["devnet"]
    assert settings.cpmm_program == CPMM_PROGRAM_IDS["devnet"]


def test_explicit_program_overrides_cluster_default():
    program = Pubkey.new_unique()
    settings = Settings(cluster="devnet", cpmm_program_id=str(program))

    assert settings.cpmm_program == program


def test_unknown_cluster():
    with pytest.raises(ValidationError):
        Settings(cluster="testnet")


def test_context_from_settings():
    elw_mint = Pubkey.new_unique()
    settings = Settings(cluster="devnet", program_id=str(ELOWEN_PROGRAM_ID), elw_mint=str(elw_mint))

    ctx = ClassifierContext.from_settings(settings)

    assert ctx.elw_mint == elw_mint
    assert ctx.usdc_mint == USDC_MINTS["devnet"]
    assert ctx.vault(VaultAccount.eda) == get_vault_account(VaultAccount.eda, ELOWEN_PROGRAM_ID)
    assert len(ctx.vaults) == len(VaultAccount)


def test_context_requires_elw_mint():
    with pytest.raises(ValueError):
        ClassifierContext.from_settings(Settings(cluster="devnet", elw_mint=None))


def test_context_mints(ctx):
    assert ctx.mint(Currency.ELW) == ctx.elw_mint
    assert ctx.mint("WSOL") == SOL_WRAPPED_MINT
    assert ctx.quote_mint(Currency.SOL) == SOL_WRAPPED_MINT
    with pytest.raises(InvalidCurrency):
        ctx.quote_mint(Currency.ELW)


def test_environment_is_read_when_settings_are_built(monkeypatch):
    monkeypatch.setenv("RPC_MAX_CALLS_PER_SECOND", "7")
    monkeypatch.setenv("ELOWEN_CLUSTER", "devnet")

    settings = Settings()

    assert settings.rpc_max_calls_per_second == 7
    assert settings.usdc_mint == USDC_MINTS["devnet"]


def test_bad_cluster_fails_on_first_use_not_on_import(monkeypatch):
    get_settings.cache_clear()
    monkeypatch.setenv("ELOWEN_CLUSTER", "testnet")

    try:
        with pytest.raises(ValidationError):
            get_settings()
    finally:
        get_settings.cache_clear()
