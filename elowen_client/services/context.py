from dataclasses import dataclass, field
from typing import Optional, Union

from solders.pubkey import Pubkey

from ..core.config import Settings
from ..core.constants import SOL_WRAPPED_MINT
from ..core.enums import Currency, VaultAccount
from ..core.exceptions import InvalidCurrency
from ..utils import (
    get_authority_address,
    get_locking_authority_address,
    get_vault_account,
    get_vault_account_token_ata,
)
from .amounts import to_currency


@dataclass(frozen=True)
class ClassifierContext:
    """
    Read-only address book used to interpret Elowen transactions.

    Everything the classifier compares against lives here, so classification
    stays a pure function of (transaction, context).
    """
    program_id: Pubkey
    squads_program_id: Pubkey
    cpmm_authority: Pubkey
    locking_authority: Pubkey
    elw_mint: Pubkey
    usdc_mint: Pubkey
    wsol_mint: Pubkey = SOL_WRAPPED_MINT
    vaults: dict[VaultAccount, Pubkey] = field(default_factory=dict)

    @classmethod
    def from_settings(cls, settings: Settings, elw_mint: Optional[Pubkey] = None) -> "ClassifierContext":
        if elw_mint is None:
            if not settings.elw_mint:
                raise ValueError("ELW mint is not configured (ELOWEN_ELW_MINT)")
            elw_mint = Pubkey.from_string(settings.elw_mint)
        program_id = settings.program
        return cls(
            program_id=program_id,
            squads_program_id=settings.squads_program,
            cpmm_authority=get_authority_address(settings.cpmm_program),
            locking_authority=get_locking_authority_address(settings.locking_program),
            elw_mint=elw_mint,
            usdc_mint=settings.usdc_mint,
            vaults={vault: get_vault_account(vault, program_id) for vault in VaultAccount},
        )

    def vault(self, vault: VaultAccount) -> Pubkey:
        if vault in self.vaults:
            return self.vaults[vault]
        return get_vault_account(vault, self.program_id)

    def vault_ata(self, vault: VaultAccount, mint: Pubkey) -> Pubkey:
        return get_vault_account_token_ata(vault, mint, self.program_id)

    def quote_mint(self, currency: Union[Currency, str]) -> Pubkey:
        currency = to_currency(currency)
        if currency is Currency.USDC:
            return self.usdc_mint
        if currency in (Currency.SOL, Currency.WSOL):
            return self.wsol_mint
        raise InvalidCurrency(f"{currency.value} is not a quote currency")

    def mint(self, currency: Union[Currency, str]) -> Pubkey:
        currency = to_currency(currency)
        if currency is Currency.ELW:
            return self.elw_mint
        return self.quote_mint(currency)
