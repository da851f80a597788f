import os
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator
from solders.pubkey import Pubkey

from .constants import (
    ELOWEN_PROGRAM_ID,
    SQUADS_PROGRAM_ID,
    CPMM_PROGRAM_IDS,
    LOCKING_PROGRAM_IDS,
    USDC_MINTS,
)


def _env(name: str, default: Optional[str] = None):
    return lambda: os.getenv(name, default)


class Settings(BaseModel):
    model_config = ConfigDict(validate_default=True)

    cluster: str = Field(default_factory=_env("ELOWEN_CLUSTER", "mainnet-beta"))
    rpc_url: str = Field(default_factory=_env("ELOWEN_RPC_URL", "https://api.mainnet-beta.solana.com"))
    program_id: str = Field(default_factory=_env("ELOWEN_PROGRAM_ID", str(ELOWEN_PROGRAM_ID)))
    squads_program_id: str = Field(default_factory=_env("SQUADS_PROGRAM_ID", str(SQUADS_PROGRAM_ID)))
    cpmm_program_id: Optional[str] = Field(default_factory=_env("CPMM_PROGRAM_ID"))
    locking_program_id: Optional[str] = Field(default_factory=_env("LOCKING_PROGRAM_ID"))
    elw_mint: Optional[str] = Field(default_factory=_env("ELOWEN_ELW_MINT"))
    log_level: str = Field(default_factory=_env("LOG_LEVEL", "INFO"))
    rpc_max_calls_per_second: int = Field(default_factory=_env("RPC_MAX_CALLS_PER_SECOND", "20"))

    @field_validator("cluster")
    @classmethod
    def known_cluster(cls, v: str) -> str:
        if v not in USDC_MINTS:
            raise ValueError(f"Invalid cluster: {v}")
        return v

    @property
    def program(self) -> Pubkey:
        return Pubkey.from_string(self.program_id)

    @property
    def squads_program(self) -> Pubkey:
        return Pubkey.from_string(self.squads_program_id)

    @property
    def cpmm_program(self) -> Pubkey:
        if self.cpmm_program_id:
            return Pubkey.from_string(self.cpmm_program_id)
        return CPMM_PROGRAM_IDS[self.cluster]

    @property
    def locking_program(self) -> Pubkey:
        if self.locking_program_id:
            return Pubkey.from_string(self.locking_program_id)
        return LOCKING_PROGRAM_IDS[self.cluster]

    @property
    def usdc_mint(self) -> Pubkey:
        return USDC_MINTS[self.cluster]


@lru_cache(maxsize=None)
def get_settings() -> Settings:
    """Settings from the environment (and `.env`), read on first use."""
    load_dotenv()
    return Settings()
