from typing import Final

from solders.pubkey import Pubkey

ELOWEN_PROGRAM_ID = Pubkey.from_string("3R63fNvrbn2mb2Em28i4UTPEJN83EAVQDmFuNzrkXVKw")
SQUADS_PROGRAM_ID = Pubkey.from_string("SQDS4ep65T869zMMBKyuUq6aD6EgTu8psMjkvj52pCf")
BPF_UPGRADEABLE_LOADER_ID = Pubkey.from_string("BPFLoaderUpgradeab1e11111111111111111111111")

CPMM_PROGRAM_IDS: Final[dict[str, Pubkey]] = {
    "mainnet-beta": Pubkey.from_string("CPMMoo8L3F4NbTegBCKVNunggL7H1ZpdTHKxQB5qKP1C"),
    "devnet": Pubkey.from_string("CPMDWBwJDtYax9qW7AyRuVC19Cc4L4Vcy4n2BHAbHkCW"),
}
LOCKING_PROGRAM_IDS: Final[dict[str, Pubkey]] = {
    "mainnet-beta": Pubkey.from_string("LockrWmn6K5twhz3y9w1dQERbmgSaRkfnTeTKbpofwE"),
    "devnet": Pubkey.from_string("DLockwT7X7sxtLmGH9g5kmfcjaBtncdbUmi738m5bvQC"),
}
USDC_MINTS: Final[dict[str, Pubkey]] = {
    "mainnet-beta": Pubkey.from_string("EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"),
    "devnet": Pubkey.from_string("28zvdJE2BwGLMeqtP1punErLRE38rE2qM7uvVAnXBKaL"),
}

TOKEN_PROGRAM_ID = Pubkey.from_string("TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA")
SYS_PROGRAM_ID = Pubkey.from_string("11111111111111111111111111111111")

SOL_WRAPPED_MINT = Pubkey.from_string("So11111111111111111111111111111111111111112")

# parsed program names reported by the RPC for jsonParsed instructions
SPL_TOKEN_PROGRAM_NAME = "spl-token"
SYSTEM_PROGRAM_NAME = "system"
UPGRADE_LOADER_PROGRAM_NAME = "bpf-upgradeable-loader"

AMM_CONFIG_SEED = b"amm_config"
POOL_SEED = b"pool"
POOL_LP_MINT_SEED = b"pool_lp_mint"
POOL_VAULT_SEED = b"pool_vault"
AUTH_SEED = b"vault_and_lp_mint_auth_seed"
OBSERVATION_SEED = b"observation"
LOCK_CP_AUTH_SEED = b"lock_cp_authority_seed"
LOCKED_LIQUIDITY_SEED = b"locked_liquidity"

DISCRIMINATOR_SIZE = 8

SOL_DECIMALS = 9
TOKEN_DECIMALS = 9
USDC_DECIMALS = 6
LP_DECIMALS = 9

AMM_CONFIG_INDEX = 0
