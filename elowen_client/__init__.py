from .core.client import SolanaClient
from .core.config import Settings, get_settings
from .core.dto import TransactionResponse
from .core.enums import Currency, PresaleType, RoundDirection, SwapDirection, TransactionType, VaultAccount
from .core.logger import setup_logger
from .layouts.amm_pool import (
    decode_amm_config,
    decode_locked_liquidity_state,
    decode_observation_state,
    decode_pool_state,
)
from .services.amounts import from_token_format, to_token_format
from .services.context import ClassifierContext
from .services.lp_math import lp_tokens_to_trading_tokens, trading_tokens_to_lp_tokens
from .services.parsed_tx import ParsedTransaction
from .services.transactions import get_transactions, prepare_transaction_response, prepare_transaction_responses

__all__ = [
    "SolanaClient",
    "Settings",
    "get_settings",
    "TransactionResponse",
    "Currency",
    "PresaleType",
    "RoundDirection",
    "SwapDirection",
    "TransactionType",
    "VaultAccount",
    "decode_amm_config",
    "decode_locked_liquidity_state",
    "decode_observation_state",
    "decode_pool_state",
    "from_token_format",
    "to_token_format",
    "ClassifierContext",
    "lp_tokens_to_trading_tokens",
    "trading_tokens_to_lp_tokens",
    "ParsedTransaction",
    "get_transactions",
    "prepare_transaction_response",
    "prepare_transaction_responses",
    "setup_logger",
]
