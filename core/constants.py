# PATH: core/constants.py
"""
Constants for the clearing bot.

Contains enums, defaults, and fixed on-chain values.
"""

from enum import Enum
from typing import Final

# =============================================================================
# FIXED POINT
# =============================================================================

FIXED_POINT_DECIMALS: Final[int] = 18
ONE: Final[int] = 10**FIXED_POINT_DECIMALS
MAX_UINT256: Final[int] = 2**256 - 1

# =============================================================================
# DEFAULTS
# =============================================================================

# 0.1%
DEFAULT_SLIPPAGE = "0.001"

# Fraction of the gas cost deducted when estimating profit before submission
DEFAULT_PRE_TRADE_GAS_COVERAGE = "0.1"

DEFAULT_RPC_TIMEOUT_SECONDS = 10
DEFAULT_QUOTE_TIMEOUT_SECONDS = 10
DEFAULT_RECEIPT_POLL_SECONDS = 2

ADDRESS_PATTERN = r"^0x[a-fA-F0-9]{40}$"
PRIVATE_KEY_PATTERN = r"^(0x)?[a-fA-F0-9]{64}$"
SLIPPAGE_PATTERN = r"^\d+(\.\d+)?$"

# keccak256("Transfer(address,address,uint256)")
TRANSFER_EVENT_TOPIC = "0xddf252ad1be2c89b69c2b068fc378daa952ba7f163c4a11628f55a4df523b3ef"


class ClearState(str, Enum):
    """Per-order clearing states."""
    IDLE = "IDLE"
    EVALUATED = "EVALUATED"
    QUOTED = "QUOTED"
    PRICE_FAVORABLE = "PRICE_FAVORABLE"
    GAS_ESTIMATED = "GAS_ESTIMATED"
    SUBMITTED = "SUBMITTED"
    MINED = "MINED"
    SKIPPED = "SKIPPED"
    FAILED = "FAILED"


class SkipReason(str, Enum):
    """Reasons an order is skipped without error."""
    ZERO_OUTPUT_BALANCE = "ZERO_OUTPUT_BALANCE"
    ZERO_QUOTE_AMOUNT = "ZERO_QUOTE_AMOUNT"
    PRICE_UNFAVORABLE = "PRICE_UNFAVORABLE"
    NEGATIVE_ESTIMATED_PROFIT = "NEGATIVE_ESTIMATED_PROFIT"
