"""
core - Core utilities and models for the clearing bot.

This package contains:
- models.py: Data models (Order, Quote, ClearRecord, ClearReport)
- constants.py: Enums and constants
- exceptions.py: Typed exceptions with error codes
- math.py: 18-decimal fixed-point math (no float)
- logging.py: Structured logging
"""

from core.constants import (
    ClearState,
    MAX_UINT256,
    ONE,
    SkipReason,
)
from core.exceptions import (
    ClearerError,
    ConfigError,
    ErrorCode,
    EvaluationError,
    ExecutionError,
    InfraError,
    QuoteError,
    ValidationError,
)
from core.logging import get_logger, setup_logging
from core.models import (
    ClearRecord,
    ClearReport,
    Evaluable,
    EvaluationResult,
    IO,
    Order,
    OrderOutcome,
    Quote,
)

__all__ = [
    # Constants
    "ClearState",
    "MAX_UINT256",
    "ONE",
    "SkipReason",
    # Exceptions
    "ClearerError",
    "ConfigError",
    "ErrorCode",
    "EvaluationError",
    "ExecutionError",
    "InfraError",
    "QuoteError",
    "ValidationError",
    # Models
    "ClearRecord",
    "ClearReport",
    "Evaluable",
    "EvaluationResult",
    "IO",
    "Order",
    "OrderOutcome",
    "Quote",
    # Logging
    "get_logger",
    "setup_logging",
]
