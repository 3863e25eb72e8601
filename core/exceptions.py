# PATH: core/exceptions.py
"""
Typed exceptions for the clearing bot.

Two tiers:
- fatal: ConfigError, ValidationError raised before any order is processed
- per-order: InfraError, EvaluationError, QuoteError, ExecutionError, caught
  by the engine and recorded as a FAILED outcome for that order only
"""

from enum import Enum
from typing import Any, Optional


class ErrorCode(str, Enum):
    """Error codes carried by every ClearerError."""
    # Configuration / validation (fatal)
    CONFIG_UNKNOWN_NETWORK = "CONFIG_UNKNOWN_NETWORK"
    CONFIG_MISSING_ADDRESS = "CONFIG_MISSING_ADDRESS"
    CONFIG_INVALID_ADDRESS = "CONFIG_INVALID_ADDRESS"
    CONFIG_INVALID_VALUE = "CONFIG_INVALID_VALUE"
    ORDERS_INVALID = "ORDERS_INVALID"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    MATH_DECIMALS_OUT_OF_RANGE = "MATH_DECIMALS_OUT_OF_RANGE"
    MATH_FLOAT_NOT_ALLOWED = "MATH_FLOAT_NOT_ALLOWED"

    # Infrastructure
    INFRA_RPC_ERROR = "INFRA_RPC_ERROR"
    INFRA_RPC_TIMEOUT = "INFRA_RPC_TIMEOUT"

    # Evaluation
    EVAL_REVERT = "EVAL_REVERT"
    EVAL_MALFORMED = "EVAL_MALFORMED"

    # Quote
    QUOTE_HTTP_ERROR = "QUOTE_HTTP_ERROR"
    QUOTE_EMPTY = "QUOTE_EMPTY"
    QUOTE_MALFORMED = "QUOTE_MALFORMED"

    # Execution
    EXEC_ESTIMATE_FAILED = "EXEC_ESTIMATE_FAILED"
    EXEC_SUBMIT_FAILED = "EXEC_SUBMIT_FAILED"
    EXEC_REVERTED = "EXEC_REVERTED"
    EXEC_RECEIPT_TIMEOUT = "EXEC_RECEIPT_TIMEOUT"

    UNKNOWN = "UNKNOWN"


class ClearerError(Exception):
    """Base exception for the clearing bot."""

    def __init__(
        self,
        code: ErrorCode = ErrorCode.UNKNOWN,
        message: str = "",
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.message}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "error_code": self.code.value,
            "message": self.message,
            "details": self.details,
        }


class ConfigError(ClearerError):
    """Run configuration could not be resolved."""
    pass


class ValidationError(ClearerError):
    """Input failed validation (orders, decimals, numeric strings)."""

    def __init__(
        self,
        message: str = "",
        details: Optional[dict[str, Any]] = None,
        code: ErrorCode = ErrorCode.VALIDATION_ERROR,
    ):
        super().__init__(code=code, message=message, details=details)


class InfraError(ClearerError):
    """Infrastructure-related errors (RPC, timeouts)."""
    pass


class EvaluationError(ClearerError):
    """Order expression evaluation reverted or returned a malformed stack."""
    pass


class QuoteError(ClearerError):
    """Swap quote could not be obtained."""
    pass


class ExecutionError(ClearerError):
    """Gas estimation, submission or mining of the clear transaction failed."""
    pass
