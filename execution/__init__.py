"""
Execution layer.

This module contains the execution layer components:
- state_machine: per-order clearing state machine
- submitter: arb call estimation and submission
- accounting: post-trade reconciliation from receipts
"""

from execution.state_machine import (
    ClearStateMachine,
    StateTransition,
    InvalidTransitionError,
    VALID_TRANSITIONS,
)
from execution.submitter import (
    ClearingSubmitter,
    PreparedClear,
)
from execution.accounting import (
    ClearOutcome,
    OutcomeAccountant,
    calculate_net_profit,
    get_actual_price,
    get_income,
)

__all__ = [
    # State machine
    "ClearStateMachine",
    "StateTransition",
    "InvalidTransitionError",
    "VALID_TRANSITIONS",
    # Submitter
    "ClearingSubmitter",
    "PreparedClear",
    # Accounting
    "ClearOutcome",
    "OutcomeAccountant",
    "calculate_net_profit",
    "get_actual_price",
    "get_income",
]
