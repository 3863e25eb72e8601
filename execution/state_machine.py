# PATH: execution/state_machine.py
"""
Per-order clearing state machine.

CLEARING STATE CONTRACT:
========================

States (ClearState):
  IDLE             → order picked up, nothing read yet
  EVALUATED        → expression evaluated against current vault balances
  QUOTED           → external quote received for the trade size
  PRICE_FAVORABLE  → quoted price >= order ratio
  GAS_ESTIMATED    → arb call dry-run succeeded
  SUBMITTED        → transaction broadcast
  MINED            → transaction mined successfully
  SKIPPED          → nothing to do (zero balance, zero amount, bad price)
  FAILED           → a stage raised (evaluation, quote, estimation, submission)

Transitions:
  IDLE → EVALUATED → QUOTED → PRICE_FAVORABLE → GAS_ESTIMATED → SUBMITTED → MINED
  any non-terminal → SKIPPED | FAILED

SKIPPED, FAILED and MINED are terminal for the order and never fatal to
the run.
========================
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from core.constants import ClearState, SkipReason
from core.exceptions import ClearerError


_EXITS = [ClearState.SKIPPED, ClearState.FAILED]

VALID_TRANSITIONS: Dict[ClearState, List[ClearState]] = {
    ClearState.IDLE: [ClearState.EVALUATED, *_EXITS],
    ClearState.EVALUATED: [ClearState.QUOTED, *_EXITS],
    ClearState.QUOTED: [ClearState.PRICE_FAVORABLE, *_EXITS],
    ClearState.PRICE_FAVORABLE: [ClearState.GAS_ESTIMATED, *_EXITS],
    ClearState.GAS_ESTIMATED: [ClearState.SUBMITTED, *_EXITS],
    ClearState.SUBMITTED: [ClearState.MINED, ClearState.FAILED],
    ClearState.MINED: [],  # Terminal state
    ClearState.SKIPPED: [],  # Terminal state
    ClearState.FAILED: [],  # Terminal state
}


@dataclass
class StateTransition:
    """Record of a state transition."""
    from_state: ClearState
    to_state: ClearState
    timestamp: str = ""
    reason: str = ""

    def __post_init__(self):
        if not self.timestamp:
            self.timestamp = datetime.now(timezone.utc).isoformat()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "from_state": self.from_state.value,
            "to_state": self.to_state.value,
            "timestamp": self.timestamp,
            "reason": self.reason,
        }


class InvalidTransitionError(Exception):
    """Raised when an invalid state transition is attempted."""
    pass


@dataclass
class ClearStateMachine:
    """Tracks one order through a clearing attempt."""
    order_index: int
    state: ClearState = ClearState.IDLE
    history: List[StateTransition] = field(default_factory=list)
    skip_reason: Optional[SkipReason] = None
    error: Optional[ClearerError] = None

    def can_transition_to(self, new_state: ClearState) -> bool:
        return new_state in VALID_TRANSITIONS.get(self.state, [])

    def transition_to(self, new_state: ClearState, reason: str = "") -> StateTransition:
        """
        Transition to a new state.

        Raises InvalidTransitionError if transition is not valid.
        """
        if not self.can_transition_to(new_state):
            raise InvalidTransitionError(
                f"Cannot transition from {self.state.value} to {new_state.value}. "
                f"Valid transitions: {[s.value for s in VALID_TRANSITIONS.get(self.state, [])]}"
            )

        transition = StateTransition(
            from_state=self.state,
            to_state=new_state,
            reason=reason,
        )
        self.history.append(transition)
        self.state = new_state
        return transition

    def skip(self, reason: SkipReason) -> StateTransition:
        self.skip_reason = reason
        return self.transition_to(ClearState.SKIPPED, reason=reason.value)

    def fail(self, error: ClearerError) -> StateTransition:
        self.error = error
        return self.transition_to(ClearState.FAILED, reason=error.code.value)

    @property
    def is_terminal(self) -> bool:
        return len(VALID_TRANSITIONS.get(self.state, [])) == 0

    def history_dicts(self) -> List[Dict[str, Any]]:
        return [t.to_dict() for t in self.history]
