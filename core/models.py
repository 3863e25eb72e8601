# PATH: core/models.py
"""
Core data models for the clearing bot.

Orders are immutable once loaded. Evaluation results and quotes are
point-in-time values computed fresh for every order.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from core.constants import ClearState, SkipReason
from core.exceptions import ErrorCode, QuoteError, ValidationError
from core.math import parse_units, safe_int

QUOTE_STRING_FIELDS = (
    "price",
    "guaranteedPrice",
    "buyTokenToEthRate",
    "allowanceTarget",
    "data",
)


@dataclass(frozen=True)
class IO:
    """A token/vault pair on one side of an order."""
    token: str
    decimals: int
    vault_id: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "token": self.token,
            "decimals": self.decimals,
            "vaultId": hex(self.vault_id),
        }


@dataclass(frozen=True)
class Evaluable:
    """The (interpreter, store, expression) triple bound to an order."""
    interpreter: str
    store: str
    expression: str


@dataclass(frozen=True)
class Order:
    """A resting orderbook order. Only IO index 0 of each side is cleared."""
    owner: str
    evaluable: Evaluable
    valid_inputs: tuple[IO, ...]
    valid_outputs: tuple[IO, ...]
    handle_io: bool = False

    @property
    def input(self) -> IO:
        return self.valid_inputs[0]

    @property
    def output(self) -> IO:
        return self.valid_outputs[0]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "owner": self.owner,
            "handleIO": self.handle_io,
            "evaluable": {
                "interpreter": self.evaluable.interpreter,
                "store": self.evaluable.store,
                "expression": self.evaluable.expression,
            },
            "validInputs": [io.to_dict() for io in self.valid_inputs],
            "validOutputs": [io.to_dict() for io in self.valid_outputs],
        }


@dataclass(frozen=True)
class EvaluationResult:
    """Interpreter output for an order, both 18-decimal fixed point."""
    max_output: int
    ratio: int


@dataclass(frozen=True)
class Quote:
    """
    0x swap quote snapshot.

    price and buy_token_to_eth_rate are decimal strings; gas_price is wei.
    estimated_gas is the API's own estimate, reported next to eth_estimateGas.
    """
    price: str
    guaranteed_price: str
    buy_token_to_eth_rate: str
    gas_price: int
    allowance_target: str
    data: str
    estimated_gas: Optional[int] = None

    @property
    def price_fp(self) -> int:
        return parse_units(self.price)

    @property
    def buy_token_to_eth_rate_fp(self) -> int:
        return parse_units(self.buy_token_to_eth_rate)

    @classmethod
    def from_api(cls, payload: Dict[str, Any]) -> "Quote":
        """
        Build from a 0x /swap/v1/quote response body.

        Raises:
            QuoteError: QUOTE_MALFORMED on a missing, null or unparsable field
        """
        fields = {}
        for key in QUOTE_STRING_FIELDS:
            value = payload.get(key)
            if not isinstance(value, str) or not value:
                raise QuoteError(
                    code=ErrorCode.QUOTE_MALFORMED,
                    message=f"Quote field '{key}' must be a non-empty string",
                    details={"field": key, "value": value},
                )
            fields[key] = value

        estimated_gas = payload.get("estimatedGas")
        try:
            for key in ("price", "buyTokenToEthRate"):
                parse_units(fields[key])
            quote = cls(
                price=fields["price"],
                guaranteed_price=fields["guaranteedPrice"],
                buy_token_to_eth_rate=fields["buyTokenToEthRate"],
                gas_price=safe_int(payload.get("gasPrice")),
                allowance_target=fields["allowanceTarget"],
                data=fields["data"],
                estimated_gas=safe_int(estimated_gas) if estimated_gas is not None else None,
            )
        except ValidationError as e:
            raise QuoteError(
                code=ErrorCode.QUOTE_MALFORMED,
                message=f"Quote has an unparsable numeric field: {e.message}",
                details=e.details,
            ) from e
        return quote


@dataclass
class ClearRecord:
    """Outcome of one mined clear, amounts as ints in the units noted."""
    transaction_hash: str
    token_pair: str
    buy_token: str
    buy_token_decimals: int
    sell_token: str
    sell_token_decimals: int
    cleared_amount: int  # sell token native decimals
    clear_price: str
    clear_guaranteed_price: str
    clear_actual_price: Optional[str]
    max_estimated_profit: int  # 18-decimal fixed point
    gas_used: Optional[int]
    gas_cost: Optional[int]  # wei
    income: Optional[int]  # buy token native decimals
    net_profit: Optional[int]  # buy token native decimals

    def to_dict(self) -> Dict[str, Any]:
        return {
            "transactionHash": self.transaction_hash,
            "tokenPair": self.token_pair,
            "buyToken": self.buy_token,
            "buyTokenDecimals": self.buy_token_decimals,
            "sellToken": self.sell_token,
            "sellTokenDecimals": self.sell_token_decimals,
            "clearedAmount": str(self.cleared_amount),
            "clearPrice": self.clear_price,
            "clearGuaranteedPrice": self.clear_guaranteed_price,
            "clearActualPrice": self.clear_actual_price,
            "maxEstimatedProfit": str(self.max_estimated_profit),
            "gasUsed": str(self.gas_used) if self.gas_used is not None else None,
            "gasCost": str(self.gas_cost) if self.gas_cost is not None else None,
            "income": str(self.income) if self.income is not None else None,
            "netProfit": str(self.net_profit) if self.net_profit is not None else None,
        }


@dataclass
class OrderOutcome:
    """Terminal result of one order's clearing attempt."""
    order_index: int
    state: ClearState
    skip_reason: Optional[SkipReason] = None
    error: Optional[Dict[str, Any]] = None
    record: Optional[ClearRecord] = None
    history: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def is_cleared(self) -> bool:
        return self.state == ClearState.MINED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "order_index": self.order_index,
            "state": self.state.value,
            "skip_reason": self.skip_reason.value if self.skip_reason else None,
            "error": self.error,
            "record": self.record.to_dict() if self.record else None,
            "history": self.history,
        }


@dataclass
class ClearReport:
    """Report for a single clearing pass. Lives only for the run."""
    started_at: str = ""
    records: List[ClearRecord] = field(default_factory=list)
    outcomes: List[OrderOutcome] = field(default_factory=list)

    def __post_init__(self):
        if not self.started_at:
            self.started_at = datetime.now(timezone.utc).isoformat()

    def add(self, outcome: OrderOutcome) -> None:
        self.outcomes.append(outcome)
        if outcome.record is not None:
            self.records.append(outcome.record)

    def get_summary(self) -> Dict[str, Any]:
        counts: Dict[str, int] = {}
        for outcome in self.outcomes:
            counts[outcome.state.value] = counts.get(outcome.state.value, 0) + 1
        return {
            "started_at": self.started_at,
            "orders_total": len(self.outcomes),
            "orders_cleared": len(self.records),
            "states": counts,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            **self.get_summary(),
            "records": [r.to_dict() for r in self.records],
        }
