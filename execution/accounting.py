# PATH: execution/accounting.py
"""
Post-trade accounting from a mined receipt.

- income: buy token credited to the bot's account
- actual price: what the swap delivered to the arb contract per unit sold
- gas cost and net profit

Receipts without an attributable Transfer give None values, not errors:
some settlement paths do not emit a directly attributable transfer.
A missing or unparsable gasUsed gives None gas figures the same way.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from chains.abi import TransferEvent, decode_transfer_log, same_address
from core.exceptions import ValidationError
from core.logging import get_logger
from core.math import fp_div, fp_mul, safe_int, scale_from_18, scale_to_18
from core.models import Quote

logger = get_logger(__name__)


@dataclass(frozen=True)
class ClearOutcome:
    """Realized values of a mined clear. None where the receipt does not say."""
    income: Optional[int]  # buy token native decimals
    actual_price: Optional[int]  # buy token native decimals per 1 sell token
    gas_used: Optional[int]
    gas_cost: Optional[int]  # wei
    net_profit: Optional[int]  # buy token native decimals

    def to_dict(self) -> Dict[str, Any]:
        return {
            "income": self.income,
            "actual_price": self.actual_price,
            "gas_used": self.gas_used,
            "gas_cost": self.gas_cost,
            "net_profit": self.net_profit,
        }


def _transfers(receipt: dict) -> list[TransferEvent]:
    """Decodable ERC20 Transfers in log order; malformed logs are skipped."""
    events = []
    for log in receipt.get("logs") or []:
        if not isinstance(log, dict):
            continue
        try:
            event = decode_transfer_log(log)
        except (ValueError, TypeError) as e:
            logger.debug(
                "Skipping undecodable receipt log",
                extra={"context": {"log_index": log.get("logIndex"), "error": str(e)}},
            )
            continue
        if event is not None:
            events.append(event)
    return events


def get_gas_used(receipt: dict) -> Optional[int]:
    """gasUsed from the receipt, or None if absent or unparsable."""
    value = receipt.get("gasUsed")
    if value is None:
        return None
    try:
        return safe_int(value)
    except ValidationError:
        logger.warning(
            "Unparsable gasUsed in receipt",
            extra={"context": {"gas_used": value}},
        )
        return None


def get_income(receipt: dict, account: str) -> Optional[int]:
    """Value of the first Transfer to `account`, or None."""
    for event in _transfers(receipt):
        if same_address(event.to_address, account):
            return event.value
    return None


def get_actual_price(
    receipt: dict,
    orderbook: str,
    arb: str,
    trade_size: int,
    buy_decimals: int,
) -> Optional[int]:
    """
    Realized clearing price in buy token native decimals, or None.

    Uses the first Transfer into the arb contract that did not come from the
    orderbook, i.e. the swap proceeds. trade_size is 18-decimal fixed point.
    """
    if trade_size <= 0:
        return None
    for event in _transfers(receipt):
        if same_address(event.to_address, arb) and not same_address(event.from_address, orderbook):
            price_fp = fp_div(scale_to_18(event.value, buy_decimals), trade_size)
            return scale_from_18(price_fp, buy_decimals)
    return None


def calculate_net_profit(
    income: int,
    quote: Quote,
    gas_cost: int,
    buy_decimals: int,
) -> int:
    """income minus the gas cost converted to buy token, native decimals."""
    gas_cost_in_buy_token = fp_mul(quote.buy_token_to_eth_rate_fp, gas_cost)
    return income - scale_from_18(gas_cost_in_buy_token, buy_decimals)


class OutcomeAccountant:
    """Reconciles a mined clear from its receipt logs."""

    def __init__(self, orderbook: str, arb: str, account: str):
        self.orderbook = orderbook
        self.arb = arb
        self.account = account

    def settle(
        self,
        receipt: dict,
        quote: Quote,
        trade_size: int,
        buy_decimals: int,
    ) -> ClearOutcome:
        """
        Args:
            receipt: Mined transaction receipt (JSON-RPC shape)
            quote: Quote the clear was submitted with
            trade_size: Cleared amount, 18-decimal fixed point
            buy_decimals: Decimals of the token the bot receives
        """
        gas_used = get_gas_used(receipt)
        gas_cost = gas_used * quote.gas_price if gas_used is not None else None
        income = get_income(receipt, self.account)
        actual_price = get_actual_price(
            receipt, self.orderbook, self.arb, trade_size, buy_decimals
        )
        net_profit = (
            calculate_net_profit(income, quote, gas_cost, buy_decimals)
            if income is not None and gas_cost is not None
            else None
        )
        return ClearOutcome(
            income=income,
            actual_price=actual_price,
            gas_used=gas_used,
            gas_cost=gas_cost,
            net_profit=net_profit,
        )
