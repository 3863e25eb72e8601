"""
strategy/ - Clearing decisions.

Modules:
- orders: order list loading
- evaluator: on-chain expression evaluation
- profit: pre-trade profit estimation
- clearing: the per-order clearing engine
"""

from strategy.clearing import ClearingEngine, clear, derive_quote_amount, is_price_favorable
from strategy.evaluator import OrderEvaluator, build_context
from strategy.orders import load_orders, parse_order, parse_orders
from strategy.profit import estimate_gas_cost, estimate_profit

__all__ = [
    "ClearingEngine",
    "OrderEvaluator",
    "build_context",
    "clear",
    "derive_quote_amount",
    "estimate_gas_cost",
    "estimate_profit",
    "is_price_favorable",
    "load_orders",
    "parse_order",
    "parse_orders",
]
