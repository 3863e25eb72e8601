"""
strategy/profit.py - Pre-trade profit estimation.

Pure function, all values 18-decimal fixed point:

    gas_cost = buyTokenToEthRate * gas_units * gasPrice * gas_coverage
    income   = (quoted_price - ratio) * trade_size
    profit   = income - gas_cost

A negative result is an expected loss, not an error.
"""

from core.math import fp_mul, parse_units, validate_no_float
from core.models import Quote


def estimate_gas_cost(quote: Quote, gas_units: int, gas_coverage: str = "1") -> int:
    """Gas cost of `gas_units` at the quote's gas price, in buy token (18 decimals)."""
    validate_no_float(gas_units)
    gas_cost_wei = gas_units * quote.gas_price
    return fp_mul(
        fp_mul(quote.buy_token_to_eth_rate_fp, gas_cost_wei),
        parse_units(gas_coverage),
    )


def estimate_profit(
    quote: Quote,
    ratio: int,
    trade_size: int,
    gas_units: int,
    gas_coverage: str = "1",
) -> int:
    """
    Estimated profit of clearing `trade_size` against `quote`.

    Args:
        quote: Quote for the trade
        ratio: Order ratio, 18 decimals
        trade_size: Sell amount, 18 decimals
        gas_units: Estimated gas limit
        gas_coverage: Fraction of gas cost deducted ("1" = full, "0.1" = 10%)
    """
    validate_no_float(ratio, trade_size)
    income = fp_mul(quote.price_fp - ratio, trade_size)
    return income - estimate_gas_cost(quote, gas_units, gas_coverage)
