"""
dex/adapters - External liquidity quote adapters.
"""

from dex.adapters.zeroex import ZeroExClient, build_quote_params

__all__ = [
    "ZeroExClient",
    "build_quote_params",
]
