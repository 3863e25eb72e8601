"""
chains/ - Blockchain interaction layer.

Modules:
- providers: JSON-RPC provider with failover
- abi: call/event encoding for orderbook, interpreter, arb and ERC20
- contracts: read-only contract wrappers
- wallet: local transaction signing
"""

from chains.providers import (
    RPCProvider,
    RPCResponse,
    RPCStats,
)
from chains.contracts import (
    ERC20Contract,
    InterpreterContract,
    OrderbookContract,
)
from chains.wallet import Wallet

__all__ = [
    # Providers
    "RPCProvider",
    "RPCResponse",
    "RPCStats",
    # Contracts
    "ERC20Contract",
    "InterpreterContract",
    "OrderbookContract",
    # Signing
    "Wallet",
]
