"""
chains/contracts.py - Thin read-only contract wrappers over RPCProvider.
"""

from eth_abi.exceptions import DecodingError

from chains.abi import (
    decode_eval,
    decode_symbol,
    decode_uint256,
    encode_eval,
    encode_symbol,
    encode_vault_balance,
)
from chains.providers import RPCProvider
from core.exceptions import ErrorCode, InfraError
from core.logging import get_logger

logger = get_logger(__name__)


class OrderbookContract:
    """Orderbook vault balance reads."""

    def __init__(self, provider: RPCProvider, address: str):
        self.provider = provider
        self.address = address

    async def vault_balance(self, owner: str, token: str, vault_id: int) -> int:
        """Vault balance in the token's native decimals."""
        response = await self.provider.eth_call(
            self.address, encode_vault_balance(owner, token, vault_id)
        )
        try:
            return decode_uint256(response.result)
        except DecodingError as e:
            raise InfraError(
                code=ErrorCode.INFRA_RPC_ERROR,
                message=f"Malformed vaultBalance response: {e}",
                details={"owner": owner, "token": token, "raw": str(response.result)[:100]},
            )


class InterpreterContract:
    """
    Expression interpreter.

    Evaluation is an eth_call from `caller`, since the interpreter
    qualifies the state namespace by msg.sender.
    """

    def __init__(self, provider: RPCProvider, address: str, caller: str):
        self.provider = provider
        self.address = address
        self.caller = caller

    async def eval(
        self,
        store: str,
        namespace: int,
        dispatch: int,
        context: list[list[int]],
    ) -> tuple[list[int], list[int]]:
        """Returns (stack, kvs). Raises DecodingError on malformed return data."""
        response = await self.provider.eth_call(
            self.address,
            encode_eval(store, namespace, dispatch, context),
            from_address=self.caller,
        )
        return decode_eval(response.result)


class ERC20Contract:
    """ERC20 metadata reads."""

    def __init__(self, provider: RPCProvider, address: str):
        self.provider = provider
        self.address = address

    async def symbol(self) -> str:
        response = await self.provider.eth_call(self.address, encode_symbol())
        return decode_symbol(response.result)
