"""
execution/submitter.py - Arb contract settlement submission.

Two sequential calls per order: eth_estimateGas (dry run) then the signed
transaction using the estimated gas limit and the quote's gas price.
"""

from dataclasses import dataclass

from eth_abi.exceptions import EncodingError

from chains.abi import encode_arb, take_orders_config
from chains.wallet import Wallet
from config import ClearingConfig
from core.exceptions import ErrorCode, ExecutionError, InfraError
from core.logging import get_logger
from core.math import safe_int
from core.models import Order, Quote

logger = get_logger(__name__)

# The engine only submits after price >= ratio, so no on-chain profit floor
MINIMUM_SENDER_OUTPUT = 0


@dataclass(frozen=True)
class PreparedClear:
    """An arb call that passed gas estimation."""
    take_orders: tuple
    calldata: str
    gas_limit: int
    gas_price: int

    @property
    def minimum_input(self) -> int:
        return self.take_orders[2]

    @property
    def maximum_input(self) -> int:
        return self.take_orders[3]


class ClearingSubmitter:
    """Builds, estimates and submits arb calls for single orders."""

    def __init__(self, wallet: Wallet, config: ClearingConfig):
        self.wallet = wallet
        self.config = config

    def build_calldata(self, order: Order, amount: int, quote: Quote) -> tuple[tuple, str]:
        """
        Returns (take_orders_config, calldata).

        amount is the quoted sell amount in the order output token's
        native decimals; it becomes both minimumInput and maximumInput.
        """
        take_orders = take_orders_config(order, amount)
        try:
            calldata = encode_arb(
                take_orders,
                MINIMUM_SENDER_OUTPUT,
                quote.allowance_target,
                quote.data,
            )
        except (EncodingError, TypeError, ValueError) as e:
            raise ExecutionError(
                code=ErrorCode.EXEC_ESTIMATE_FAILED,
                message=f"Cannot encode arb call: {e}",
                details={"allowance_target": quote.allowance_target},
            ) from e
        return take_orders, calldata

    async def estimate(self, order: Order, amount: int, quote: Quote) -> PreparedClear:
        """
        Dry-run the arb call.

        Raises:
            ExecutionError: EXEC_ESTIMATE_FAILED
        """
        take_orders, calldata = self.build_calldata(order, amount, quote)
        tx = {
            "from": self.wallet.address,
            "to": self.config.arb_address,
            "data": calldata,
            "gasPrice": hex(quote.gas_price),
        }
        try:
            gas_limit = await self.wallet.provider.estimate_gas(tx)
        except InfraError as e:
            raise ExecutionError(
                code=ErrorCode.EXEC_ESTIMATE_FAILED,
                message=f"Gas estimation failed: {e.message}",
                details=e.details,
            ) from e
        return PreparedClear(
            take_orders=take_orders,
            calldata=calldata,
            gas_limit=gas_limit,
            gas_price=quote.gas_price,
        )

    async def submit(self, prepared: PreparedClear) -> str:
        """
        Broadcast the prepared call. Returns the transaction hash.

        Raises:
            ExecutionError: EXEC_SUBMIT_FAILED
        """
        try:
            return await self.wallet.send_transaction(
                to=self.config.arb_address,
                data=prepared.calldata,
                gas=prepared.gas_limit,
                gas_price=prepared.gas_price,
            )
        except InfraError as e:
            raise ExecutionError(
                code=ErrorCode.EXEC_SUBMIT_FAILED,
                message=f"Transaction submission failed: {e.message}",
                details=e.details,
            ) from e

    async def wait_for_receipt(self, tx_hash: str) -> dict:
        """
        Wait until mined.

        Raises:
            ExecutionError: EXEC_REVERTED, EXEC_RECEIPT_TIMEOUT,
                or EXEC_SUBMIT_FAILED if the receipt cannot be read
        """
        try:
            receipt = await self.wallet.wait_for_receipt(
                tx_hash,
                poll_seconds=self.config.receipt_poll_seconds,
                timeout_seconds=self.config.receipt_timeout_seconds,
            )
        except InfraError as e:
            raise ExecutionError(
                code=ErrorCode.EXEC_SUBMIT_FAILED,
                message=f"Cannot read transaction receipt: {e.message}",
                details={"tx_hash": tx_hash, **e.details},
            ) from e

        if safe_int(receipt.get("status", "0x1")) == 0:
            raise ExecutionError(
                code=ErrorCode.EXEC_REVERTED,
                message="Transaction execution reverted",
                details={"tx_hash": tx_hash, "block_number": receipt.get("blockNumber")},
            )
        return receipt
