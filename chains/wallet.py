"""
chains/wallet.py - Local signing account bound to an RPC provider.

Transactions are signed locally with eth-account and broadcast with
eth_sendRawTransaction. Orders are cleared one at a time, so the pending
nonce is read fresh for every transaction.
"""

import asyncio
import time

from eth_account import Account
from eth_account.signers.local import LocalAccount
from eth_utils import to_checksum_address

from chains.providers import RPCProvider
from core.exceptions import ErrorCode, ExecutionError
from core.logging import get_logger

logger = get_logger(__name__)


class Wallet:
    """Signer for the bot's transactions."""

    def __init__(self, private_key: str, provider: RPCProvider, chain_id: int):
        key = private_key if private_key.startswith("0x") else f"0x{private_key}"
        self._account: LocalAccount = Account.from_key(key)
        self.provider = provider
        self.chain_id = chain_id

    @property
    def address(self) -> str:
        return self._account.address

    async def send_transaction(
        self,
        to: str,
        data: str,
        gas: int,
        gas_price: int,
        value: int = 0,
    ) -> str:
        """Sign and broadcast a legacy transaction. Returns the tx hash."""
        nonce = await self.provider.get_transaction_count(self.address)
        tx = {
            "to": to_checksum_address(to),
            "data": data,
            "gas": gas,
            "gasPrice": gas_price,
            "nonce": nonce,
            "chainId": self.chain_id,
            "value": value,
        }
        signed = self._account.sign_transaction(tx)
        raw_tx = "0x" + bytes(signed.raw_transaction).hex()
        tx_hash = await self.provider.send_raw_transaction(raw_tx)
        logger.debug(
            "Transaction broadcast",
            extra={"context": {"tx_hash": tx_hash, "nonce": nonce, "gas": gas}},
        )
        return tx_hash

    async def wait_for_receipt(
        self,
        tx_hash: str,
        poll_seconds: float = 2,
        timeout_seconds: float | None = None,
    ) -> dict:
        """
        Poll until the transaction is mined.

        Raises:
            ExecutionError: EXEC_RECEIPT_TIMEOUT when timeout_seconds elapses
        """
        started = time.monotonic()
        while True:
            receipt = await self.provider.get_transaction_receipt(tx_hash)
            if receipt is not None:
                return receipt
            if timeout_seconds is not None and time.monotonic() - started >= timeout_seconds:
                raise ExecutionError(
                    code=ErrorCode.EXEC_RECEIPT_TIMEOUT,
                    message=f"Transaction not mined after {timeout_seconds}s",
                    details={"tx_hash": tx_hash},
                )
            await asyncio.sleep(poll_seconds)
