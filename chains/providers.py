"""
chains/providers.py - JSON-RPC provider with failover.

Provides RPC access with:
- Multiple endpoint failover
- Request timeout handling
- Connection pooling
- Latency tracking

Reverts are deterministic, so a revert from one endpoint is raised
immediately instead of being retried against the next one.
"""

import time
from dataclasses import dataclass
from typing import Any

import httpx

from core.logging import get_logger
from core.exceptions import InfraError, ErrorCode
from core.math import safe_int

logger = get_logger(__name__)


@dataclass
class RPCStats:
    """Statistics for an RPC endpoint."""
    url: str
    total_requests: int = 0
    successful_requests: int = 0
    failed_requests: int = 0
    total_latency_ms: int = 0
    last_error: str | None = None
    last_success_ts: int | None = None

    @property
    def avg_latency_ms(self) -> int:
        if self.successful_requests == 0:
            return 0
        return self.total_latency_ms // self.successful_requests

    @property
    def success_rate(self) -> float:
        if self.total_requests == 0:
            return 0.0
        return self.successful_requests / self.total_requests


@dataclass
class RPCResponse:
    """Response from an RPC call."""
    result: Any
    latency_ms: int
    endpoint_used: str


def _is_revert(error: dict) -> bool:
    message = str(error.get("message", "")).lower()
    return error.get("code") == 3 or "revert" in message


class RPCProvider:
    """
    RPC provider with failover support.

    Tries multiple endpoints in order until one succeeds.
    Tracks statistics per endpoint for monitoring.
    """

    def __init__(
        self,
        rpc_urls: list[str],
        timeout_seconds: int = 10,
    ):
        self.rpc_urls = [url for url in rpc_urls if url]
        self.timeout_seconds = timeout_seconds
        self._client: httpx.AsyncClient | None = None
        self._request_id = 0

        self.stats: dict[str, RPCStats] = {
            url: RPCStats(url=url) for url in self.rpc_urls
        }

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout_seconds),
                limits=httpx.Limits(max_connections=10),
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    def _next_request_id(self) -> int:
        self._request_id += 1
        return self._request_id

    async def call(
        self,
        method: str,
        params: list | None = None,
    ) -> RPCResponse:
        """
        Make an RPC call with failover.

        Raises:
            InfraError: On revert, or if all endpoints fail
        """
        if not self.rpc_urls:
            raise InfraError(
                code=ErrorCode.INFRA_RPC_ERROR,
                message="No RPC endpoints configured",
            )

        client = await self._get_client()
        last_error: Exception | None = None

        for url in self.rpc_urls:
            stats = self.stats[url]
            stats.total_requests += 1

            payload = {
                "jsonrpc": "2.0",
                "method": method,
                "params": params or [],
                "id": self._next_request_id(),
            }

            start_ms = int(time.time() * 1000)

            try:
                resp = await client.post(url, json=payload)
                latency_ms = int(time.time() * 1000) - start_ms
                result = resp.json()
            except httpx.TimeoutException as e:
                latency_ms = int(time.time() * 1000) - start_ms
                stats.failed_requests += 1
                stats.last_error = f"Timeout after {latency_ms}ms"
                last_error = InfraError(
                    code=ErrorCode.INFRA_RPC_TIMEOUT,
                    message=f"RPC timeout after {latency_ms}ms",
                    details={"url": url, "method": method, "error": str(e)},
                )
                logger.debug(f"RPC timeout for {url}: {latency_ms}ms")
                continue
            except (httpx.HTTPError, ValueError) as e:
                stats.failed_requests += 1
                stats.last_error = str(e)
                last_error = e
                logger.debug(f"RPC failed for {url}: {e}")
                continue

            if "error" in result:
                error = result["error"]
                error_msg = error.get("message", str(error))
                stats.failed_requests += 1
                stats.last_error = error_msg
                rpc_error = InfraError(
                    code=ErrorCode.INFRA_RPC_ERROR,
                    message=f"RPC error: {error_msg}",
                    details={
                        "url": url,
                        "method": method,
                        "revert": _is_revert(error),
                        "data": error.get("data"),
                    },
                )
                if rpc_error.details["revert"]:
                    raise rpc_error
                last_error = rpc_error
                logger.debug(f"RPC error from {url}: {error_msg}")
                continue

            stats.successful_requests += 1
            stats.total_latency_ms += latency_ms
            stats.last_success_ts = int(time.time() * 1000)

            return RPCResponse(
                result=result.get("result"),
                latency_ms=latency_ms,
                endpoint_used=url,
            )

        if isinstance(last_error, InfraError) and len(self.rpc_urls) == 1:
            raise last_error

        raise InfraError(
            code=ErrorCode.INFRA_RPC_ERROR,
            message=f"All RPC endpoints failed for {method}",
            details={
                "method": method,
                "endpoints_tried": len(self.rpc_urls),
                "last_error": str(last_error),
            },
        )

    async def get_chain_id(self) -> int:
        """Get chain ID from RPC."""
        response = await self.call("eth_chainId")
        return safe_int(response.result)

    async def eth_call(
        self,
        to: str,
        data: str,
        block: str = "latest",
        from_address: str | None = None,
    ) -> RPCResponse:
        """
        Make eth_call.

        Args:
            to: Contract address
            data: Encoded call data
            block: Block number or "latest"
            from_address: Caller address seen by the contract (msg.sender)
        """
        tx: dict[str, str] = {"to": to, "data": data}
        if from_address:
            tx["from"] = from_address
        return await self.call("eth_call", [tx, block])

    async def estimate_gas(self, tx: dict[str, str]) -> int:
        """Estimate gas units for a transaction dict with hex-encoded values."""
        response = await self.call("eth_estimateGas", [tx])
        return safe_int(response.result)

    async def get_transaction_count(self, address: str, block: str = "pending") -> int:
        response = await self.call("eth_getTransactionCount", [address, block])
        return safe_int(response.result)

    async def send_raw_transaction(self, raw_tx: str) -> str:
        """Broadcast a signed transaction. Returns the transaction hash."""
        response = await self.call("eth_sendRawTransaction", [raw_tx])
        return response.result

    async def get_transaction_receipt(self, tx_hash: str) -> dict | None:
        """Receipt dict, or None while the transaction is pending."""
        response = await self.call("eth_getTransactionReceipt", [tx_hash])
        return response.result

    def get_stats_summary(self) -> dict:
        """Get statistics summary for all endpoints."""
        return {
            url: {
                "total_requests": s.total_requests,
                "success_rate": round(s.success_rate, 3),
                "avg_latency_ms": s.avg_latency_ms,
                "last_error": s.last_error,
            }
            for url, s in self.stats.items()
        }
