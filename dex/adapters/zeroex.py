"""
dex/adapters/zeroex.py - 0x swap API quote client.

One request per order:
    GET {api_url}swap/v1/quote?buyToken=&sellToken=&sellAmount=&slippagePercentage=

Quotes are point-in-time and never cached or retried.
"""

import time
from typing import Any

import httpx

from core.exceptions import ErrorCode, QuoteError
from core.logging import get_logger
from core.models import Quote

logger = get_logger(__name__)

QUOTE_PATH = "swap/v1/quote"
API_KEY_HEADER = "0x-api-key"


def build_quote_params(
    buy_token: str,
    sell_token: str,
    sell_amount: int,
    slippage: str,
) -> dict[str, str]:
    """Query parameters for a quote. Token addresses are lowercased."""
    return {
        "buyToken": buy_token.lower(),
        "sellToken": sell_token.lower(),
        "sellAmount": str(sell_amount),
        "slippagePercentage": str(slippage),
    }


class ZeroExClient:
    """
    0x swap API client.

    Usage:
        client = ZeroExClient(api_url, api_key)
        quote = await client.get_quote(buy_token, sell_token, sell_amount, "0.001")
    """

    def __init__(
        self,
        api_url: str,
        api_key: str | None = None,
        timeout_seconds: int = 10,
    ):
        self.api_url = api_url if api_url.endswith("/") else f"{api_url}/"
        self.api_key = api_key
        self.timeout_seconds = timeout_seconds
        self._client: httpx.AsyncClient | None = None

    def _headers(self) -> dict[str, str]:
        headers = {"accept": "application/json"}
        if self.api_key:
            headers[API_KEY_HEADER] = self.api_key
        return headers

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout_seconds),
                headers=self._headers(),
            )
        return self._client

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def get_quote(
        self,
        buy_token: str,
        sell_token: str,
        sell_amount: int,
        slippage: str,
    ) -> Quote:
        """
        Fetch a swap quote selling `sell_amount` (sell token native decimals).

        Raises:
            QuoteError: network/HTTP failure, empty body or missing fields.
                HTTP error payloads from the API are kept in details["response"].
        """
        url = f"{self.api_url}{QUOTE_PATH}"
        params = build_quote_params(buy_token, sell_token, sell_amount, slippage)
        client = await self._get_client()
        start_ms = int(time.time() * 1000)

        try:
            resp = await client.get(url, params=params)
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise QuoteError(
                code=ErrorCode.QUOTE_HTTP_ERROR,
                message=f"Quote request failed with status {e.response.status_code}",
                details={
                    "url": url,
                    "params": params,
                    "status_code": e.response.status_code,
                    "response": _error_payload(e.response),
                },
            )
        except httpx.HTTPError as e:
            raise QuoteError(
                code=ErrorCode.QUOTE_HTTP_ERROR,
                message=f"Quote request failed: {e}",
                details={"url": url, "params": params},
            )

        latency_ms = int(time.time() * 1000) - start_ms

        try:
            payload = resp.json() if resp.content else None
        except ValueError:
            payload = None

        if not payload:
            raise QuoteError(
                code=ErrorCode.QUOTE_EMPTY,
                message="Empty quote response",
                details={"url": url, "params": params},
            )

        if not isinstance(payload, dict):
            raise QuoteError(
                code=ErrorCode.QUOTE_MALFORMED,
                message="Quote response is not an object",
                details={"params": params, "response": payload},
            )

        try:
            quote = Quote.from_api(payload)
        except QuoteError as e:
            raise QuoteError(
                code=e.code,
                message=e.message,
                details={**e.details, "params": params, "response": payload},
            ) from e

        logger.debug(
            "Quote fetched",
            extra={"context": {"price": quote.price, "latency_ms": latency_ms}},
        )
        return quote


def _error_payload(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text
