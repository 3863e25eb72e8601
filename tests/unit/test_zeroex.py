"""
tests/unit/test_zeroex.py - 0x quote client tests.
"""

import httpx
import pytest

from conftest import NHT, USDT
from core.exceptions import ErrorCode, QuoteError
from dex.adapters.zeroex import API_KEY_HEADER, ZeroExClient, build_quote_params

QUOTE_BODY = {
    "price": "0.6",
    "guaranteedPrice": "0.5994",
    "buyTokenToEthRate": "0.9",
    "gasPrice": "30000000000",
    "estimatedGas": "250000",
    "allowanceTarget": "0xdef1c0ded9bec7f1a1670819833240f027b25eff",
    "data": "0xd9627aa4",
    "to": "0xdef1c0ded9bec7f1a1670819833240f027b25eff",
}


def make_client(handler, api_key=None) -> ZeroExClient:
    client = ZeroExClient("https://polygon.api.0x.org", api_key)
    client._client = httpx.AsyncClient(
        transport=httpx.MockTransport(handler),
        headers=client._headers(),
    )
    return client


class TestQuoteParams:
    def test_lowercases_tokens(self):
        params = build_quote_params(USDT, NHT, 10**18, "0.001")
        assert params == {
            "buyToken": USDT.lower(),
            "sellToken": NHT.lower(),
            "sellAmount": "1000000000000000000",
            "slippagePercentage": "0.001",
        }


class TestZeroExClient:
    @pytest.mark.asyncio
    async def test_get_quote(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = request.url
            seen["headers"] = request.headers
            return httpx.Response(200, json=QUOTE_BODY)

        client = make_client(handler, api_key="secret")
        quote = await client.get_quote(USDT, NHT, 10**18, "0.001")
        await client.close()

        assert quote.price == "0.6"
        assert quote.gas_price == 30 * 10**9
        assert quote.estimated_gas == 250_000
        assert quote.price_fp == 6 * 10**17
        assert seen["url"].path == "/swap/v1/quote"
        assert seen["url"].params["sellAmount"] == str(10**18)
        assert seen["url"].params["buyToken"] == USDT.lower()
        assert seen["headers"][API_KEY_HEADER] == "secret"

    @pytest.mark.asyncio
    async def test_no_api_key_header_without_key(self):
        seen = {}

        def handler(request):
            seen["headers"] = request.headers
            return httpx.Response(200, json=QUOTE_BODY)

        client = make_client(handler)
        await client.get_quote(USDT, NHT, 1, "0.001")
        assert API_KEY_HEADER not in seen["headers"]

    @pytest.mark.asyncio
    async def test_http_error_keeps_payload(self):
        error_body = {"code": 100, "reason": "Validation Failed"}

        def handler(request):
            return httpx.Response(400, json=error_body)

        client = make_client(handler)
        with pytest.raises(QuoteError) as exc_info:
            await client.get_quote(USDT, NHT, 1, "0.001")

        assert exc_info.value.code == ErrorCode.QUOTE_HTTP_ERROR
        assert exc_info.value.details["status_code"] == 400
        assert exc_info.value.details["response"] == error_body

    @pytest.mark.asyncio
    async def test_network_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = make_client(handler)
        with pytest.raises(QuoteError) as exc_info:
            await client.get_quote(USDT, NHT, 1, "0.001")

        assert exc_info.value.code == ErrorCode.QUOTE_HTTP_ERROR

    @pytest.mark.asyncio
    async def test_empty_body(self):
        def handler(request):
            return httpx.Response(200, content=b"")

        client = make_client(handler)
        with pytest.raises(QuoteError) as exc_info:
            await client.get_quote(USDT, NHT, 1, "0.001")

        assert exc_info.value.code == ErrorCode.QUOTE_EMPTY

    @pytest.mark.asyncio
    async def test_missing_field(self):
        body = {k: v for k, v in QUOTE_BODY.items() if k != "buyTokenToEthRate"}

        def handler(request):
            return httpx.Response(200, json=body)

        client = make_client(handler)
        with pytest.raises(QuoteError) as exc_info:
            await client.get_quote(USDT, NHT, 1, "0.001")

        assert exc_info.value.code == ErrorCode.QUOTE_MALFORMED

    @pytest.mark.asyncio
    async def test_null_allowance_target(self):
        body = {**QUOTE_BODY, "allowanceTarget": None}

        def handler(request):
            return httpx.Response(200, json=body)

        client = make_client(handler)
        with pytest.raises(QuoteError) as exc_info:
            await client.get_quote(USDT, NHT, 1, "0.001")

        assert exc_info.value.code == ErrorCode.QUOTE_MALFORMED
        assert exc_info.value.details["field"] == "allowanceTarget"
        assert exc_info.value.details["params"]["sellAmount"] == "1"

    @pytest.mark.asyncio
    async def test_non_object_body(self):
        def handler(request):
            return httpx.Response(200, json=[QUOTE_BODY])

        client = make_client(handler)
        with pytest.raises(QuoteError) as exc_info:
            await client.get_quote(USDT, NHT, 1, "0.001")

        assert exc_info.value.code == ErrorCode.QUOTE_MALFORMED
