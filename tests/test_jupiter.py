"""Tests for the Jupiter client.

Covers:
- Quote request parameters and boundary validation
- Non-2xx quote → QuoteFetchError with status text, exactly one request
- Swap build body (fixed options, untouched quote payload)
- Hardened swap build: non-2xx / missing swapTransaction → SwapBuildError
"""

from __future__ import annotations

import json

import httpx
import pytest

from jupswap.clients.jupiter import (
    JupiterClient,
    Quote,
    QuoteFetchError,
    SOL_MINT,
    SwapBuildError,
    USDC_MINT,
)
from tests.mocks.mock_jupiter import SOL_USDC_QUOTE, SWAP_ERROR, TRUNCATED_QUOTE


def _client(handler) -> JupiterClient:
    return JupiterClient(base_url="https://quote.test/v6", transport=httpx.MockTransport(handler))


class TestGetQuote:
    """GET /quote."""

    @pytest.mark.asyncio
    async def test_quote_params(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=SOL_USDC_QUOTE)

        client = _client(handler)
        quote = await client.get_quote(SOL_MINT, USDC_MINT, 100, 50)
        await client.close()

        assert len(seen) == 1
        assert seen[0].method == "GET"
        assert seen[0].url.path == "/v6/quote"
        assert dict(seen[0].url.params) == {
            "inputMint": SOL_MINT,
            "outputMint": USDC_MINT,
            "amount": "100",
            "slippageBps": "50",
        }
        assert quote.in_amount == "100"
        assert quote.out_amount == "15"
        assert quote.price_impact_pct == pytest.approx(0.0001)
        assert quote.raw == SOL_USDC_QUOTE

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status,reason",
        [(400, "Bad Request"), (429, "Too Many Requests"), (503, "Service Unavailable")],
    )
    async def test_non_2xx_raises_once(self, status, reason):
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            return httpx.Response(status, json={"error": "nope"})

        client = _client(handler)
        with pytest.raises(QuoteFetchError) as exc_info:
            await client.get_quote(SOL_MINT, USDC_MINT, 100, 50)
        await client.close()

        assert calls == 1  # no retry
        assert reason in str(exc_info.value)
        assert exc_info.value.status_code == status
        assert exc_info.value.reason == reason

    @pytest.mark.asyncio
    async def test_transport_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = _client(handler)
        with pytest.raises(QuoteFetchError, match="connection refused"):
            await client.get_quote(SOL_MINT, USDC_MINT, 100, 50)
        await client.close()

    @pytest.mark.asyncio
    async def test_missing_fields_rejected(self):
        client = _client(lambda request: httpx.Response(200, json=TRUNCATED_QUOTE))
        with pytest.raises(QuoteFetchError, match="missing required fields"):
            await client.get_quote(SOL_MINT, USDC_MINT, 100, 50)
        await client.close()

    @pytest.mark.asyncio
    async def test_non_object_body_rejected(self):
        client = _client(lambda request: httpx.Response(200, json=[1, 2, 3]))
        with pytest.raises(QuoteFetchError, match="not an object"):
            await client.get_quote(SOL_MINT, USDC_MINT, 100, 50)
        await client.close()


class TestQuoteModel:
    """Quote boundary model."""

    def test_route_labels(self):
        quote = Quote.from_response(SOL_USDC_QUOTE)
        assert quote.route_labels() == ["Whirlpool (70%)", "Raydium CLMM (30%)"]

    def test_optional_fields_default(self):
        quote = Quote.from_response(
            {"inputMint": "a", "outputMint": "b", "inAmount": "1", "outAmount": "2"}
        )
        assert quote.price_impact_pct is None
        assert quote.route_plan == []
        assert quote.slippage_bps is None

    def test_null_price_impact_accepted(self):
        quote = Quote.from_response({**SOL_USDC_QUOTE, "priceImpactPct": None})
        assert quote.price_impact_pct is None
        assert quote.raw["priceImpactPct"] is None

    def test_numeric_amounts_accepted(self):
        quote = Quote.from_response({**SOL_USDC_QUOTE, "inAmount": 100, "outAmount": 15})
        assert quote.in_amount == "100"
        assert quote.out_amount == "15"
        # posted back to /swap exactly as received
        assert quote.raw["inAmount"] == 100


class TestBuildSwap:
    """POST /swap."""

    @pytest.mark.asyncio
    async def test_swap_body(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"swapTransaction": "AQID", "lastValidBlockHeight": 1})

        client = _client(handler)
        quote = Quote.from_response(SOL_USDC_QUOTE)
        blob = await client.build_swap(quote, "UserPubkey1111111111111111111111111111111111")
        await client.close()

        assert blob == "AQID"
        assert len(seen) == 1
        assert seen[0].method == "POST"
        assert seen[0].url.path == "/v6/swap"
        assert json.loads(seen[0].content) == {
            "quoteResponse": SOL_USDC_QUOTE,
            "userPublicKey": "UserPubkey1111111111111111111111111111111111",
            "dynamicComputeUnitLimit": True,
            "prioritizationFeeLamports": "auto",
        }

    @pytest.mark.asyncio
    async def test_non_2xx_is_swap_build_error(self):
        client = _client(lambda request: httpx.Response(500, json=SWAP_ERROR))
        with pytest.raises(SwapBuildError) as exc_info:
            await client.build_swap(Quote.from_response(SOL_USDC_QUOTE), "pk")
        await client.close()
        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [{}, {"swapTransaction": ""}, {"swapTransaction": None}, ["x"]])
    async def test_missing_swap_transaction(self, body):
        client = _client(lambda request: httpx.Response(200, json=body))
        with pytest.raises(SwapBuildError, match="no swap transaction"):
            await client.build_swap(Quote.from_response(SOL_USDC_QUOTE), "pk")
        await client.close()
