"""Jupiter API client: swap quotes and prebuilt swap transactions.

Jupiter is the DEX aggregator that routes the swap. We only use two
endpoints of the v6 API:

    GET  /quote  -> best route for (inputMint, outputMint, amount, slippageBps)
    POST /swap   -> base64 unsigned VersionedTransaction for that quote

Responses are validated at the boundary so a missing field fails here,
not three steps later.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from jupswap.clients.base import APIError, BaseClient

log = logging.getLogger("clients.jupiter")

JUPITER_API_URL = "https://quote-api.jup.ag/v6"

# SOL (wrapped) and USDC mint addresses
SOL_MINT = "So11111111111111111111111111111111111111112"
USDC_MINT = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"


class JupiterError(Exception):
    """Base class for Jupiter failures."""

    def __init__(self, message: str, status_code: int = 0, reason: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.reason = reason


class QuoteFetchError(JupiterError):
    """Quote request failed or returned an unusable body."""


class SwapBuildError(JupiterError):
    """Swap transaction request failed or returned no transaction."""


class Quote(BaseModel):
    """A Jupiter quote.

    Only the fields we read are modelled. The untouched response lives in
    ``raw`` and is what gets posted back to /swap.
    """

    # Amounts are u64 strings on the wire, but some routers send numbers
    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    input_mint: str = Field(alias="inputMint")
    output_mint: str = Field(alias="outputMint")
    in_amount: str = Field(alias="inAmount")
    out_amount: str = Field(alias="outAmount")
    slippage_bps: int | None = Field(default=None, alias="slippageBps")
    # Display only: null is accepted
    price_impact_pct: float | None = Field(default=None, alias="priceImpactPct")
    route_plan: list[dict[str, Any]] = Field(default_factory=list, alias="routePlan")
    raw: dict[str, Any] = Field(default_factory=dict, exclude=True)

    @classmethod
    def from_response(cls, data: Any) -> Quote:
        if not isinstance(data, dict):
            raise QuoteFetchError(f"Quote response is not an object: {type(data).__name__}")
        try:
            return cls.model_validate({**data, "raw": data})
        except ValidationError as e:
            raise QuoteFetchError(f"Quote response missing required fields: {e}") from e

    def route_labels(self) -> list[str]:
        """Summarize the swap route for logging."""
        return [
            f"{step.get('swapInfo', {}).get('label', 'Unknown')} "
            f"({step.get('percent', 100)}%)"
            for step in self.route_plan
            if isinstance(step, dict)
        ]


class SwapTransaction(BaseModel):
    """Response of POST /swap."""

    swap_transaction: str = Field(alias="swapTransaction", min_length=1)
    last_valid_block_height: int | None = Field(default=None, alias="lastValidBlockHeight")


class JupiterClient:
    """Jupiter v6 API: quotes, swap transactions."""

    def __init__(
        self,
        base_url: str = JUPITER_API_URL,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._client = BaseClient(
            base_url=base_url,
            timeout=timeout,
            provider_name="jupiter",
            transport=transport,
        )

    async def get_quote(
        self,
        input_mint: str,
        output_mint: str,
        amount: int,
        slippage_bps: int,
    ) -> Quote:
        """Get swap quote with best route.

        Args:
            input_mint: Token mint to sell
            output_mint: Token mint to buy
            amount: Amount in smallest unit (lamports for SOL)
            slippage_bps: Max slippage in basis points (50 = 0.5%)

        Raises:
            QuoteFetchError: non-2xx status (carries the status text),
                transport failure, or a body without the quote fields.
        """
        try:
            data = await self._client.get(
                "/quote",
                params={
                    "inputMint": input_mint,
                    "outputMint": output_mint,
                    "amount": str(amount),
                    "slippageBps": slippage_bps,
                },
            )
        except APIError as e:
            if e.status_code:
                raise QuoteFetchError(
                    f"Failed to fetch quote: {e.reason}",
                    status_code=e.status_code,
                    reason=e.reason,
                ) from e
            raise QuoteFetchError(f"Failed to fetch quote: {e}") from e

        return Quote.from_response(data)

    async def build_swap(self, quote: Quote, user_public_key: str) -> str:
        """Get the serialized, unsigned swap transaction for a quote.

        Compute-unit limit and priority fee are left to Jupiter.
        Returns the base64 transaction to pass to the signer.
        """
        try:
            data = await self._client.post(
                "/swap",
                json_data={
                    "quoteResponse": quote.raw,
                    "userPublicKey": user_public_key,
                    "dynamicComputeUnitLimit": True,
                    "prioritizationFeeLamports": "auto",
                },
            )
        except APIError as e:
            raise SwapBuildError(
                f"Failed to build swap: {e}",
                status_code=e.status_code,
                reason=e.reason,
            ) from e

        if not isinstance(data, dict):
            raise SwapBuildError("Jupiter returned no swap transaction.")
        try:
            swap = SwapTransaction.model_validate(data)
        except ValidationError as e:
            raise SwapBuildError("Jupiter returned no swap transaction.") from e

        if swap.last_valid_block_height is not None:
            log.debug("Swap transaction valid until block height %s", swap.last_valid_block_height)
        return swap.swap_transaction

    async def close(self) -> None:
        await self._client.close()
