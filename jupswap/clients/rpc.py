"""Solana JSON-RPC client: transaction submission and signature status.

The node connection is opened once per run and shared between the submit
call and every confirmation poll.
"""

from __future__ import annotations

import base64
import logging
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from jupswap.clients.base import APIError, BaseClient

log = logging.getLogger("clients.rpc")

MAINNET_RPC_URL = "https://api.mainnet-beta.solana.com"


class RpcError(Exception):
    """JSON-RPC call failed (transport, HTTP status or `error` member)."""

    def __init__(self, message: str, code: int | None = None):
        super().__init__(message)
        self.code = code


class SubmissionError(Exception):
    """Transaction could not be signed or submitted. Wraps the cause."""


class SignatureStatus(BaseModel):
    """One entry of a getSignatureStatuses result."""

    model_config = ConfigDict(populate_by_name=True)

    slot: int = 0
    confirmations: int | None = None
    err: Any = None
    confirmation_status: str | None = Field(default=None, alias="confirmationStatus")


class SolanaRpcClient:
    """Minimal Solana RPC over JSON-RPC 2.0."""

    def __init__(
        self,
        url: str = MAINNET_RPC_URL,
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.url = url
        # Requests go to the full URL: provider URLs often carry an api-key query.
        self._client = BaseClient(
            timeout=timeout,
            provider_name="rpc",
            transport=transport,
        )
        self._request_id = 0

    async def _call(self, method: str, params: list[Any]) -> Any:
        self._request_id += 1
        try:
            data = await self._client.post(
                self.url,
                json_data={
                    "jsonrpc": "2.0",
                    "id": self._request_id,
                    "method": method,
                    "params": params,
                },
            )
        except APIError as e:
            raise RpcError(f"{method} failed: {e}") from e

        if not isinstance(data, dict):
            raise RpcError(f"{method} returned a non-object response")
        if data.get("error") is not None:
            error = data["error"]
            if isinstance(error, dict):
                raise RpcError(
                    f"{method} rejected: {error.get('message', error)}",
                    code=error.get("code"),
                )
            raise RpcError(f"{method} rejected: {str(error)[:200]}")
        if "result" not in data:
            raise RpcError(f"{method} returned no result")
        return data["result"]

    async def send_raw_transaction(
        self,
        raw_transaction: bytes,
        skip_preflight: bool = True,
        max_retries: int = 2,
    ) -> str:
        """Submit signed transaction bytes. Returns the signature (TXID).

        ``max_retries`` is honoured by the node, which rebroadcasts the
        transaction itself; nothing is retried here.
        """
        result = await self._call(
            "sendTransaction",
            [
                base64.b64encode(raw_transaction).decode("ascii"),
                {
                    "encoding": "base64",
                    "skipPreflight": skip_preflight,
                    "maxRetries": max_retries,
                },
            ],
        )
        if not isinstance(result, str) or not result:
            raise RpcError(f"sendTransaction returned no signature: {result!r}")
        return result

    async def get_signature_statuses(
        self, signatures: list[str]
    ) -> list[SignatureStatus | None]:
        """Status for each signature, ``None`` where the node has none."""
        result = await self._call("getSignatureStatuses", [signatures])
        values = result.get("value") if isinstance(result, dict) else None
        if not isinstance(values, list):
            raise RpcError("getSignatureStatuses returned no value list")
        try:
            return [
                SignatureStatus.model_validate(v) if v is not None else None
                for v in values
            ]
        except ValidationError as e:
            raise RpcError(f"getSignatureStatuses returned a malformed status: {e}") from e

    async def close(self) -> None:
        await self._client.close()
