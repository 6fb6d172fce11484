"""Base HTTP client for the jupswap API layer.

Provides:
- One shared httpx.AsyncClient per provider
- Timeout handling
- Structured error handling (status code + reason phrase)

No retries and no rate limiting: every request is attempted exactly once.
Callers decide what a failure means for the run.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

log = logging.getLogger("clients.base")


class APIError(Exception):
    """Structured API error."""

    def __init__(
        self,
        message: str,
        status_code: int = 0,
        provider: str = "",
        reason: str = "",
    ):
        super().__init__(message)
        self.status_code = status_code
        self.provider = provider
        self.reason = reason


class BaseClient:
    """Thin async HTTP client with structured errors.

    Usage:
        client = BaseClient(
            base_url="https://api.example.com",
            timeout=10.0,
            provider_name="example",
        )
        data = await client.get("/endpoint", params={"q": "test"})
    """

    def __init__(
        self,
        base_url: str = "",
        headers: dict[str, str] | None = None,
        timeout: float = 10.0,
        provider_name: str = "",
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.provider_name = provider_name
        self.timeout = timeout
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers or {},
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def get(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """GET request, parsed as JSON."""
        return await self._request("GET", path, params=params, headers=headers)

    async def post(
        self,
        path: str,
        json_data: Any = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """POST a JSON body, parsed as JSON."""
        return await self._request("POST", path, json_data=json_data, headers=headers)

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json_data: Any = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """Execute a single request. Raises APIError on any failure."""
        try:
            response = await self._client.request(
                method,
                path,
                params=params,
                json=json_data,
                headers=headers,
            )
        except httpx.HTTPError as e:
            raise APIError(
                f"Connection error to {self.provider_name}: {e}",
                provider=self.provider_name,
            ) from e

        log.debug("%s %s%s -> %s", method, self.base_url, path, response.status_code)

        if not response.is_success:
            reason = response.reason_phrase
            raise APIError(
                f"{self.provider_name} returned {response.status_code} {reason}: {response.text[:200]}",
                status_code=response.status_code,
                provider=self.provider_name,
                reason=reason,
            )

        try:
            return response.json()
        except ValueError as e:
            raise APIError(
                f"Invalid JSON from {self.provider_name}: {e}",
                status_code=response.status_code,
                provider=self.provider_name,
            ) from e
