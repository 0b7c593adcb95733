"""Single timed POST to the ad-serving backend with normalized failures."""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any

import httpx

from soron_ads.exceptions import HttpError, NetworkError, RequestTimeoutError

logger = logging.getLogger(__name__)


class Transport(ABC):
    """Abstract interface for issuing one ad request. No retry logic lives here."""

    @abstractmethod
    async def send(self, endpoint: str, payload: dict, timeout_ms: int) -> dict:
        """POST ``payload`` to ``endpoint`` and return the parsed JSON body.

        Raises:
            RequestTimeoutError: No response within ``timeout_ms``.
            HttpError: Non-2xx status.
            NetworkError: Any other transport or parse failure.
        """
        ...


def _error_message(response: httpx.Response) -> str:
    """Best-effort ``message`` from an error body, never raises."""
    fallback = f"HTTP {response.status_code}"
    try:
        body = response.json()
    except Exception:
        return fallback
    if isinstance(body, dict) and isinstance(body.get("message"), str) and body["message"]:
        return body["message"]
    return fallback


class HttpxTransport(Transport):
    """httpx-backed transport for the Soron ads API.

    Args:
        api_key: Sent as the ``x-api-key`` header on every request.
        api_base: Serving host, e.g. ``https://soron.ai``.
        client: Optional shared AsyncClient. A short-lived client is opened
            per request when omitted.
    """

    def __init__(
        self,
        api_key: str,
        api_base: str,
        client: httpx.AsyncClient | None = None,
    ):
        self.api_key = api_key
        self.api_base = api_base.rstrip("/")
        self._client = client

    @property
    def headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "x-api-key": self.api_key,
        }

    async def _post(self, url: str, payload: dict, timeout: float) -> httpx.Response:
        if self._client is not None:
            return await self._client.post(url, json=payload, headers=self.headers, timeout=timeout)
        async with httpx.AsyncClient(timeout=timeout) as client:
            return await client.post(url, json=payload, headers=self.headers)

    async def send(self, endpoint: str, payload: dict, timeout_ms: int) -> dict:
        url = self.api_base + endpoint
        timeout = timeout_ms / 1000
        try:
            response = await asyncio.wait_for(self._post(url, payload, timeout), timeout=timeout)
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            raise RequestTimeoutError(f"Request timeout after {timeout_ms}ms") from e
        except Exception as e:
            raise NetworkError(f"Request to {url} failed: {e}") from e

        if not response.is_success:
            raise HttpError(response.status_code, _error_message(response))

        try:
            body: Any = response.json()
        except ValueError as e:
            raise NetworkError(f"Unreadable response body from {url}: {e}") from e
        if not isinstance(body, dict):
            raise NetworkError(f"Unexpected response body from {url}: {type(body).__name__}")
        return body
