"""Fire-and-forget tracking beacons (impression and viewability pixels)."""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Callable

import httpx

from soron_ads.exceptions import BeaconError

logger = logging.getLogger(__name__)


class BeaconSender(ABC):
    """Abstract interface for loading a tracking pixel URL."""

    @abstractmethod
    async def send(self, url: str) -> None:
        """Load ``url``. Raises BeaconError when the pixel does not load."""
        ...


class HttpxBeaconSender(BeaconSender):
    """Loads tracking pixels with a plain GET, like an image request.

    Args:
        client: Optional shared AsyncClient. A short-lived client is opened
            per beacon when omitted.
        timeout: Seconds before the beacon is considered failed.
    """

    def __init__(self, client: httpx.AsyncClient | None = None, timeout: float = 10.0):
        self._client = client
        self.timeout = timeout

    async def send(self, url: str) -> None:
        try:
            if self._client is not None:
                response = await self._client.get(url, timeout=self.timeout)
            else:
                async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
                    response = await client.get(url)
            response.raise_for_status()
        except Exception as e:
            raise BeaconError(f"Beacon {url} failed: {e}") from e


class BeaconDispatcher:
    """Schedules beacons on the running event loop without blocking the caller.

    Holds a reference to every in-flight beacon task until it finishes.
    """

    def __init__(self, sender: BeaconSender):
        self.sender = sender
        self._tasks: set[asyncio.Task] = set()

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    def dispatch(
        self,
        url: str,
        label: str,
        on_loaded: Callable[[], None] | None = None,
        on_failed: Callable[[], None] | None = None,
    ) -> bool:
        """Start a beacon for ``url``. Returns False when no event loop is running."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning(f"No running event loop, {label} beacon not sent")
            return False
        task = loop.create_task(self._send(url, label, on_loaded, on_failed))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return True

    async def _send(self, url, label, on_loaded, on_failed) -> None:
        try:
            await self.sender.send(url)
        except asyncio.CancelledError:
            logger.warning(f"{label.capitalize()} beacon cancelled before it loaded")
            if on_failed is not None:
                on_failed()
            raise
        except Exception as e:
            logger.warning(f"Failed to track {label}: {e}")
            if on_failed is not None:
                on_failed()
            return
        logger.debug(f"{label.capitalize()} tracked")
        if on_loaded is not None:
            on_loaded()

    async def drain(self) -> None:
        """Wait for every in-flight beacon to settle."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
