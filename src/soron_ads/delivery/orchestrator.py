"""Ad request payloads, the retry loop and response selection."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Mapping

from soron_ads.events import AdEvent, EventEmitter
from soron_ads.exceptions import DeliveryError, NetworkError
from soron_ads.models import AdRecord, ClientSession, RequestMode
from soron_ads.tracking.impression import ImpressionTracker
from soron_ads.transport.http import Transport

logger = logging.getLogger(__name__)

DEFAULT_LOCATION = "US"

AdInput = str | Mapping[str, Any]


def build_payload(
    session: ClientSession,
    mode: RequestMode,
    input: AdInput,
    user_id: str | None = None,
    platform: str | None = None,
    location: str | None = None,
) -> dict[str, Any]:
    """Mode-specific request body. Empty overrides fall back to session defaults."""
    if isinstance(input, str):
        text = input
    else:
        text = input.get(mode.input_key)
    payload: dict[str, Any] = {}
    if text is not None:
        payload[mode.payload_field] = text
    payload["userId"] = user_id or session.user_id
    payload["platform"] = platform or session.platform
    payload["location"] = location or DEFAULT_LOCATION
    return payload


def select_ad(body: Mapping[str, Any]) -> AdRecord | None:
    """First ad of a success body, or None when the list is empty or absent."""
    ads = body.get("ads")
    if not ads:
        return None
    if not isinstance(ads, list) or not isinstance(ads[0], Mapping):
        raise NetworkError(f"Malformed ads list in response: {type(ads).__name__}")
    return AdRecord.from_dict(ads[0])


class RequestOrchestrator:
    """Drives Transport with linear-backoff retries and picks the single ad.

    Args:
        transport: Issues each attempt.
        impressions: Receives the selected ad before it is returned.
        events: Receives adLoaded, noAd and error notifications.
        timeout_ms: Per-attempt deadline.
        max_retries: Attempts after the first (0 disables retry).
        retry_delay_ms: Wait before retry ``n`` is ``retry_delay_ms * n``.
    """

    def __init__(
        self,
        transport: Transport,
        impressions: ImpressionTracker,
        events: EventEmitter,
        timeout_ms: int = 10_000,
        max_retries: int = 0,
        retry_delay_ms: int = 1_000,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.transport = transport
        self.impressions = impressions
        self.events = events
        self.timeout_ms = timeout_ms
        self.max_retries = max_retries
        self.retry_delay_ms = retry_delay_ms
        self._sleep = sleep

    async def fetch_ad(
        self,
        session: ClientSession,
        mode: RequestMode,
        input: AdInput,
        overrides: Mapping[str, Any] | None = None,
    ) -> AdRecord | None:
        mode = RequestMode(mode)
        payload = build_payload(session, mode, input, **dict(overrides or {}))
        logger.debug(f"Fetching ad in {mode.value} mode: {payload}")

        attempt = 0
        while True:
            try:
                body = await self.transport.send(mode.endpoint, payload, self.timeout_ms)
                ad = select_ad(body)
            except DeliveryError as e:
                logger.warning(f"Attempt {attempt + 1} failed: {e}")
                if attempt >= self.max_retries:
                    self.events.emit(AdEvent.ERROR, e)
                    raise
                attempt += 1
                await self._sleep(self.retry_delay_ms * attempt / 1000)
                continue

            if ad is None:
                logger.debug("No ads returned from API")
                self.events.emit(AdEvent.NO_AD)
                return None

            self.impressions.fire_once(session, ad)
            self.events.emit(AdEvent.AD_LOADED, ad)
            return ad
