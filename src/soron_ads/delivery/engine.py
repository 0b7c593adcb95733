"""DeliveryEngine: request an ad, fire its impression, render and track it."""

from __future__ import annotations

import logging
import time
from typing import Callable

from soron_ads.config import SoronConfig, configure_logging
from soron_ads.delivery.orchestrator import AdInput, RequestOrchestrator
from soron_ads.events import AdEvent, EventEmitter, Handler
from soron_ads.exceptions import ConfigurationError
from soron_ads.identity import IdentityStore, MemoryIdentityStore, get_or_create_user_id
from soron_ads.models import AdRecord, ClientSession, RequestMode
from soron_ads.rendering.dom import (
    Document,
    Element,
    Navigator,
    VisibilityObserver,
    WebbrowserNavigator,
)
from soron_ads.rendering.template import Template, format_ad
from soron_ads.tracking.beacon import BeaconDispatcher, BeaconSender, HttpxBeaconSender
from soron_ads.tracking.click import ClickTracker
from soron_ads.tracking.impression import ImpressionTracker
from soron_ads.tracking.viewability import ViewabilitySession, ViewabilityTracker
from soron_ads.transport.http import HttpxTransport, Transport

logger = logging.getLogger(__name__)

API_KEY_ATTRIBUTE = "data-api-key"


def resolve_api_key(api_key: str | None, document: Document | None = None) -> str | None:
    """Return the API key, reading it from the page when given as a selector.

    A key starting with ``#`` or ``.`` names an element holding the key in
    its ``data-api-key`` attribute or, failing that, its text.
    """
    if not api_key or api_key[0] not in "#.":
        return api_key
    if document is None:
        logger.error(f"Cannot read API key from {api_key!r} without a document")
        return None
    element = document.query_selector(api_key)
    if element is None:
        logger.error(f"API key element not found: {api_key!r}")
        return None
    key = (element.get_attribute(API_KEY_ATTRIBUTE) or element.text).strip()
    return key or None


class DeliveryEngine:
    """Soron ads client.

    Every host capability is injectable; the defaults talk to the real
    backend over httpx, open clicks in the system browser, and keep the
    anonymous user id in memory.

    Args:
        config: Client settings. The API key may be missing here; requests
            then fail with ConfigurationError.
        transport: Ad request transport.
        beacon_sender: Loads impression and viewability pixels.
        visibility_observer: Host visibility capability. Without one,
            viewability is not tracked.
        navigator: Opens click destinations.
        document: Resolves selector containers passed to ``render`` and an
            API key given as a selector.
        identity_store: Persists the anonymous user id.
        clock: Monotonic clock used for viewability dwell.
    """

    def __init__(
        self,
        config: SoronConfig | None = None,
        transport: Transport | None = None,
        beacon_sender: BeaconSender | None = None,
        visibility_observer: VisibilityObserver | None = None,
        navigator: Navigator | None = None,
        document: Document | None = None,
        identity_store: IdentityStore | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config or SoronConfig()
        configure_logging(self.config.debug_enabled)

        api_key = resolve_api_key(self.config.api_key, document)
        if not api_key:
            logger.error("API key is required. Pass it in SoronConfig(api_key=...)")

        user_id = self.config.user_id or get_or_create_user_id(
            identity_store or MemoryIdentityStore()
        )
        self.session = ClientSession(
            api_key=api_key,
            user_id=user_id,
            platform=self.config.platform,
            mode=self.config.mode,
        )
        self.events = EventEmitter()
        self.document = document

        self.transport = transport or HttpxTransport(
            api_key=api_key or "",
            api_base=self.config.api_base,
        )
        self.beacons = BeaconDispatcher(beacon_sender or HttpxBeaconSender())
        self.impressions = ImpressionTracker(self.beacons)
        self.viewability = ViewabilityTracker(self.beacons, visibility_observer, clock=clock)
        self.clicks = ClickTracker(navigator or WebbrowserNavigator(), self.events)
        self.orchestrator = RequestOrchestrator(
            self.transport,
            self.impressions,
            self.events,
            timeout_ms=self.config.timeout_ms,
            max_retries=self.config.max_retries,
            retry_delay_ms=self.config.retry_delay_ms,
        )
        # elements whose viewability session is still active
        self._mounted: dict[Element, ViewabilitySession] = {}

    # ---- Events ----

    def on(self, event: AdEvent | str, handler: Handler) -> DeliveryEngine:
        """Subscribe to adLoaded, noAd, error, adRendered or adClicked."""
        self.events.on(event, handler)
        return self

    def off(self, event: AdEvent | str, handler: Handler) -> DeliveryEngine:
        self.events.off(event, handler)
        return self

    # ---- Requests ----

    async def request_ad(
        self,
        input: AdInput,
        mode: RequestMode | str | None = None,
        user_id: str | None = None,
        platform: str | None = None,
        location: str | None = None,
    ) -> AdRecord | None:
        """Request the best-matching ad.

        Args:
            input: User query / agent response text, or a mapping with a
                ``query`` / ``response`` key.
            mode: Overrides the session mode for this call only.

        Returns:
            The ad, with its impression already dispatched, or None when the
            backend has no ad for this input.

        Raises:
            ConfigurationError: No API key configured. Nothing is sent.
            DeliveryError: Every attempt failed.
        """
        if not self.session.has_credential:
            raise ConfigurationError("API key not configured")
        overrides = {"user_id": user_id, "platform": platform, "location": location}
        return await self.orchestrator.fetch_ad(
            self.session, RequestMode(mode or self.session.mode), input, overrides
        )

    async def request_ad_for_user_query(self, user_query: AdInput, **overrides) -> AdRecord | None:
        return await self.request_ad(user_query, mode=RequestMode.USER_QUERY, **overrides)

    async def request_ad_for_agent_response(
        self, agent_response: AdInput, **overrides
    ) -> AdRecord | None:
        return await self.request_ad(agent_response, mode=RequestMode.AGENT_RESPONSE, **overrides)

    # ---- Rendering ----

    def format_ad(self, ad: AdRecord | None) -> str:
        """Default-template markup for native display, '' for no ad."""
        return format_ad(ad)

    def _resolve(self, container: Element | str) -> Element | None:
        if not isinstance(container, str):
            return container
        if self.document is None:
            logger.error(f"Cannot resolve container {container!r} without a document")
            return None
        return self.document.query_selector(container)

    def render(
        self,
        ad: AdRecord | None,
        container: Element | str,
        template: Template | None = None,
    ) -> Element | None:
        """Install the ad's markup in ``container`` and start click/viewability tracking.

        Returns the element rendered into, or None when nothing was rendered.
        """
        if ad is None:
            logger.error("No ad to render")
            return None

        element = self._resolve(container)
        if element is None:
            logger.error(f"Container not found: {container!r}")
            return None

        self._teardown(element)
        self._prune()
        element.set_inner_html(format_ad(ad, template))
        self.clicks.attach(ad, element)
        session = self.viewability.attach(ad, element)
        if session is not None:
            self._mounted[element] = session

        self.events.emit(AdEvent.AD_RENDERED, ad, element)
        return element

    def unmount(self, container: Element | str) -> None:
        """Remove a rendered ad and stop tracking it."""
        element = self._resolve(container)
        if element is None:
            return
        self._teardown(element)
        element.set_inner_html("")

    def _teardown(self, element: Element) -> None:
        session = self._mounted.pop(element, None)
        if session is not None:
            self.viewability.detach(session)

    def _prune(self) -> None:
        """Forget sessions that already fired or expired."""
        for element, session in list(self._mounted.items()):
            if not session.active:
                del self._mounted[element]

    @property
    def tracked_elements(self) -> int:
        """Rendered elements with an active viewability session."""
        self._prune()
        return len(self._mounted)

    async def aclose(self) -> None:
        """Wait for outstanding beacons and stop tracking every rendered ad."""
        for element in list(self._mounted):
            self._teardown(element)
        await self.beacons.drain()
