"""Click interception for tracking-tagged links in rendered ads."""

from __future__ import annotations

import logging
from functools import partial

from soron_ads.events import AdEvent, EventEmitter
from soron_ads.models import AdRecord
from soron_ads.rendering.dom import TRACKED_LINK_SELECTOR, ClickEvent, Element, Navigator

logger = logging.getLogger(__name__)

OPEN_FEATURES = "noopener,noreferrer"


def resolve_target(ad: AdRecord, link: Element) -> str | None:
    """The click-tracking redirect when the ad has one, else the link's own href."""
    return ad.click_url or link.get_attribute("href")


class ClickTracker:
    """Routes link activation through the ad's click-tracking URL.

    The click URL records the click server-side and redirects to the final
    destination, so navigation goes there instead of the literal href.
    """

    def __init__(self, navigator: Navigator, events: EventEmitter):
        self.navigator = navigator
        self.events = events

    def attach(self, ad: AdRecord, element: Element) -> list[Element]:
        links = element.query_selector_all(TRACKED_LINK_SELECTOR)
        for link in links:
            link.add_event_listener("click", partial(self._on_click, ad, link))
        return links

    def _on_click(self, ad: AdRecord, link: Element, event: ClickEvent) -> None:
        event.prevent_default()
        target_url = resolve_target(ad, link)
        if ad.click_url:
            logger.debug("Tracking click")
        self.events.emit(AdEvent.AD_CLICKED, ad, link)
        if not target_url:
            logger.warning("Clicked ad link has no destination")
            return
        try:
            self.navigator.open(target_url, link.get_attribute("target") or "_blank", OPEN_FEATURES)
        except Exception as e:
            logger.warning(f"Navigation to {target_url} failed: {e}")
