"""At-most-once impression pixel per session."""

from __future__ import annotations

import logging

from soron_ads.models import AdRecord, ClientSession
from soron_ads.tracking.beacon import BeaconDispatcher

logger = logging.getLogger(__name__)


class ImpressionTracker:
    """Fires an ad's ``pixel_url`` once per session.

    A URL joins ``session.fired_pixels`` only after the beacon loads. A failed
    beacon is logged and left out of the set, so a later delivery of the same
    ad may try again.
    """

    def __init__(self, dispatcher: BeaconDispatcher):
        self.dispatcher = dispatcher
        self._pending: set[tuple[int, str]] = set()

    def is_pending(self, session: ClientSession, url: str) -> bool:
        return (id(session), url) in self._pending

    def fire_once(self, session: ClientSession, ad: AdRecord) -> None:
        url = ad.pixel_url
        if not url or url in session.fired_pixels:
            return
        key = (id(session), url)
        # a concurrent delivery of the same ad must not beacon twice
        if key in self._pending:
            return

        def loaded():
            self._pending.discard(key)
            session.fired_pixels.add(url)

        def failed():
            self._pending.discard(key)

        self._pending.add(key)
        if not self.dispatcher.dispatch(url, "impression", on_loaded=loaded, on_failed=failed):
            self._pending.discard(key)
