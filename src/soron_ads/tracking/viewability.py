"""Viewability tracking: 50% of the ad visible for a cumulative second.

Each rendered element gets a ViewabilitySession:

    IDLE --ratio >= 0.5--> ACCUMULATING --ratio < 0.5--> IDLE
                                 |
          dwell >= 1000ms at the drop event --> FIRED (observer disconnected)

A session that has not fired is closed after a 30 second ceiling, or when
its element is unmounted. Tracking needs a running event loop.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable

from soron_ads.models import AdRecord
from soron_ads.rendering.dom import Element, VisibilityObserver
from soron_ads.tracking.beacon import BeaconDispatcher

logger = logging.getLogger(__name__)

VISIBILITY_THRESHOLD = 0.5
DWELL_THRESHOLD_MS = 1000
CEILING_SECONDS = 30.0


class ViewabilityState(str, Enum):
    IDLE = "idle"
    ACCUMULATING = "accumulating"
    FIRED = "fired"
    CLOSED = "closed"


@dataclass
class ViewabilitySession:
    """Visible-dwell bookkeeping for one rendered element. Times are monotonic seconds."""

    ad: AdRecord
    element: Element
    attached_at: float
    dwell_ms: float = 0.0
    visible_since: float | None = None
    state: ViewabilityState = ViewabilityState.IDLE
    _disconnect: Callable[[], None] | None = field(default=None, repr=False)
    _ceiling: asyncio.TimerHandle | None = field(default=None, repr=False)

    @property
    def fired(self) -> bool:
        return self.state is ViewabilityState.FIRED

    @property
    def active(self) -> bool:
        return self.state in (ViewabilityState.IDLE, ViewabilityState.ACCUMULATING)

    def observe(self, ratio: float, now: float) -> bool:
        """Apply one visibility observation. Returns True when the beacon is due."""
        if not self.active:
            return False
        if ratio >= VISIBILITY_THRESHOLD:
            if self.visible_since is None:
                self.visible_since = now
                self.state = ViewabilityState.ACCUMULATING
            return False
        if self.visible_since is None:
            return False
        self.dwell_ms += (now - self.visible_since) * 1000
        self.visible_since = None
        self.state = ViewabilityState.IDLE
        return self.dwell_ms >= DWELL_THRESHOLD_MS

    def teardown(self, state: ViewabilityState) -> None:
        self.state = state
        self.visible_since = None
        if self._disconnect is not None:
            self._disconnect()
            self._disconnect = None
        if self._ceiling is not None:
            self._ceiling.cancel()
            self._ceiling = None


class ViewabilityTracker:
    """Attaches ViewabilitySessions to rendered elements.

    Args:
        dispatcher: Sends the viewability beacon.
        observer: Visibility capability of the host. ``None`` disables
            tracking silently.
        clock: Monotonic clock in seconds.
        ceiling_seconds: Lifetime of a session that has not fired.
    """

    def __init__(
        self,
        dispatcher: BeaconDispatcher,
        observer: VisibilityObserver | None = None,
        clock: Callable[[], float] = time.monotonic,
        ceiling_seconds: float = CEILING_SECONDS,
    ):
        self.dispatcher = dispatcher
        self.observer = observer
        self.clock = clock
        self.ceiling_seconds = ceiling_seconds

    def attach(self, ad: AdRecord, element: Element) -> ViewabilitySession | None:
        if not ad.viewability_url:
            return None
        if self.observer is None:
            logger.debug("No visibility observer available, viewability not tracked")
            return None

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # the ceiling timer and the beacon both need a loop
            logger.warning("No running event loop, viewability not tracked")
            return None

        session = ViewabilitySession(ad=ad, element=element, attached_at=self.clock())
        session._disconnect = self.observer.observe(
            element, lambda ratio: self._on_ratio(session, ratio)
        )
        session._ceiling = loop.call_later(self.ceiling_seconds, self.expire, session)
        return session

    def _on_ratio(self, session: ViewabilitySession, ratio: float) -> None:
        now = self.clock()
        if session.active and now - session.attached_at >= self.ceiling_seconds:
            self.expire(session)
            return
        if session.observe(ratio, now):
            self._fire(session)

    def _fire(self, session: ViewabilitySession) -> None:
        if self.dispatcher.dispatch(session.ad.viewability_url, "viewability"):
            session.teardown(ViewabilityState.FIRED)
        else:
            session.teardown(ViewabilityState.CLOSED)

    def expire(self, session: ViewabilitySession) -> None:
        """Ceiling reached without a beacon. Closes the session."""
        if session.active:
            logger.debug(f"Viewability window closed after {session.dwell_ms:.0f}ms visible")
            session.teardown(ViewabilityState.CLOSED)

    def detach(self, session: ViewabilitySession) -> None:
        """Element unmounted. Closes the session if still active."""
        if session.active:
            session.teardown(ViewabilityState.CLOSED)
