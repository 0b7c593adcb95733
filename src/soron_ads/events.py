"""Lifecycle notifications: adLoaded, noAd, error, adRendered, adClicked."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Callable

logger = logging.getLogger(__name__)

Handler = Callable[..., Any]


class AdEvent(str, Enum):
    AD_LOADED = "adLoaded"  # (ad)
    NO_AD = "noAd"  # ()
    ERROR = "error"  # (exception)
    AD_RENDERED = "adRendered"  # (ad, element)
    AD_CLICKED = "adClicked"  # (ad, link)

    @classmethod
    def parse(cls, name: AdEvent | str) -> AdEvent:
        """Accept the enum, its value, or the ``onAdLoaded`` callback style."""
        if isinstance(name, AdEvent):
            return name
        if name.startswith("on") and len(name) > 2:
            name = name[2].lower() + name[3:]
        try:
            return cls(name)
        except ValueError:
            valid = ", ".join(e.value for e in cls)
            raise ValueError(f"Unknown event '{name}'. Expected one of: {valid}") from None


class EventEmitter:
    """Listener lists keyed by event. Handler errors are logged, never raised."""

    def __init__(self):
        self._listeners: dict[AdEvent, list[Handler]] = {event: [] for event in AdEvent}

    def on(self, event: AdEvent | str, handler: Handler) -> None:
        self._listeners[AdEvent.parse(event)].append(handler)

    def off(self, event: AdEvent | str, handler: Handler) -> None:
        listeners = self._listeners[AdEvent.parse(event)]
        if handler in listeners:
            listeners.remove(handler)

    def listener_count(self, event: AdEvent | str) -> int:
        return len(self._listeners[AdEvent.parse(event)])

    def emit(self, event: AdEvent, *args: Any) -> None:
        for handler in list(self._listeners[event]):
            try:
                handler(*args)
            except Exception:
                logger.exception(f"{event.value} handler {handler!r} raised")
