"""Host page model: elements, link activation, navigation and visibility.

The abstract classes are what the delivery engine talks to. The
BeautifulSoup-backed implementation lets the engine render into an HTML
document held in memory (server-side rendering, previews, tests).
"""

from __future__ import annotations

import logging
import webbrowser
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable

logger = logging.getLogger(__name__)

TRACKED_LINK_SELECTOR = "a[data-soron-click]"

Listener = Callable[["ClickEvent"], None]


@dataclass
class ClickEvent:
    """A link activation. Listeners may suppress the default navigation."""

    target: Element
    default_prevented: bool = False

    def prevent_default(self) -> None:
        self.default_prevented = True


class Element(ABC):
    """A node of the host page that can hold rendered ad markup."""

    @abstractmethod
    def set_inner_html(self, markup: str) -> None:
        ...

    @property
    @abstractmethod
    def inner_html(self) -> str:
        ...

    @property
    @abstractmethod
    def text(self) -> str:
        ...

    @abstractmethod
    def query_selector_all(self, selector: str) -> list[Element]:
        ...

    @abstractmethod
    def get_attribute(self, name: str) -> str | None:
        ...

    @abstractmethod
    def add_event_listener(self, event_type: str, listener: Listener) -> None:
        ...

    @abstractmethod
    def remove_event_listener(self, event_type: str, listener: Listener) -> None:
        ...


class Document(ABC):
    """Looks up elements by selector."""

    @abstractmethod
    def query_selector(self, selector: str) -> Element | None:
        ...


class Navigator(ABC):
    """Opens a URL in a new browsing context."""

    @abstractmethod
    def open(self, url: str, target: str = "_blank", features: str = "") -> None:
        ...


class WebbrowserNavigator(Navigator):
    """Opens URLs in a new tab of the system browser."""

    def open(self, url: str, target: str = "_blank", features: str = "") -> None:
        webbrowser.open_new_tab(url)


class VisibilityObserver(ABC):
    """Reports the visible ratio (0.0-1.0) of observed elements."""

    @abstractmethod
    def observe(self, element: Element, callback: Callable[[float], None]) -> Callable[[], None]:
        """Start observing ``element``. Returns a disconnect function."""
        ...


class ManualVisibilityObserver(VisibilityObserver):
    """Visibility driven by the host: call ``emit`` when an element's ratio changes."""

    def __init__(self):
        self._callbacks: dict[Element, list[Callable[[float], None]]] = {}

    def observe(self, element: Element, callback: Callable[[float], None]) -> Callable[[], None]:
        self._callbacks.setdefault(element, []).append(callback)

        def disconnect():
            callbacks = self._callbacks.get(element, [])
            if callback in callbacks:
                callbacks.remove(callback)
            if not callbacks:
                self._callbacks.pop(element, None)

        return disconnect

    def is_observing(self, element: Element) -> bool:
        return bool(self._callbacks.get(element))

    def emit(self, element: Element, ratio: float) -> None:
        for callback in list(self._callbacks.get(element, [])):
            callback(ratio)


class SoupDocument(Document):
    """An in-memory HTML page backed by BeautifulSoup.

    Args:
        markup: Initial page markup.
    """

    def __init__(self, markup: str = "<html><body></body></html>"):
        try:
            from bs4 import BeautifulSoup
        except ImportError:
            raise ImportError(
                "beautifulsoup4 is required for SoupDocument. "
                "Install with: pip install soron-ads[html]"
            )
        self._soup = BeautifulSoup(markup, "html.parser")
        # id(tag) -> (tag, {event_type: [listeners]}); holding the tag keeps its id unique
        self._listeners: dict[int, tuple[Any, dict[str, list[Listener]]]] = {}

    def __str__(self) -> str:
        return str(self._soup)

    def query_selector(self, selector: str) -> SoupElement | None:
        tag = self._soup.select_one(selector)
        return SoupElement(self, tag) if tag is not None else None

    def _listeners_for(self, tag, event_type: str) -> list[Listener]:
        entry = self._listeners.setdefault(id(tag), (tag, {}))
        return entry[1].setdefault(event_type, [])

    def _forget_subtree(self, tag) -> None:
        for child in tag.find_all(True):
            self._listeners.pop(id(child), None)

    def dispatch(self, element: SoupElement, event_type: str = "click") -> ClickEvent:
        event = ClickEvent(target=element)
        entry = self._listeners.get(id(element.tag))
        if entry is not None:
            for listener in list(entry[1].get(event_type, [])):
                listener(event)
        return event


class SoupElement(Element):
    """Wraps a bs4 Tag. Two wrappers of the same tag compare equal."""

    def __init__(self, document: SoupDocument, tag):
        self.document = document
        self.tag = tag

    def __eq__(self, other: object) -> bool:
        return isinstance(other, SoupElement) and other.tag is self.tag

    def __hash__(self) -> int:
        return hash(id(self.tag))

    def __repr__(self) -> str:
        return f"SoupElement(<{self.tag.name}>)"

    def set_inner_html(self, markup: str) -> None:
        from bs4 import BeautifulSoup

        self.document._forget_subtree(self.tag)
        self.tag.clear()
        fragment = BeautifulSoup(markup, "html.parser")
        for child in list(fragment.contents):
            self.tag.append(child.extract())

    @property
    def inner_html(self) -> str:
        return self.tag.decode_contents()

    @property
    def text(self) -> str:
        return self.tag.get_text()

    def query_selector_all(self, selector: str) -> list[SoupElement]:
        return [SoupElement(self.document, tag) for tag in self.tag.select(selector)]

    def get_attribute(self, name: str) -> str | None:
        value = self.tag.get(name)
        if isinstance(value, list):
            return " ".join(value)
        return value

    def add_event_listener(self, event_type: str, listener: Listener) -> None:
        self.document._listeners_for(self.tag, event_type).append(listener)

    def remove_event_listener(self, event_type: str, listener: Listener) -> None:
        listeners = self.document._listeners_for(self.tag, event_type)
        if listener in listeners:
            listeners.remove(listener)

    def click(self) -> ClickEvent:
        """Activate this element as a user would."""
        return self.document.dispatch(self, "click")
