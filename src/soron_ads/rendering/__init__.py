"""Ad markup templates and the host page model."""

from soron_ads.rendering.dom import (
    TRACKED_LINK_SELECTOR,
    ClickEvent,
    Document,
    Element,
    ManualVisibilityObserver,
    Navigator,
    SoupDocument,
    SoupElement,
    VisibilityObserver,
    WebbrowserNavigator,
)
from soron_ads.rendering.template import Template, default_template, escape_html, format_ad

__all__ = [
    "TRACKED_LINK_SELECTOR",
    "ClickEvent",
    "Document",
    "Element",
    "ManualVisibilityObserver",
    "Navigator",
    "SoupDocument",
    "SoupElement",
    "VisibilityObserver",
    "WebbrowserNavigator",
    "Template",
    "default_template",
    "escape_html",
    "format_ad",
]
