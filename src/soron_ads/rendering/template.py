"""Default native-chat ad template."""

from __future__ import annotations

import html as html_module
from typing import Callable

from soron_ads.models import AdRecord

Template = Callable[[AdRecord], str]

LINK_STYLE = "color: #007bff; text-decoration: none;"


def escape_html(value: str | None) -> str:
    """Escape text so it renders literally inside markup or an attribute."""
    return html_module.escape(value or "", quote=True)


def default_template(ad: AdRecord) -> str:
    """Ad content followed by an advertiser attribution.

    The attribution links to the click-tracking URL (or the plain destination
    when the ad has none) and is tagged for click interception.
    """
    link_url = ad.click_url or ad.url or "#"
    advertiser = escape_html(ad.advertiser)
    if link_url != "#":
        attribution = (
            f'<a href="{escape_html(link_url)}" target="_blank" rel="noopener noreferrer" '
            f'data-soron-click="true" style="{LINK_STYLE}">{advertiser}</a>'
        )
    else:
        attribution = advertiser
    return f"{escape_html(ad.content)}<br><br>— {attribution}"


def format_ad(ad: AdRecord | None, template: Template | None = None) -> str:
    if ad is None:
        return ""
    return (template or default_template)(ad)
