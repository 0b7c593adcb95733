"""Module-level convenience API around a single DeliveryEngine.

Usage::

    from soron_ads import simple

    simple.init("sk-...", max_retries=2)
    markup = await simple.get_formatted_ad("best running shoes")
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable

from soron_ads.config import SoronConfig
from soron_ads.delivery.engine import DeliveryEngine
from soron_ads.delivery.orchestrator import AdInput
from soron_ads.exceptions import ConfigurationError
from soron_ads.models import AdRecord
from soron_ads.rendering.dom import Element

logger = logging.getLogger(__name__)

_instance: DeliveryEngine | None = None

# request_ad keywords; everything else passed to the helpers is a render option
_REQUEST_OPTIONS = ("mode", "user_id", "platform", "location")


@dataclass
class FormattedAdResult:
    """Outcome of an ad request run alongside another awaitable. Never raises."""

    ad: str | None = None
    ad_error: BaseException | None = None
    ai: Any = None
    ai_error: BaseException | None = None


def init(api_key: str | None, **options: Any) -> DeliveryEngine:
    """Create the shared engine.

    ``options`` are SoronConfig fields (or their camelCase names) plus the
    DeliveryEngine capabilities (``transport``, ``beacon_sender``, ...).
    """
    global _instance
    capability_names = (
        "transport",
        "beacon_sender",
        "visibility_observer",
        "navigator",
        "document",
        "identity_store",
        "clock",
    )
    capabilities = {name: options.pop(name) for name in capability_names if name in options}
    config = SoronConfig.from_options(api_key, **options)
    _instance = DeliveryEngine(config, **capabilities)
    return _instance


def get_instance() -> DeliveryEngine:
    if _instance is None:
        raise ConfigurationError("Call soron_ads.simple.init(api_key) first")
    return _instance


def reset() -> None:
    """Forget the shared engine."""
    global _instance
    _instance = None


def _split(options: dict[str, Any]) -> tuple[dict[str, Any], dict[str, Any]]:
    request = {k: v for k, v in options.items() if k in _REQUEST_OPTIONS}
    render = {k: v for k, v in options.items() if k not in _REQUEST_OPTIONS}
    return request, render


async def get_ad(
    input: AdInput,
    container: Element | str | None = None,
    **options: Any,
) -> AdRecord | None:
    """Request an ad and, when a container is given, render it there."""
    engine = get_instance()
    request_options, render_options = _split(options)
    ad = await engine.request_ad(input, **request_options)
    if ad is not None and container is not None:
        engine.render(ad, container, template=render_options.get("template"))
    return ad


async def get_formatted_ad(input: AdInput, **options: Any) -> str | None:
    """Request an ad and return its default-template markup, or None."""
    engine = get_instance()
    request_options, _ = _split(options)
    ad = await engine.request_ad(input, **request_options)
    if ad is None:
        return None
    return engine.format_ad(ad)


async def get_formatted_ad_with(
    input: AdInput,
    companion: Awaitable[Any],
    **options: Any,
) -> FormattedAdResult:
    """Fetch an ad concurrently with ``companion`` (typically the AI answer).

    Failures of either side are reported in the result, not raised.
    """
    get_instance()
    ad_result, ai_result = await asyncio.gather(
        get_formatted_ad(input, **options),
        companion,
        return_exceptions=True,
    )
    result = FormattedAdResult()
    if isinstance(ad_result, BaseException):
        logger.warning(f"Ad request failed alongside companion: {ad_result}")
        result.ad_error = ad_result
    else:
        result.ad = ad_result
    if isinstance(ai_result, BaseException):
        result.ai_error = ai_result
    else:
        result.ai = ai_result
    return result
