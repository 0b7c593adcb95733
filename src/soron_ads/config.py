"""Client configuration and log-level resolution."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields
from typing import Any

from soron_ads.models import RequestMode
from soron_ads.exceptions import ConfigurationError

DEFAULT_API_BASE = "https://soron.ai"

# camelCase names accepted for parity with the browser SDK options object
_OPTION_ALIASES = {
    "apiKey": "api_key",
    "apiBase": "api_base",
    "apiUrl": "api_base",
    "timeoutMs": "timeout_ms",
    "maxRetries": "max_retries",
    "retryDelayMs": "retry_delay_ms",
    "retryDelay": "retry_delay_ms",
    "userId": "user_id",
    "debugLogging": "debug_logging",
    "debug": "debug_logging",
}


@dataclass
class SoronConfig:
    """Settings for a DeliveryEngine.

    Args:
        api_key: Soron API key. Falls back to SORON_API_KEY when not given.
        api_base: Serving host, without trailing path.
        timeout_ms: Per-request deadline in milliseconds.
        max_retries: Extra attempts after the first failed request.
        retry_delay_ms: Linear backoff unit between attempts.
        mode: Default request mode for ``request_ad``.
        platform: Platform tag sent with every request.
        user_id: Stable user id. Generated and persisted when omitted.
        location: Default location sent with every request.
        debug_logging: Emit debug-level logs for the ``soron_ads`` logger.
    """

    api_key: str | None = None
    api_base: str = DEFAULT_API_BASE
    timeout_ms: int = 10_000
    max_retries: int = 0
    retry_delay_ms: int = 1_000
    mode: RequestMode = RequestMode.USER_QUERY
    platform: str = "web"
    user_id: str | None = None
    location: str = "US"
    debug_logging: bool = False

    def __post_init__(self):
        if not self.api_key:
            self.api_key = os.environ.get("SORON_API_KEY") or None
        self.mode = RequestMode(self.mode)
        if self.timeout_ms <= 0:
            raise ConfigurationError(f"timeout_ms must be positive, got {self.timeout_ms}")
        if self.max_retries < 0:
            raise ConfigurationError(f"max_retries must be >= 0, got {self.max_retries}")
        if self.retry_delay_ms < 0:
            raise ConfigurationError(f"retry_delay_ms must be >= 0, got {self.retry_delay_ms}")

    @classmethod
    def from_options(cls, api_key: str | None = None, **options: Any) -> SoronConfig:
        """Build a config from keyword options, accepting camelCase aliases."""
        known = {f.name for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        for name, value in options.items():
            key = _OPTION_ALIASES.get(name, name)
            if key not in known:
                raise ConfigurationError(f"Unknown option: {name}")
            kwargs[key] = value
        if api_key is not None:
            kwargs["api_key"] = api_key
        return cls(**kwargs)

    @property
    def debug_enabled(self) -> bool:
        """True when debug logging is on in config or via SORON_ADS_DEBUG."""
        env_flag = os.environ.get("SORON_ADS_DEBUG", "").lower() in ("1", "true", "yes")
        return self.debug_logging or env_flag


def configure_logging(debug: bool) -> None:
    """Lower the package logger to DEBUG when asked.

    Otherwise the level is left to the host application's logging setup.
    """
    if debug:
        logging.getLogger("soron_ads").setLevel(logging.DEBUG)
