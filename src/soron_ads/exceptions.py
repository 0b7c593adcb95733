"""Unified exception hierarchy for soron-ads."""


class SoronAdsError(Exception):
    """Base exception for all soron-ads errors."""


class ConfigurationError(SoronAdsError):
    """Missing credential or unusable client configuration. Never retried."""


# Delivery
class DeliveryError(SoronAdsError):
    """Base exception for failed ad requests. Retried per the retry policy."""


class RequestTimeoutError(DeliveryError):
    """No response arrived before the per-request deadline."""


class NetworkError(DeliveryError):
    """Connection failure or unreadable response body."""


class HttpError(DeliveryError):
    """The serving backend answered with a non-2xx status."""

    def __init__(self, status: int, message: str):
        super().__init__(message)
        self.status = status
        self.message = message


# Tracking
class BeaconError(SoronAdsError):
    """A tracking beacon failed to load."""
