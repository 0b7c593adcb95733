"""Impression, viewability and click tracking."""

from soron_ads.tracking.beacon import BeaconDispatcher, BeaconSender, HttpxBeaconSender
from soron_ads.tracking.click import ClickTracker
from soron_ads.tracking.impression import ImpressionTracker
from soron_ads.tracking.viewability import (
    ViewabilitySession,
    ViewabilityState,
    ViewabilityTracker,
)

__all__ = [
    "BeaconDispatcher",
    "BeaconSender",
    "HttpxBeaconSender",
    "ClickTracker",
    "ImpressionTracker",
    "ViewabilitySession",
    "ViewabilityState",
    "ViewabilityTracker",
]
