"""Transport to the ad-serving backend."""

from soron_ads.transport.http import HttpxTransport, Transport

__all__ = ["Transport", "HttpxTransport"]
