"""Tests for exception hierarchy."""

from soron_ads.exceptions import (
    BeaconError,
    ConfigurationError,
    DeliveryError,
    HttpError,
    NetworkError,
    RequestTimeoutError,
    SoronAdsError,
)


def test_all_inherit_from_base():
    for exc_class in [
        ConfigurationError,
        DeliveryError, RequestTimeoutError, NetworkError, HttpError,
        BeaconError,
    ]:
        assert issubclass(exc_class, SoronAdsError)


def test_delivery_hierarchy():
    assert issubclass(RequestTimeoutError, DeliveryError)
    assert issubclass(NetworkError, DeliveryError)
    assert issubclass(HttpError, DeliveryError)
    assert not issubclass(ConfigurationError, DeliveryError)


def test_timeout_is_not_builtin_timeout():
    assert not issubclass(RequestTimeoutError, TimeoutError)


def test_http_error_fields():
    e = HttpError(503, "backend overloaded")
    assert e.status == 503
    assert e.message == "backend overloaded"
    assert str(e) == "backend overloaded"
