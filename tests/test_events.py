"""Tests for lifecycle notifications."""

from unittest.mock import MagicMock

import pytest

from soron_ads.events import AdEvent, EventEmitter


def test_parse_names():
    assert AdEvent.parse("adLoaded") is AdEvent.AD_LOADED
    assert AdEvent.parse("onNoAd") is AdEvent.NO_AD
    assert AdEvent.parse("onError") is AdEvent.ERROR
    assert AdEvent.parse(AdEvent.AD_CLICKED) is AdEvent.AD_CLICKED


def test_parse_unknown():
    with pytest.raises(ValueError, match="Unknown event"):
        AdEvent.parse("adExploded")


def test_multiple_listeners_in_order():
    emitter = EventEmitter()
    calls = []
    emitter.on("adLoaded", lambda ad: calls.append(("first", ad)))
    emitter.on("adLoaded", lambda ad: calls.append(("second", ad)))
    emitter.emit(AdEvent.AD_LOADED, "ad")
    assert calls == [("first", "ad"), ("second", "ad")]


def test_failing_handler_is_isolated():
    emitter = EventEmitter()
    after = MagicMock()
    emitter.on("error", MagicMock(side_effect=RuntimeError("handler bug")))
    emitter.on("error", after)
    emitter.emit(AdEvent.ERROR, ValueError("x"))
    after.assert_called_once()


def test_off():
    emitter = EventEmitter()
    handler = MagicMock()
    emitter.on("noAd", handler)
    emitter.off("noAd", handler)
    emitter.off("noAd", handler)
    emitter.emit(AdEvent.NO_AD)
    handler.assert_not_called()
    assert emitter.listener_count("noAd") == 0
