"""Tests for at-most-once impression firing."""

import asyncio

import pytest

from soron_ads.exceptions import BeaconError
from soron_ads.models import AdRecord, ClientSession
from soron_ads.tracking.beacon import BeaconDispatcher, BeaconSender
from soron_ads.tracking.impression import ImpressionTracker


class FakeBeaconSender(BeaconSender):
    def __init__(self, fail=False):
        self.urls = []
        self.fail = fail

    async def send(self, url):
        self.urls.append(url)
        if self.fail:
            raise BeaconError("pixel failed")


def make_tracker(fail=False):
    sender = FakeBeaconSender(fail=fail)
    dispatcher = BeaconDispatcher(sender)
    return ImpressionTracker(dispatcher), dispatcher, sender


@pytest.fixture
def session():
    return ClientSession(api_key="test-key", user_id="u-1")


@pytest.fixture
def ad():
    return AdRecord(content="c", advertiser="TechCorp", pixel_url="https://soron.ai/pixel/1")


@pytest.mark.asyncio
async def test_fires_and_records_pixel(session, ad):
    tracker, dispatcher, sender = make_tracker()
    tracker.fire_once(session, ad)
    await dispatcher.drain()
    assert sender.urls == ["https://soron.ai/pixel/1"]
    assert "https://soron.ai/pixel/1" in session.fired_pixels


@pytest.mark.asyncio
async def test_same_pixel_fires_once_across_deliveries(session, ad):
    tracker, dispatcher, sender = make_tracker()
    for _ in range(3):
        tracker.fire_once(session, ad)
        await dispatcher.drain()
    assert sender.urls == ["https://soron.ai/pixel/1"]


@pytest.mark.asyncio
async def test_concurrent_deliveries_fire_once(session, ad):
    tracker, dispatcher, sender = make_tracker()
    tracker.fire_once(session, ad)
    assert tracker.is_pending(session, ad.pixel_url)
    tracker.fire_once(session, ad)
    await dispatcher.drain()
    assert sender.urls == ["https://soron.ai/pixel/1"]
    assert not tracker.is_pending(session, ad.pixel_url)


@pytest.mark.asyncio
async def test_failed_beacon_is_not_recorded_and_may_retry(session, ad):
    tracker, dispatcher, sender = make_tracker(fail=True)
    tracker.fire_once(session, ad)
    await dispatcher.drain()
    assert session.fired_pixels == set()

    tracker.fire_once(session, ad)
    await dispatcher.drain()
    assert len(sender.urls) == 2


@pytest.mark.asyncio
async def test_pixel_scoped_per_session(ad):
    tracker, dispatcher, sender = make_tracker()
    first = ClientSession(api_key="k", user_id="a")
    second = ClientSession(api_key="k", user_id="b")
    tracker.fire_once(first, ad)
    tracker.fire_once(second, ad)
    await dispatcher.drain()
    assert len(sender.urls) == 2


@pytest.mark.asyncio
async def test_no_pixel_url_is_noop(session):
    tracker, dispatcher, sender = make_tracker()
    tracker.fire_once(session, AdRecord(content="c", advertiser="a"))
    await dispatcher.drain()
    assert sender.urls == []


def test_without_event_loop_does_not_raise(session, ad):
    tracker, dispatcher, sender = make_tracker()
    tracker.fire_once(session, ad)
    assert not tracker.is_pending(session, ad.pixel_url)
    assert session.fired_pixels == set()


class SlowBeaconSender(BeaconSender):
    def __init__(self):
        self.urls = []

    async def send(self, url):
        self.urls.append(url)
        await asyncio.sleep(10)


@pytest.mark.asyncio
async def test_cancelled_beacon_may_fire_on_redelivery(session, ad):
    sender = SlowBeaconSender()
    dispatcher = BeaconDispatcher(sender)
    tracker = ImpressionTracker(dispatcher)

    tracker.fire_once(session, ad)
    await asyncio.sleep(0)
    for task in list(dispatcher._tasks):
        task.cancel()
    await dispatcher.drain()

    assert not tracker.is_pending(session, ad.pixel_url)
    assert session.fired_pixels == set()

    tracker.fire_once(session, ad)
    await asyncio.sleep(0)
    assert sender.urls == ["https://soron.ai/pixel/1", "https://soron.ai/pixel/1"]
    for task in list(dispatcher._tasks):
        task.cancel()
    await dispatcher.drain()


def test_loop_shutdown_releases_pending_impression(session, ad):
    sender = SlowBeaconSender()
    tracker = ImpressionTracker(BeaconDispatcher(sender))

    async def deliver():
        tracker.fire_once(session, ad)
        await asyncio.sleep(0)

    # asyncio.run cancels the in-flight beacon on exit
    asyncio.run(deliver())
    asyncio.run(deliver())

    assert len(sender.urls) == 2
    assert not tracker.is_pending(session, ad.pixel_url)
