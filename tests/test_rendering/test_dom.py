"""Tests for the in-memory host page."""

from unittest.mock import MagicMock

import pytest

from soron_ads.rendering.dom import Document, Element, ManualVisibilityObserver, SoupDocument


@pytest.fixture
def document():
    return SoupDocument('<html><body><div id="slot" class="ad slot"></div></body></html>')


def test_abstract_interfaces():
    with pytest.raises(TypeError):
        Document()
    with pytest.raises(TypeError):
        Element()


def test_query_selector(document):
    element = document.query_selector("#slot")
    assert element is not None
    assert element.get_attribute("class") == "ad slot"
    assert document.query_selector("#missing") is None


def test_wrappers_of_same_tag_are_equal(document):
    assert document.query_selector("#slot") == document.query_selector(".slot")
    assert len({document.query_selector("#slot"), document.query_selector(".ad")}) == 1


def test_set_inner_html(document):
    element = document.query_selector("#slot")
    element.set_inner_html('Hi<br><a href="https://x" data-soron-click="true">X</a>')
    assert element.inner_html == 'Hi<br/><a href="https://x" data-soron-click="true">X</a>'
    assert element.text == "HiX"
    assert len(element.query_selector_all("a[data-soron-click]")) == 1
    assert 'id="slot"' in str(document)


def test_click_dispatches_listeners(document):
    element = document.query_selector("#slot")
    element.set_inner_html('<a href="https://x">X</a>')
    link = element.query_selector_all("a")[0]
    listener = MagicMock(side_effect=lambda event: event.prevent_default())

    link.add_event_listener("click", listener)
    event = link.click()

    listener.assert_called_once_with(event)
    assert event.default_prevented
    assert event.target == link


def test_remove_event_listener(document):
    element = document.query_selector("#slot")
    listener = MagicMock()
    element.add_event_listener("click", listener)
    element.remove_event_listener("click", listener)
    element.click()
    listener.assert_not_called()


def test_replacing_markup_drops_old_listeners(document):
    element = document.query_selector("#slot")
    element.set_inner_html('<a href="https://x">X</a>')
    listener = MagicMock()
    element.query_selector_all("a")[0].add_event_listener("click", listener)

    element.set_inner_html("")

    assert element.query_selector_all("a") == []
    assert len(document._listeners) == 0


def test_manual_observer_emit_and_disconnect():
    observer = ManualVisibilityObserver()
    element = MagicMock()
    callback = MagicMock()

    disconnect = observer.observe(element, callback)
    observer.emit(element, 0.75)
    callback.assert_called_once_with(0.75)

    disconnect()
    observer.emit(element, 1.0)
    assert callback.call_count == 1
    assert not observer.is_observing(element)
