from __future__ import annotations

import logging

import pytest

from twitch_overlay.overlay.events import EventBroker, overlay_topic, parse_overlay_topic


def test_publish_calls_handlers_in_subscription_order():
    broker = EventBroker()
    calls = []
    broker.subscribe("t", lambda p: calls.append(("a", p)))
    broker.subscribe("t", lambda p: calls.append(("b", p)))
    broker.subscribe("other", lambda p: calls.append(("c", p)))

    assert broker.publish("t", 1) == 2
    assert calls == [("a", 1), ("b", 1)]


def test_failing_handler_does_not_stop_the_rest(caplog):
    broker = EventBroker()
    calls = []

    def boom(_payload):
        raise RuntimeError("boom")

    broker.subscribe("t", boom)
    broker.subscribe("t", calls.append)

    with caplog.at_level(logging.ERROR, logger="twitch_overlay.overlay.events"):
        broker.publish("t", "x")

    assert calls == ["x"]
    errors = [r for r in caplog.records if r.exc_info]
    assert len(errors) == 1
    assert isinstance(errors[0].exc_info[1], RuntimeError)


def test_unsubscribe_is_idempotent_and_scoped_to_handle():
    broker = EventBroker()
    calls = []
    first = broker.subscribe("t", lambda p: calls.append("first"))
    broker.subscribe("t", lambda p: calls.append("second"))

    assert broker.unsubscribe(first) is True
    assert broker.unsubscribe(first) is False
    assert not broker.is_subscribed(first)

    broker.publish("t")
    assert calls == ["second"]
    assert broker.subscriber_count("t") == 1


def test_same_handler_subscribed_twice_gets_two_handles():
    broker = EventBroker()
    calls = []
    a = broker.subscribe("t", calls.append)
    broker.subscribe("t", calls.append)
    broker.unsubscribe(a)
    broker.publish("t", 1)
    assert calls == [1]


def test_unsubscribe_during_publish_keeps_current_dispatch():
    broker = EventBroker()
    calls = []
    later = None

    def first(_p):
        broker.unsubscribe(later)
        calls.append("first")

    broker.subscribe("t", first)
    later = broker.subscribe("t", lambda p: calls.append("later"))

    broker.publish("t")
    broker.publish("t")
    assert calls == ["first", "later", "first"]


def test_topic_helpers():
    assert overlay_topic("sub", "show") == "overlay:sub:show"
    assert parse_overlay_topic("overlay:sub:hide") == ("sub", "hide")
    assert parse_overlay_topic("overlay:a:b:end") == ("a:b", "end")
    assert parse_overlay_topic("overlays:add") is None
    assert parse_overlay_topic("overlay::show") is None
    assert parse_overlay_topic("overlay:sub:explode") is None
    with pytest.raises(ValueError):
        overlay_topic("sub", "explode")
