from __future__ import annotations

from twitch_overlay.overlay.controller import OverlayController

from conftest import FakeChannel


def test_connect_sends_snapshot_to_new_connection_only(controller, channel):
    controller.add({"name": "sub", "type": "text"})
    controller.show("sub", "hi")
    channel.broadcasts.clear()

    controller.on_connect("sid-1")

    assert channel.broadcasts == []
    ((connection_id, event, snapshot),) = channel.sent
    assert (connection_id, event) == ("sid-1", "overlays:state")
    assert [o["payload"] for o in snapshot["overlays"]["center"]] == ["hi"]


def test_end_overlay_message_is_forwarded(controller):
    controller.add({"name": "raid", "type": "video", "file": "raid.mp4"})
    overlay = controller.show("raid")
    controller.on_connect("sid-1")

    controller.on_end_overlay("sid-1", overlay.id, "raid", None)
    assert controller.get_state() == ()


def test_end_overlay_from_disconnected_connection_is_ignored(controller):
    controller.add({"name": "raid", "type": "text"})
    overlay = controller.show("raid")
    controller.on_connect("sid-1")
    controller.on_connect("sid-2")
    controller.on_disconnect("sid-1")

    controller.on_end_overlay("sid-1", overlay.id, "raid")
    assert len(controller.get_state()) == 1


def test_disconnect_releases_every_owned_subscription():
    # registry clear 없이도 연결 소유 구독만으로 정리되는지 확인
    controller = OverlayController(FakeChannel(), clear_registry_on_empty=False)
    controller.on_connect("sid-1")
    definitions = [{"name": f"o{i}", "type": "text"} for i in range(10)]

    subs = controller.add(definitions, owner="sid-1")
    assert len(subs) == 20
    assert controller.connections.owned("sid-1") == set(subs)

    controller.on_disconnect("sid-1")

    assert controller.connections.owned("sid-1") == set()
    assert not any(controller.broker.is_subscribed(s) for s in subs)
    for i in range(10):
        assert controller.broker.subscriber_count(f"overlay:o{i}:show") == 0
        assert controller.broker.subscriber_count(f"overlay:o{i}:hide") == 0


def test_disconnect_keeps_subscriptions_owned_by_others():
    controller = OverlayController(FakeChannel(), clear_registry_on_empty=False)
    controller.add({"name": "global", "type": "text"})
    external = []
    controller.broker.subscribe("overlay:global:end", external.append)

    controller.on_connect("sid-1")
    controller.on_connect("sid-2")
    controller.add({"name": "mine", "type": "text"}, owner="sid-1")
    theirs = controller.add({"name": "theirs", "type": "text"}, owner="sid-2")

    controller.on_disconnect("sid-1")

    assert controller.broker.subscriber_count("overlay:mine:show") == 0
    assert all(controller.broker.is_subscribed(s) for s in theirs)
    controller.publish("overlay:global:show")
    controller.end("nope", "global", "done")
    assert external == ["done"]


def test_disconnect_is_idempotent(controller):
    controller.on_connect("sid-1")
    controller.on_connect("sid-2")
    controller.on_disconnect("sid-1")
    controller.on_disconnect("sid-1")
    controller.on_disconnect("never-connected")
    assert controller.connections.connection_ids() == ["sid-2"]


def test_track_after_disconnect_unsubscribes_immediately(controller):
    controller.on_connect("sid-1")
    controller.on_connect("sid-2")
    controller.on_disconnect("sid-1")

    subs = controller.add({"name": "late", "type": "text"}, owner="sid-1")

    assert not any(controller.broker.is_subscribed(s) for s in subs)
    assert "sid-1" not in controller.connections


def test_last_disconnect_clears_registry(controller):
    controller.add({"name": "sub", "type": "text"})
    controller.show("sub")
    controller.on_connect("sid-1")
    controller.on_connect("sid-2")

    controller.on_disconnect("sid-1")
    assert len(controller.list()) == 1

    controller.on_disconnect("sid-2")
    assert controller.list() == []
    assert len(controller.get_state()) == 1


def test_registry_kept_when_clear_on_empty_disabled():
    controller = OverlayController(FakeChannel(), clear_registry_on_empty=False)
    controller.add({"name": "sub", "type": "text"})
    controller.on_connect("sid-1")
    controller.on_disconnect("sid-1")

    assert [d.name for d in controller.list()] == ["sub"]
    controller.publish("overlay:sub:show")
    assert len(controller.get_state()) == 1


def test_reconnect_same_id_resends_snapshot(controller, channel):
    controller.on_connect("sid-1")
    controller.on_connect("sid-1")
    assert len(controller.connections) == 1
    assert [s[0] for s in channel.sent] == ["sid-1", "sid-1"]
