from __future__ import annotations

import pytest

from twitch_overlay.overlay.channel import RealtimeChannel
from twitch_overlay.overlay.controller import OverlayController


class FakeChannel(RealtimeChannel):
    def __init__(self):
        self.sent = []        # (connection_id, event, payload)
        self.broadcasts = []  # (event, payload)

    def send_to(self, connection_id, event, payload):
        self.sent.append((connection_id, event, payload))

    def broadcast_all(self, event, payload):
        self.broadcasts.append((event, payload))


@pytest.fixture
def channel():
    return FakeChannel()


@pytest.fixture
def exposed():
    return []


@pytest.fixture
def controller(channel, exposed):
    return OverlayController(channel, expose_static=lambda prefix, path: exposed.append((prefix, path)))
