"""표시 상태를 layout 별로 나눈 스냅샷을 만들어 클라이언트에 보낸다."""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable

from .channel import RealtimeChannel
from .events import STATE_EVENT
from .models import LAYOUTS, ActiveOverlay

logger = logging.getLogger(__name__)


def partition(overlays: Iterable[ActiveOverlay]) -> dict[str, Any]:
    """layout 별 파티션. 파티션 안에서는 원래 순서 유지."""
    parts: dict[str, list] = {layout: [] for layout in LAYOUTS}
    for overlay in overlays:
        parts[overlay.layout].append(overlay.to_dict())
    return {"overlays": parts}


class SnapshotBroadcaster:
    def __init__(self, get_state: Callable[[], Iterable[ActiveOverlay]], channel: RealtimeChannel):
        self._get_state = get_state
        self.channel = channel

    def snapshot(self) -> dict[str, Any]:
        return partition(self._get_state())

    def broadcast(self) -> None:
        """상태가 바뀔 때마다 호출: 모든 연결에 최신 스냅샷 전송"""
        self.channel.broadcast_all(STATE_EVENT, self.snapshot())

    def send_to(self, connection_id: str) -> None:
        """새 연결에만 현재 스냅샷 전송 (지난 이벤트 재생 없이 현재 상태로 수렴)"""
        logger.debug("snapshot → %s", connection_id)
        self.channel.send_to(connection_id, STATE_EVENT, self.snapshot())
