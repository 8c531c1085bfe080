"""
연결된 오버레이 화면 관리
연결마다 자신이 설치한 이벤트 구독 핸들을 들고 있다가, 끊기면 그것만 정확히 해제한다.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, Set

from .events import EventBroker, Subscription
from .snapshot import SnapshotBroadcaster
from .state import ActiveStateStore

logger = logging.getLogger(__name__)


class ConnectionManager:
    def __init__(
        self,
        broker: EventBroker,
        state: ActiveStateStore,
        broadcaster: SnapshotBroadcaster,
        on_empty: Optional[Callable[[], None]] = None,
    ):
        self._broker = broker
        self._state = state
        self._broadcaster = broadcaster
        self.on_empty = on_empty
        # connection_id → 이 연결이 소유한 구독 핸들
        self._owned: Dict[str, Set[Subscription]] = {}

    def connect(self, connection_id: str) -> None:
        """새 연결 등록 후 현재 스냅샷을 그 연결에만 전송"""
        if connection_id in self._owned:
            logger.debug("이미 연결된 클라이언트: %s", connection_id)
        else:
            self._owned[connection_id] = set()
            logger.info("오버레이 클라이언트 연결: %s (총 %d)", connection_id, len(self._owned))
        self._broadcaster.send_to(connection_id)

    def track(self, connection_id: str, sub: Subscription) -> None:
        """구독 소유권 기록. 이미 끊긴 연결이면 바로 해제 (누수 방지)."""
        owned = self._owned.get(connection_id)
        if owned is None:
            logger.debug("끊긴 연결 %s 의 구독 즉시 해제: %s", connection_id, sub.topic)
            self._broker.unsubscribe(sub)
            return
        owned.add(sub)

    def end_overlay(self, connection_id: str, overlay_id: Optional[str], name: Optional[str], payload: Any = None) -> None:
        """클라이언트가 보낸 endOverlay 처리"""
        if connection_id not in self._owned:
            logger.debug("끊긴 연결 %s 의 endOverlay 무시", connection_id)
            return
        self._state.end(overlay_id, name, payload)

    def disconnect(self, connection_id: str) -> None:
        """연결 종료: 소유 구독 전부 해제, 마지막 연결이면 on_empty 호출"""
        owned = self._owned.pop(connection_id, None)
        if owned is None:
            return
        for sub in owned:
            self._broker.unsubscribe(sub)
        logger.info(
            "오버레이 클라이언트 연결 종료: %s (구독 %d개 해제, 남은 연결 %d)",
            connection_id, len(owned), len(self._owned),
        )
        if not self._owned and self.on_empty is not None:
            self.on_empty()

    def owned(self, connection_id: str) -> Set[Subscription]:
        return set(self._owned.get(connection_id, ()))

    def connection_ids(self) -> List[str]:
        return list(self._owned)

    def __contains__(self, connection_id: str) -> bool:
        return connection_id in self._owned

    def __len__(self) -> int:
        return len(self._owned)
