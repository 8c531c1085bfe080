"""
오버레이 컨트롤러
브로커·표시 상태·레지스트리·연결 테이블을 한 인스턴스가 소유한다 (모듈 전역 상태 없음).
같은 프로세스에서 서버를 여러 개 띄워도 서로 간섭하지 않는다.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Iterable, List, Optional, Tuple, Union

from .channel import RealtimeChannel
from .connections import ConnectionManager
from .events import ADD_TOPIC, EventBroker, Subscription
from .models import ActiveOverlay, OverlayDefinition
from .registry import DefinitionInput, OverlayRegistry, StaticExposer
from .snapshot import SnapshotBroadcaster
from .state import ActiveStateStore

logger = logging.getLogger(__name__)


class OverlayController:
    def __init__(
        self,
        channel: RealtimeChannel,
        expose_static: Optional[StaticExposer] = None,
        clear_registry_on_empty: bool = True,
    ):
        """
        Args:
            channel: 클라이언트로 스냅샷을 보낼 실시간 채널
            expose_static: (url_prefix, 로컬 경로) 를 받아 정적 파일을 노출하는 함수
            clear_registry_on_empty: 마지막 클라이언트가 끊기면 등록된 오버레이 비우기
        """
        self.broker = EventBroker()
        self.state = ActiveStateStore(self.broker)
        self.broadcaster = SnapshotBroadcaster(self.state.get_state, channel)
        self.state.on_change = self.broadcaster.broadcast
        self.registry = OverlayRegistry(self.broker, self.state, expose_static)
        self.connections = ConnectionManager(
            self.broker,
            self.state,
            self.broadcaster,
            on_empty=self._on_last_disconnect if clear_registry_on_empty else None,
        )
        self._loop: Optional[asyncio.AbstractEventLoop] = None

        self.broker.subscribe(ADD_TOPIC, self.add)

    @property
    def channel(self) -> RealtimeChannel:
        return self.broadcaster.channel

    def attach_loop(self, loop: asyncio.AbstractEventLoop) -> None:
        self._loop = loop
        attach = getattr(self.channel, "attach_loop", None)
        if attach is not None:
            attach(loop)

    # --- 등록 ---

    def add(self, definitions: Union[DefinitionInput, Iterable[DefinitionInput]], owner: Optional[str] = None) -> List[Subscription]:
        """오버레이 등록. owner(연결 id)가 있으면 그 연결이 구독을 소유해 끊길 때 해제된다."""
        subs = self.registry.add(definitions)
        if owner is not None:
            for sub in subs:
                self.connections.track(owner, sub)
        return subs

    def list(self) -> List[OverlayDefinition]:
        return self.registry.list()

    def clear(self) -> None:
        self.registry.clear()

    # --- 표시 상태 ---

    def show(self, overlay: Union[str, OverlayDefinition], payload: Any = None) -> Optional[ActiveOverlay]:
        """이름 또는 정의로 표시. 이름이 등록돼 있지 않으면 None."""
        if isinstance(overlay, str):
            definition = self.registry.get(overlay)
            if definition is None:
                logger.warning("등록되지 않은 오버레이 show 무시: %s", overlay)
                return None
            overlay = definition
        return self.state.show(overlay, payload)

    def hide(self, name: str) -> int:
        return self.state.hide(name)

    def end(self, overlay_id: Optional[str], name: Optional[str], payload: Any = None) -> Optional[ActiveOverlay]:
        return self.state.end(overlay_id, name, payload)

    def get_state(self) -> Tuple[ActiveOverlay, ...]:
        return self.state.get_state()

    def clear_state(self) -> None:
        self.state.clear_state()

    def update(self) -> None:
        """현재 상태를 모든 클라이언트에 다시 전송"""
        self.broadcaster.broadcast()

    # --- 이벤트 ---

    def publish(self, topic: str, payload: Any = None) -> int:
        return self.broker.publish(topic, payload)

    def publish_threadsafe(self, topic: str, payload: Any = None) -> None:
        """다른 스레드(채팅 봇 루프 등)에서 트리거할 때. 서버 루프에서 publish 실행."""
        if self._loop is None or self._loop.is_closed():
            raise RuntimeError("서버 이벤트 루프가 아직 연결되지 않았습니다 (attach_loop 필요)")
        self._loop.call_soon_threadsafe(self.broker.publish, topic, payload)

    # --- 연결 수명주기 ---

    def on_connect(self, connection_id: str) -> None:
        self.connections.connect(connection_id)

    def on_disconnect(self, connection_id: str) -> None:
        self.connections.disconnect(connection_id)

    def on_end_overlay(self, connection_id: str, overlay_id: Optional[str], name: Optional[str], payload: Any = None) -> None:
        self.connections.end_overlay(connection_id, overlay_id, name, payload)

    def _on_last_disconnect(self) -> None:
        logger.info("연결된 클라이언트 없음: 등록된 오버레이 비움")
        self.registry.clear()
