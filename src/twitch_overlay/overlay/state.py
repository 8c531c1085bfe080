"""오버레이 표시 상태. 현재 떠 있는 인스턴스 목록이 클라이언트로 나가는 유일한 원본."""

from __future__ import annotations

import logging
import secrets
from typing import Any, Callable, List, Optional, Tuple

from .events import EventBroker, overlay_topic
from .models import ActiveOverlay, OverlayDefinition

logger = logging.getLogger(__name__)


def _noop() -> None:
    return None


class ActiveStateStore:
    """
    표시 중인 오버레이 목록 (삽입 순서 유지).
    모든 변경 후 on_change(= 스냅샷 브로드캐스트) 호출.
    """

    def __init__(self, broker: EventBroker, on_change: Optional[Callable[[], None]] = None):
        self._broker = broker
        self._overlays: List[ActiveOverlay] = []
        self.on_change = on_change or _noop

    def _new_id(self) -> str:
        active = {o.id for o in self._overlays}
        while True:
            overlay_id = secrets.token_urlsafe(6)
            if overlay_id not in active:
                return overlay_id

    def show(self, definition: OverlayDefinition, payload: Any = None) -> ActiveOverlay:
        """오버레이 표시. 같은 name 을 두 번 show 하면 인스턴스 두 개."""
        overlay = ActiveOverlay.from_definition(self._new_id(), definition, payload)
        self._overlays.append(overlay)
        logger.info("show %s (id=%s, layout=%s)", overlay.name, overlay.id, overlay.layout)
        self.on_change()
        return overlay

    def hide(self, name: str) -> int:
        """name 이 같은 인스턴스 전부 제거. 제거한 개수 반환 (없으면 0, 에러 아님)."""
        if not name:
            return 0
        before = len(self._overlays)
        self._overlays = [o for o in self._overlays if o.name != name]
        removed = before - len(self._overlays)
        if not removed:
            logger.debug("hide %s: 표시 중인 인스턴스 없음", name)
            return 0
        logger.info("hide %s (%d개 제거)", name, removed)
        self.on_change()
        return removed

    def end(self, overlay_id: Optional[str], name: Optional[str], payload: Any = None) -> Optional[ActiveOverlay]:
        """
        재생이 끝난 오버레이 제거. 호출당 최대 한 개.

        목록을 한 번 순회하며 처음 걸리는 인스턴스 하나를 제거:
        - id 가 일치하면 그것을 제거 (end 이벤트 없음)
        - 아니고 name 이 일치하면 제거하고 overlay:<name>:end 발행
        """
        for index, overlay in enumerate(self._overlays):
            if overlay_id is not None and overlay.id == overlay_id:
                del self._overlays[index]
                logger.info("end %s (id=%s)", overlay.name, overlay.id)
                self.on_change()
                return overlay
            elif name and overlay.name == name:
                del self._overlays[index]
                logger.info("end %s (name fallback, id=%s)", name, overlay.id)
                self._broker.publish(overlay_topic(name, "end"), payload)
                self.on_change()
                return overlay

        logger.debug("end: 일치하는 인스턴스 없음 (id=%s, name=%s)", overlay_id, name)
        return None

    def get_state(self) -> Tuple[ActiveOverlay, ...]:
        return tuple(self._overlays)

    def clear_state(self) -> None:
        self._overlays = []
        logger.info("Overlay state: clear")
        self.on_change()

    def __len__(self) -> int:
        return len(self._overlays)
