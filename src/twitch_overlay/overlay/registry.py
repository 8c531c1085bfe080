"""
오버레이 정의 레지스트리

    video = {"name": "hpcwins", "type": "video", "file": "videos/events/hpcwins.mp4"}
    controller.add(video)
    # 또는
    broker.publish("overlays:add", video)
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from .events import EventBroker, Subscription, overlay_topic
from .models import OverlayDefinition, OverlayDefinitionError
from .state import ActiveStateStore
from .types import OverlayTypeFactory

logger = logging.getLogger(__name__)

DefinitionInput = Union[Mapping[str, Any], OverlayDefinition]
StaticExposer = Callable[[str, str], None]


class OverlayRegistry:
    """등록된 오버레이 정의 목록 + (name, kind) → 핸들러 트리거 테이블"""

    def __init__(
        self,
        broker: EventBroker,
        state: ActiveStateStore,
        expose_static: Optional[StaticExposer] = None,
    ):
        self._broker = broker
        self._state = state
        self.expose_static = expose_static
        self._definitions: List[OverlayDefinition] = []
        self._triggers: Dict[Tuple[str, str], List[Callable[[Any], None]]] = {}
        self._subscriptions: List[Subscription] = []

    def add(self, definitions: Union[DefinitionInput, Iterable[DefinitionInput]]) -> List[Subscription]:
        """
        오버레이 등록 (하나 또는 리스트). 항목별로 독립 처리, 잘못된 항목은 건너뛴다.

        Returns:
            이번 호출로 설치된 이벤트 구독 핸들 (연결 단위 정리에 사용)
        """
        if definitions is None:
            return []
        if isinstance(definitions, (Mapping, OverlayDefinition, str)):
            queue = [definitions]
        else:
            queue = list(definitions)

        installed: List[Subscription] = []
        for item in queue:
            try:
                definition = OverlayTypeFactory.build(item)
            except OverlayDefinitionError as e:
                logger.warning("오버레이 등록 건너뜀: %s", e)
                continue
            installed.extend(self._register(definition))
        return installed

    def _register(self, definition: OverlayDefinition) -> List[Subscription]:
        self._definitions.append(definition)

        if definition.static_directory and self.expose_static is not None:
            self.expose_static(f"/{definition.name}", definition.static_directory)

        def show(payload: Any = None) -> None:
            self._state.show(definition, payload)

        def hide(_payload: Any = None) -> None:
            self._state.hide(definition.name)

        subs = []
        for kind, handler in (("show", show), ("hide", hide)):
            self._triggers.setdefault((definition.name, kind), []).append(handler)
            subs.append(self._broker.subscribe(overlay_topic(definition.name, kind), handler))
        self._subscriptions.extend(subs)

        logger.info("오버레이 등록: %s (%s, %s)", definition.name, definition.type, definition.layout)
        return subs

    def trigger(self, name: str, kind: str, payload: Any = None) -> int:
        """
        이벤트 문자열 없이 (name, kind) 로 직접 트리거. 실행된 핸들러 수 반환.
        핸들러 하나가 실패해도 나머지는 계속 실행 (오류는 로그).
        """
        handlers = list(self._triggers.get((name, kind), ()))
        for handler in handlers:
            try:
                handler(payload)
            except Exception:
                logger.exception("트리거 핸들러 오류: %s:%s", name, kind)
        return len(handlers)

    def get(self, name: str) -> Optional[OverlayDefinition]:
        """name 이 같은 첫 정의"""
        for definition in self._definitions:
            if definition.name == name:
                return definition
        return None

    def list(self) -> List[OverlayDefinition]:
        return list(self._definitions)

    def clear(self) -> None:
        """정의 전부 제거 + 설치한 트리거 구독 해제. 표시 중인 상태는 건드리지 않음."""
        for sub in self._subscriptions:
            self._broker.unsubscribe(sub)
        self._subscriptions = []
        self._triggers = {}
        self._definitions = []
        logger.info("오버레이 레지스트리 초기화")

    def __len__(self) -> int:
        return len(self._definitions)
