"""
오버레이 데이터 모델
등록된 오버레이 정의(OverlayDefinition)와 화면에 떠 있는 인스턴스(ActiveOverlay).
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, Optional

# 스냅샷 파티션 순서 (클라이언트 렌더링 순서와 동일)
LAYOUTS = ("fullscreen", "center", "right", "left")
DEFAULT_LAYOUT = "center"


class OverlayDefinitionError(ValueError):
    """오버레이 정의가 잘못된 경우 (이름 누락 등)"""


class UnsupportedOverlayType(OverlayDefinitionError):
    """지원하지 않는 오버레이 type"""

    def __init__(self, overlay_type: Any, supported: list[str]):
        self.overlay_type = overlay_type
        self.supported = supported
        super().__init__(
            f"지원하지 않는 오버레이 타입: {overlay_type!r}. "
            f"지원 타입: {', '.join(supported)}"
        )


@dataclass
class OverlayDefinition:
    """등록된 오버레이 한 종류. name은 표시 식별자이자 이벤트 토픽 루트."""
    name: str
    type: str
    config: Any  # types.py 의 타입별 설정 (코어는 그대로 전달만 함)
    layout: str = DEFAULT_LAYOUT
    static_directory: Optional[str] = None
    payload: Any = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type,
            "layout": self.layout,
            "static_directory": self.static_directory,
            "payload": self.payload,
            "config": self.config.to_dict() if hasattr(self.config, "to_dict") else self.config,
        }


@dataclass
class ActiveOverlay:
    """현재 표시 중인 오버레이 인스턴스 (show 할 때마다 새 id)"""
    id: str
    name: str
    type: str
    layout: str
    payload: Any = None
    config: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_definition(cls, overlay_id: str, definition: OverlayDefinition, payload: Any = None) -> "ActiveOverlay":
        """show 시점의 정의를 복사해 인스턴스 생성. payload 없으면 정의의 payload 사용."""
        if payload is None:
            payload = copy.deepcopy(definition.payload)
        config = definition.config.to_dict() if hasattr(definition.config, "to_dict") else dict(definition.config or {})
        return cls(
            id=overlay_id,
            name=definition.name,
            type=definition.type,
            layout=definition.layout,
            payload=payload,
            config=config,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "layout": self.layout,
            "payload": self.payload,
            "config": dict(self.config),
        }
