"""
오버레이 타입별 설정 팩토리
text / video / html / audio 타입마다 클라이언트 렌더러가 기대하는 설정 형태를 만든다.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from .models import (
    DEFAULT_LAYOUT,
    LAYOUTS,
    OverlayDefinition,
    OverlayDefinitionError,
    UnsupportedOverlayType,
)

logger = logging.getLogger(__name__)


@dataclass
class TypeConfig:
    """타입별 설정 공통 기본 클래스"""

    @classmethod
    def from_item(cls, item: Mapping[str, Any]) -> "TypeConfig":
        return cls()

    @property
    def static_directory(self) -> Optional[str]:
        """웹서버로 노출할 정적 디렉터리 (없으면 None)"""
        return None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class TextConfig(TypeConfig):
    text: Optional[str] = None  # 기본 표시 문구 (show payload로 덮어쓸 수 있음)

    @classmethod
    def from_item(cls, item):
        return cls(text=item.get("text"))


@dataclass
class VideoConfig(TypeConfig):
    file: Optional[str] = None
    volume: float = 1.0

    @classmethod
    def from_item(cls, item):
        volume = item.get("volume")
        if volume is None:
            return cls(file=item.get("file"))
        try:
            volume = float(volume)
        except (TypeError, ValueError):
            raise OverlayDefinitionError(
                f"[{item.get('name')}] volume 값이 숫자가 아닙니다: {volume!r}"
            ) from None
        return cls(file=item.get("file"), volume=volume)


@dataclass
class HtmlConfig(TypeConfig):
    view: Optional[str] = None    # 기본 템플릿 대신 넣을 뷰
    static: Optional[str] = None  # 이미지 등 정적 파일 디렉터리

    @classmethod
    def from_item(cls, item):
        return cls(view=item.get("view"), static=item.get("static"))

    @property
    def static_directory(self):
        return self.static


@dataclass
class AudioConfig(TypeConfig):
    directory: Optional[str] = None  # 오디오 파일 디렉터리

    @classmethod
    def from_item(cls, item):
        return cls(directory=item.get("directory"))

    @property
    def static_directory(self):
        return self.directory


class OverlayTypeFactory:
    """오버레이 타입 팩토리 클래스"""

    _types: Dict[str, type[TypeConfig]] = {
        "text": TextConfig,
        "video": VideoConfig,
        "html": HtmlConfig,
        "audio": AudioConfig,
    }

    @classmethod
    def create_config(cls, overlay_type: Any, item: Mapping[str, Any]) -> TypeConfig:
        """
        타입별 설정 생성

        Raises:
            UnsupportedOverlayType: 지원하지 않는 타입인 경우
        """
        if not isinstance(overlay_type, str) or overlay_type not in cls._types:
            raise UnsupportedOverlayType(overlay_type, cls.get_supported_types())
        return cls._types[overlay_type].from_item(item)

    @classmethod
    def build(cls, item: Mapping[str, Any] | OverlayDefinition) -> OverlayDefinition:
        """
        dict(JSON) 또는 OverlayDefinition 을 검증된 OverlayDefinition 으로 변환

        Args:
            item: {"name": "hpcwins", "type": "video", "file": "videos/hpcwins.mp4", ...}

        Raises:
            OverlayDefinitionError: 이름 누락 / 지원하지 않는 타입
        """
        if isinstance(item, OverlayDefinition):
            item = {
                **(item.config.to_dict() if hasattr(item.config, "to_dict") else dict(item.config or {})),
                "name": item.name,
                "type": item.type,
                "layout": item.layout,
                "static_directory": item.static_directory,
                "payload": item.payload,
            }
        if not isinstance(item, Mapping):
            raise OverlayDefinitionError(f"오버레이 정의는 dict 여야 합니다: {type(item).__name__}")

        name = item.get("name")
        if not isinstance(name, str) or not name.strip():
            raise OverlayDefinitionError(f"오버레이 name 누락: {item!r}")

        overlay_type = item.get("type")
        config = cls.create_config(overlay_type, item)

        layout = item.get("layout") or DEFAULT_LAYOUT
        if layout not in LAYOUTS:
            logger.warning("[%s] 알 수 없는 layout %r → %s 사용", name, layout, DEFAULT_LAYOUT)
            layout = DEFAULT_LAYOUT

        return OverlayDefinition(
            name=name,
            type=overlay_type,
            config=config,
            layout=layout,
            static_directory=item.get("static_directory") or config.static_directory,
            payload=item.get("payload"),
        )

    @classmethod
    def register_type(cls, overlay_type: str, config_class: type[TypeConfig]):
        """
        새로운 오버레이 타입 등록 (런타임에 타입 추가 가능)

        Args:
            overlay_type: 타입 이름
            config_class: TypeConfig를 상속한 설정 클래스
        """
        if not issubclass(config_class, TypeConfig):
            raise TypeError(
                f"config_class는 TypeConfig를 상속해야 합니다. "
                f"현재: {config_class.__mro__}"
            )
        cls._types[overlay_type] = config_class

    @classmethod
    def get_supported_types(cls) -> list[str]:
        """지원하는 타입 목록 반환"""
        return list(cls._types.keys())
