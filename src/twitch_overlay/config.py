"""
오버레이 서버 설정. 환경 변수(.env)에서 읽는다.

- OVERLAY_HOST            바인드 호스트 (기본 localhost)
- OVERLAY_PORT            포트 (기본 3000)
- OVERLAY_DIRECTORY       OBS/XSplit 에 넣을 오버레이 페이지 경로 (기본 /)
- OVERLAY_CORS_ORIGINS    허용 origin, 쉼표 구분 (기본 *)
- OVERLAY_CLEAR_ON_EMPTY  마지막 화면이 끊기면 등록된 오버레이 비우기 (기본 1)
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import List, Mapping, Optional

_TRUE = ("1", "true", "yes", "on")


def _parse_bool(value: Optional[str], default: bool) -> bool:
    if value is None or not value.strip():
        return default
    return value.strip().lower() in _TRUE


@dataclass
class OverlayOptions:
    hostname: str = "localhost"
    port: int = 3000
    directory: str = "/"
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    clear_registry_on_empty: bool = True

    def __post_init__(self):
        if not self.directory.startswith("/"):
            self.directory = "/" + self.directory

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "OverlayOptions":
        env = os.environ if environ is None else environ
        origins = (env.get("OVERLAY_CORS_ORIGINS") or "*").strip()
        return cls(
            hostname=(env.get("OVERLAY_HOST") or "localhost").strip(),
            port=int(env.get("OVERLAY_PORT") or "3000"),
            directory=(env.get("OVERLAY_DIRECTORY") or "/").strip(),
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()] or ["*"],
            clear_registry_on_empty=_parse_bool(env.get("OVERLAY_CLEAR_ON_EMPTY"), True),
        )
