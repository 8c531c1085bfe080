"""
방송 오버레이 코어: 오버레이 정의 등록, 표시 상태, 이벤트 트리거, 화면 연결 관리.

- OverlayController: 한 서버가 소유하는 컨텍스트 (브로커/상태/레지스트리/연결 테이블).
- OBS에서 브라우저 소스 URL을 http://localhost:3000/ 로 설정.
"""

from .controller import OverlayController
from .events import EventBroker, Subscription
from .models import ActiveOverlay, OverlayDefinition, OverlayDefinitionError, UnsupportedOverlayType
from .server import OverlayApp, create_app

__all__ = [
    "OverlayController",
    "EventBroker",
    "Subscription",
    "ActiveOverlay",
    "OverlayDefinition",
    "OverlayDefinitionError",
    "UnsupportedOverlayType",
    "OverlayApp",
    "create_app",
]
