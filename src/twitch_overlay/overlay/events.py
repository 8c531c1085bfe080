"""
프로세스 내 이벤트 브로커 (토픽 문자열 기반 pub/sub).

외부 프로듀서(채팅 봇 등)가 직접 메서드 호출 대신 이름 있는 이벤트로 오버레이를 트리거할 때 쓰는 경계.
- overlays:add           → 오버레이 등록
- overlay:<name>:show    → 표시
- overlay:<name>:hide    → 숨김
- overlay:<name>:end     → 이름으로 종료됐을 때 알림 (봇이 반응할 수 있게)
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

ADD_TOPIC = "overlays:add"
STATE_EVENT = "overlays:state"
END_OVERLAY_EVENT = "endOverlay"
TRIGGER_KINDS = ("show", "hide", "end")

Handler = Callable[[Any], None]


def overlay_topic(name: str, kind: str) -> str:
    """(name, kind) → 'overlay:<name>:<kind>'"""
    if kind not in TRIGGER_KINDS:
        raise ValueError(f"알 수 없는 트리거 종류: {kind}")
    return f"overlay:{name}:{kind}"


def parse_overlay_topic(topic: str) -> Optional[Tuple[str, str]]:
    """'overlay:<name>:<kind>' → (name, kind). 형식이 아니면 None. name에 ':' 포함 가능."""
    if not isinstance(topic, str) or not topic.startswith("overlay:"):
        return None
    name, sep, kind = topic[len("overlay:"):].rpartition(":")
    if not sep or not name or kind not in TRIGGER_KINDS:
        return None
    return name, kind


@dataclass(eq=False)
class Subscription:
    """subscribe 가 돌려주는 핸들. unsubscribe 할 때 이걸 그대로 넘긴다."""
    id: int
    topic: str
    handler: Handler = field(repr=False)


class EventBroker:
    """동기 pub/sub. publish 는 구독 순서대로 핸들러를 호출하고, 핸들러 예외는 격리한다."""

    def __init__(self):
        self._subscriptions: Dict[str, List[Subscription]] = {}
        self._ids = itertools.count(1)

    def subscribe(self, topic: str, handler: Handler) -> Subscription:
        sub = Subscription(next(self._ids), topic, handler)
        self._subscriptions.setdefault(topic, []).append(sub)
        logger.debug("subscribe %s (#%d)", topic, sub.id)
        return sub

    def unsubscribe(self, sub: Subscription) -> bool:
        """구독 해제. 이미 해제된 핸들이면 아무것도 하지 않고 False."""
        subs = self._subscriptions.get(sub.topic)
        if not subs or sub not in subs:
            return False
        subs.remove(sub)
        if not subs:
            del self._subscriptions[sub.topic]
        logger.debug("unsubscribe %s (#%d)", sub.topic, sub.id)
        return True

    def publish(self, topic: str, payload: Any = None) -> int:
        """토픽의 모든 핸들러 호출. 호출된 핸들러 수 반환."""
        # 핸들러 안에서 구독/해제가 일어나도 이번 publish 대상은 고정
        subs = list(self._subscriptions.get(topic, ()))
        for sub in subs:
            try:
                sub.handler(payload)
            except Exception:
                logger.exception("이벤트 핸들러 오류: %s (#%d)", topic, sub.id)
        return len(subs)

    def is_subscribed(self, sub: Subscription) -> bool:
        return sub in self._subscriptions.get(sub.topic, ())

    def subscriber_count(self, topic: str) -> int:
        return len(self._subscriptions.get(topic, ()))
