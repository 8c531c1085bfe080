"""
실시간 푸시 채널
오버레이 화면(브라우저 소스)으로 상태를 밀어주는 전송 계층 인터페이스와 Socket.IO 구현.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Optional, Set

if TYPE_CHECKING:
    from socketio import AsyncServer

logger = logging.getLogger(__name__)


class RealtimeChannel(ABC):
    """실시간 채널 추상 기본 클래스. 전송은 fire-and-forget (응답 대기 없음)."""

    @abstractmethod
    def send_to(self, connection_id: str, event: str, payload: Any) -> None:
        """연결 하나에만 전송"""
        pass

    @abstractmethod
    def broadcast_all(self, event: str, payload: Any) -> None:
        """연결된 모든 클라이언트에 전송"""
        pass


class SocketIOChannel(RealtimeChannel):
    """python-socketio AsyncServer 기반 채널.

    코어는 동기 코드라 emit 코루틴을 직접 await 하지 않고 서버 루프에 태스크로 올린다.
    """

    def __init__(self, sio: "AsyncServer"):
        self.sio = sio
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._tasks: Set[asyncio.Future] = set()

    def attach_loop(self, loop: asyncio.AbstractEventLoop) -> None:
        """서버가 도는 이벤트 루프 지정 (다른 스레드에서 보낼 때 사용)"""
        self._loop = loop

    def send_to(self, connection_id, event, payload):
        self._spawn(self.sio.emit(event, payload, to=connection_id), event)

    def broadcast_all(self, event, payload):
        self._spawn(self.sio.emit(event, payload), event)

    def _spawn(self, coro, event: str) -> None:
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        if running is not None and (self._loop is None or running is self._loop):
            task = running.create_task(coro)
        elif self._loop is not None and not self._loop.is_closed():
            task = asyncio.run_coroutine_threadsafe(coro, self._loop)
        else:
            coro.close()
            logger.debug("이벤트 루프 없음: %s 전송 생략", event)
            return

        self._tasks.add(task)
        task.add_done_callback(lambda t: self._on_sent(t, event))

    def _on_sent(self, task, event: str) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.warning("Socket.IO 전송 실패 (%s): %s", event, exc)
