"""
twitch-overlay: 채팅 봇·자동화 스크립트가 방송 오버레이를 띄우고 내리는 실시간 서버.

    from twitch_overlay import create_app

    server = create_app()
    server.controller.add({"name": "hpcwins", "type": "video", "file": "videos/events/hpcwins.mp4"})
    server.controller.publish("overlay:hpcwins:show")
"""

from .config import OverlayOptions
from .overlay import OverlayController, create_app

__all__ = ["OverlayOptions", "OverlayController", "create_app"]
__version__ = "0.1.0"
