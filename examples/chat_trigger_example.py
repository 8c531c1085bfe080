"""
채팅 명령으로 오버레이를 띄우는 예제.

실행: python examples/chat_trigger_example.py
OBS 브라우저 소스: http://localhost:3000/

오버레이 서버(uvicorn)는 데몬 스레드, 채팅 봇 흉내는 메인 asyncio 루프에서 돈다.
다른 스레드에서 트리거하므로 publish_threadsafe 사용.
"""

import asyncio
import sys
import threading
from pathlib import Path

from dotenv import load_dotenv

sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from twitch_overlay import OverlayOptions, create_app
from twitch_overlay.utils import setup_logging

load_dotenv(Path(__file__).resolve().parent.parent / ".env")

OVERLAYS = [
    {"name": "sub", "type": "text", "layout": "left", "text": "새 구독!"},
    {"name": "hpcwins", "type": "video", "file": "videos/events/hpcwins.mp4", "layout": "fullscreen"},
]

# 채팅 명령 → (토픽, payload)
COMMANDS = {
    "!sub": ("overlay:sub:show", {"text": "초코 님이 구독했습니다!"}),
    "!unsub": ("overlay:sub:hide", None),
    "!win": ("overlay:hpcwins:show", None),
}


async def main():
    setup_logging()
    options = OverlayOptions.from_env()
    # 예제에서는 화면 새로고침해도 등록이 유지되도록
    options.clear_registry_on_empty = False
    server = create_app(options)
    server.controller.add(OVERLAYS)
    server.controller.broker.subscribe(
        "overlay:hpcwins:end", lambda payload: print("hpcwins 영상 종료:", payload)
    )

    import uvicorn

    def run_overlay():
        uvicorn.run(server.asgi, host=options.hostname, port=options.port, log_level="warning")

    t = threading.Thread(target=run_overlay, daemon=True)
    t.start()
    print(f"방송 오버레이: http://{options.hostname}:{options.port}{options.directory}")
    print("명령:", ", ".join(COMMANDS), "(빈 줄이면 종료)")

    loop = asyncio.get_running_loop()
    while True:
        line = (await loop.run_in_executor(None, sys.stdin.readline)).strip()
        if not line:
            break
        command = COMMANDS.get(line)
        if command is None:
            print("알 수 없는 명령:", line)
            continue
        try:
            server.controller.publish_threadsafe(*command)
        except RuntimeError as e:
            print("서버 준비 중:", e)


if __name__ == "__main__":
    asyncio.run(main())
