"""
오버레이 서버 실행: python -m twitch_overlay [overlays.json]

overlays.json 이 있으면 시작할 때 오버레이 정의(하나 또는 리스트)를 등록한다.
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import uvicorn
from dotenv import load_dotenv

from .config import OverlayOptions
from .overlay.server import create_app
from .utils import setup_logging

logger = logging.getLogger(__name__)


def main(argv=None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    load_dotenv(Path.cwd() / ".env")
    log_dir = setup_logging()

    options = OverlayOptions.from_env()
    server = create_app(options)

    if argv:
        path = Path(argv[0])
        try:
            definitions = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.error("오버레이 정의 파일 로드 실패: %s (%s)", path, e)
            return 1
        server.controller.add(definitions)

    print(f"방송 오버레이: http://{options.hostname}:{options.port}{options.directory} (OBS 브라우저 소스에 추가)")
    print(f"로그: {log_dir}")
    uvicorn.run(server.asgi, host=options.hostname, port=options.port, log_level="warning")
    return 0


if __name__ == "__main__":
    sys.exit(main())
