"""
방송 오버레이 서버. FastAPI(HTTP) + python-socketio(실시간 푸시).

- GET  /                          오버레이 페이지 (OBS 브라우저 소스 URL)
- GET  /api/state                 layout 별 표시 상태
- GET  /api/overlays              등록된 오버레이 목록
- POST /api/overlays              오버레이 등록 (하나 또는 리스트)
- POST /api/overlays/{name}/show  표시 (JSON body = payload, 생략 가능)
- POST /api/overlays/{name}/hide  숨김
- POST /api/clear                 표시 상태 초기화

실행: python -m twitch_overlay  (uvicorn 으로 create_app().asgi 를 띄움)
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Optional, Union

import socketio
from fastapi import Body, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel, ConfigDict

from ..config import OverlayOptions
from .channel import SocketIOChannel
from .controller import OverlayController
from .events import ADD_TOPIC, END_OVERLAY_EVENT, parse_overlay_topic

logger = logging.getLogger(__name__)


class OverlayIn(BaseModel):
    """등록 요청 한 건. 타입별 설정(file, volume, view, static, directory, text ...)은 그대로 통과."""
    model_config = ConfigDict(extra="allow")

    name: str
    type: str
    layout: Optional[str] = None
    payload: Any = None


@dataclass
class OverlayApp:
    options: OverlayOptions
    controller: OverlayController
    app: FastAPI
    sio: socketio.AsyncServer
    asgi: socketio.ASGIApp


def create_app(options: Optional[OverlayOptions] = None) -> OverlayApp:
    options = options or OverlayOptions()
    origins = "*" if options.cors_origins == ["*"] else options.cors_origins

    sio = socketio.AsyncServer(
        async_mode="asgi",
        cors_allowed_origins=origins,
        logger=False,
        engineio_logger=False,
    )

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        controller.attach_loop(asyncio.get_running_loop())
        logger.info("[Overlay Server] listening on %s:%s%s", options.hostname, options.port, options.directory)
        yield

    app = FastAPI(title="Twitch Overlay", docs_url=None, redoc_url=None, lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=options.cors_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST"],
    )

    def expose_static(url_prefix: str, directory: str) -> None:
        """오버레이 정적 파일(이미지, 오디오 등)을 /<name> 아래로 노출"""
        path = Path(directory)
        if not path.is_dir():
            logger.warning("정적 디렉터리 없음, 노출 생략: %s → %s", url_prefix, path)
            return
        # Starlette 는 unmount 가 없어 같은 prefix 를 다시 mount 하면 라우트가 쌓임
        if any(getattr(route, "path", None) == url_prefix for route in app.routes):
            logger.debug("정적 디렉터리 이미 노출됨: %s", url_prefix)
            return
        app.mount(url_prefix, StaticFiles(directory=str(path)), name=f"static{url_prefix.replace('/', ':')}")
        logger.info("정적 디렉터리 노출: %s → %s", url_prefix, path)

    controller = OverlayController(
        SocketIOChannel(sio),
        expose_static=expose_static,
        clear_registry_on_empty=options.clear_registry_on_empty,
    )

    # --- HTTP ---

    @app.get(options.directory, response_class=HTMLResponse)
    async def overlay_page():
        """OBS 브라우저 소스에 넣을 URL."""
        return HTMLResponse(OVERLAY_HTML)

    @app.get("/api/state")
    async def get_state():
        return JSONResponse(controller.broadcaster.snapshot())

    @app.get("/api/overlays")
    async def list_overlays():
        return JSONResponse({"overlays": [d.to_dict() for d in controller.list()]})

    @app.post("/api/overlays")
    async def add_overlays(body: Union[List[OverlayIn], OverlayIn] = Body(...)):
        items = body if isinstance(body, list) else [body]
        before = len(controller.registry)
        controller.add([item.model_dump(exclude_none=True) for item in items])
        added = len(controller.registry) - before
        logger.info("Overlay API: add %d/%d", added, len(items))
        return JSONResponse({"added": added, "skipped": len(items) - added})

    @app.post("/api/overlays/{name}/show")
    async def show_overlay(name: str, payload: Any = Body(default=None)):
        if controller.registry.get(name) is None:
            return JSONResponse({"error": f"unknown overlay: {name}"}, status_code=404)
        fired = controller.registry.trigger(name, "show", payload)
        return JSONResponse({"ok": True, "shown": fired})

    @app.post("/api/overlays/{name}/hide")
    async def hide_overlay(name: str):
        if controller.registry.get(name) is None:
            return JSONResponse({"error": f"unknown overlay: {name}"}, status_code=404)
        controller.registry.trigger(name, "hide")
        return JSONResponse({"ok": True})

    @app.post("/api/clear")
    async def clear_state():
        """표시 상태 수동 클리어."""
        controller.clear_state()
        logger.info("Overlay API: clear")
        return JSONResponse({"ok": True})

    # --- Socket.IO ---

    @sio.event
    async def connect(sid, environ, auth=None):
        controller.on_connect(sid)

    @sio.event
    async def disconnect(sid, *args):
        # 새로고침/종료 시 이 연결이 설치한 리스너 정리 (메모리 누수 방지)
        controller.on_disconnect(sid)

    @sio.on(END_OVERLAY_EVENT)
    async def end_overlay(sid, overlay_id=None, name=None, payload=None):
        controller.on_end_overlay(sid, overlay_id, name, payload)

    @sio.on(ADD_TOPIC)
    async def add_from_client(sid, definitions=None):
        controller.add(definitions, owner=sid)

    @sio.on("*")
    async def trigger_from_client(event, sid, *args):
        parsed = parse_overlay_topic(event)
        if parsed is None or parsed[1] == "end":
            logger.debug("처리하지 않는 소켓 이벤트: %s (%s)", event, sid)
            return
        controller.publish(event, args[0] if args else None)

    return OverlayApp(
        options=options,
        controller=controller,
        app=app,
        sio=sio,
        asgi=socketio.ASGIApp(sio, other_asgi_app=app),
    )


OVERLAY_HTML = """<!DOCTYPE html>
<html lang="ko">
<head>
  <meta charset="UTF-8">
  <title>Overlay</title>
  <script src="https://cdn.socket.io/4.7.5/socket.io.min.js"></script>
  <style>
    * { margin: 0; padding: 0; box-sizing: border-box; }
    body { background: transparent; width: 100vw; height: 100vh; overflow: hidden; font-family: sans-serif; }
    .layout { position: absolute; display: flex; flex-direction: column; gap: 12px; }
    #fullscreen { inset: 0; }
    #center { top: 50%; left: 50%; transform: translate(-50%, -50%); align-items: center; }
    #left { top: 20px; left: 20px; bottom: 20px; justify-content: flex-end; }
    #right { top: 20px; right: 20px; bottom: 20px; justify-content: flex-end; align-items: flex-end; }
    #fullscreen video { width: 100%; height: 100%; object-fit: cover; }
    .overlay.text { padding: 14px 18px; border-radius: 12px; background: rgba(20, 25, 35, 0.85); color: #f1f5f9; font-size: 22px; }
  </style>
</head>
<body>
  <div class="layout" id="fullscreen"></div>
  <div class="layout" id="center"></div>
  <div class="layout" id="right"></div>
  <div class="layout" id="left"></div>
  <script>
    var socket = io();

    function end(o) { socket.emit("endOverlay", o.id, o.name, o.payload); }

    function build(o) {
      var cfg = o.config || {}, p = o.payload || {}, el;
      if (o.type === "video" || o.type === "audio") {
        el = document.createElement(o.type);
        el.src = o.type === "video" ? cfg.file : "/" + o.name + "/" + (p.file || "");
        el.volume = cfg.volume == null ? 1 : cfg.volume;
        el.autoplay = true;
        el.onended = function() { end(o); };
      } else {
        el = document.createElement("div");
        if (o.type === "html") { el.innerHTML = p.html || ""; }
        else { el.textContent = (typeof p === "string" ? p : p.text) || cfg.text || ""; }
      }
      el.className = "overlay " + o.type;
      el.id = "overlay-" + o.id;
      return el;
    }

    socket.on("overlays:state", function(state) {
      Object.keys(state.overlays).forEach(function(layout) {
        var col = document.getElementById(layout), keep = {};
        state.overlays[layout].forEach(function(o) {
          keep["overlay-" + o.id] = true;
          if (!document.getElementById("overlay-" + o.id)) col.appendChild(build(o));
        });
        Array.from(col.children).forEach(function(child) {
          if (!keep[child.id]) col.removeChild(child);
        });
      });
    });
  </script>
</body>
</html>
"""
