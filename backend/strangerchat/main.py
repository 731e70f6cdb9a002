"""
Strangerchat API и WebSocket.
"""
import logging

from fastapi import FastAPI, Request, WebSocket
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.staticfiles import StaticFiles

from .config import get_config
from .pairing import Matchmaker
from .ws_handlers import ws_loop
from .ws_manager import WSManager

logger = logging.getLogger(__name__)


def setup_logging(config) -> None:
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if config.log_file:
        handlers.append(logging.FileHandler(config.log_file))
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=handlers,
    )


def create_app(config=None) -> FastAPI:
    """Приложение со своим состоянием пейринга (для тестов — новое на каждый вызов)."""
    config = config or get_config()
    app = FastAPI(title="Strangerchat API")
    app.state.ws_manager = WSManager()
    app.state.matchmaker = Matchmaker(app.state.ws_manager)

    app.add_middleware(GZipMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    def health():
        return {"status": "ok"}

    @app.get("/stats")
    def stats(request: Request):
        return request.app.state.matchmaker.snapshot()

    @app.websocket("/ws")
    async def websocket_endpoint(ws: WebSocket):
        logger.info("WS: connection attempt from %s", ws.client)
        await ws_loop(ws, ws.app.state.matchmaker, ws.app.state.ws_manager)

    # Статика фронтенда
    if config.static_dir.is_dir():
        app.mount("/", StaticFiles(directory=str(config.static_dir), html=True), name="frontend")

    return app


setup_logging(get_config())
app = create_app()
