from __future__ import annotations

import contextlib
from typing import TYPE_CHECKING

import structlog
from starlette.applications import Starlette
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse
from starlette.routing import Route, WebSocketRoute

from auction.logic.pool import load_player_pool
from auction.messaging.router import MessageRouter
from auction.server.settings import AuctionServerSettings
from auction.server.websocket import websocket_endpoint
from auction.session.manager import SessionManager
from shared.logging import setup_logging

logger = structlog.get_logger()

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from starlette.requests import Request
    from starlette.websockets import WebSocket

    from auction.logic.pool import PlayerPool


async def health(_request: Request) -> JSONResponse:
    return JSONResponse({"status": "ok"})


async def status(request: Request) -> JSONResponse:
    session_manager: SessionManager = request.app.state.session_manager
    settings: AuctionServerSettings = request.app.state.settings
    return JSONResponse(
        {
            "status": "ok",
            "rooms": session_manager.room_count,
            "running_rooms": session_manager.running_room_count,
            "max_rooms": settings.max_rooms,
        },
    )


async def list_rooms(request: Request) -> JSONResponse:
    session_manager: SessionManager = request.app.state.session_manager
    return JSONResponse(
        {"rooms": [info.model_dump(mode="json") for info in session_manager.get_rooms_info()]},
    )


def create_app(
    settings: AuctionServerSettings | None = None,
    session_manager: SessionManager | None = None,
    message_router: MessageRouter | None = None,
    pool: PlayerPool | None = None,
) -> Starlette:
    if settings is None:  # pragma: no cover
        settings = AuctionServerSettings()

    if session_manager is None:
        if pool is None:
            pool = load_player_pool(settings.player_pool_path)
        session_manager = SessionManager(pool, max_rooms=settings.max_rooms)

    if message_router is None:
        message_router = MessageRouter(session_manager)

    async def ws_endpoint(websocket: WebSocket) -> None:
        await websocket_endpoint(websocket, message_router)

    routes = [
        Route("/health", health, methods=["GET"]),
        Route("/status", status, methods=["GET"]),
        Route("/rooms", list_rooms, methods=["GET"]),
        WebSocketRoute("/ws", ws_endpoint),
    ]

    @contextlib.asynccontextmanager
    async def lifespan(_app: Starlette) -> AsyncGenerator[None]:
        yield
        await session_manager.shutdown()

    app = Starlette(routes=routes, lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=settings.cors_origins,
        allow_methods=["GET"],
        allow_headers=["Content-Type"],
    )
    app.state.settings = settings
    app.state.session_manager = session_manager

    logger.info("auction server ready", max_rooms=settings.max_rooms)
    return app


def get_app() -> Starlette:  # pragma: no cover
    """ASGI application factory for production use (uvicorn --factory)."""
    _settings = AuctionServerSettings()
    setup_logging(log_dir=_settings.log_dir)
    return create_app(settings=_settings)
