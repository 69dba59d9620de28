from __future__ import annotations

import contextlib
from typing import TYPE_CHECKING

import structlog
from starlette.applications import Starlette
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse
from starlette.routing import Route, WebSocketRoute

from mafia.messaging.router import MessageRouter
from mafia.server.settings import MafiaServerSettings
from mafia.server.websocket import websocket_endpoint
from mafia.session.manager import SessionManager
from shared.logging import setup_logging

logger = structlog.get_logger()

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from starlette.requests import Request
    from starlette.websockets import WebSocket


async def health(_request: Request) -> JSONResponse:
    return JSONResponse({"status": "ok"})


async def list_rooms(request: Request) -> JSONResponse:
    """Public room listing for clients that are not on the live channel yet."""
    session_manager: SessionManager = request.app.state.session_manager
    return JSONResponse([summary.model_dump(mode="json") for summary in session_manager.list_rooms()])


def create_app(
    settings: MafiaServerSettings | None = None,
    session_manager: SessionManager | None = None,
    message_router: MessageRouter | None = None,
) -> Starlette:
    if settings is None:  # pragma: no cover
        settings = MafiaServerSettings()

    if session_manager is None:
        session_manager = SessionManager(grace_seconds=settings.room_grace_seconds)

    if message_router is None:
        message_router = MessageRouter(session_manager)

    async def ws_endpoint(websocket: WebSocket) -> None:
        await websocket_endpoint(websocket, message_router)

    routes = [
        Route("/health", health, methods=["GET"]),
        Route("/api/rooms", list_rooms, methods=["GET"]),
        WebSocketRoute("/ws", ws_endpoint),
    ]

    @contextlib.asynccontextmanager
    async def lifespan(_app: Starlette) -> AsyncGenerator[None]:
        yield
        session_manager.cancel_all_deletions()

    app = Starlette(routes=routes, lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=settings.cors_origins,
        allow_methods=["GET"],
        allow_headers=["Content-Type"],
    )
    app.state.settings = settings
    app.state.session_manager = session_manager

    logger.info("room server ready", grace_seconds=settings.room_grace_seconds)
    return app


def get_app() -> Starlette:  # pragma: no cover
    """ASGI application factory for production use (uvicorn --factory)."""
    settings = MafiaServerSettings()
    setup_logging(log_dir=settings.log_dir)
    return create_app(settings=settings)
