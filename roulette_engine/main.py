"""
Roulette table application entry point.
FastAPI app exposing the table over HTTP with a WebSocket feed for the wheel.
"""

import time
from collections import deque
from contextlib import asynccontextmanager

import orjson as json
import uvicorn
from fastapi import FastAPI, Request, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from roulette_engine.config import AppConfig, settings
from roulette_engine.core.controller import TableController
from roulette_engine.core.logger import get_logger, init_logging
from roulette_engine.core.storage import TableStore
from roulette_engine.core.websocket import (
    WebSocketPresenter,
    normalize_ws_close_code,
    ws_manager,
)
from roulette_engine.routers import api

# Initialize logging first
init_logging(
    level=settings.logging.level,
    log_to_file=settings.logging.log_to_file,
    formatter=settings.logging.formatter,
    log_file_path=settings.paths.get_log_path(),
)
logger = get_logger("main")
ws_logger = get_logger("websocket")

# WebSocket Rate Limiting
WS_MAX_MESSAGES = 10  # Max messages per connection
WS_RATE_LIMIT_SECONDS = 2  # In this time window


# ==================== Application Setup ====================


def build_table(config: AppConfig) -> TableController:
    store = None
    if config.storage.enabled:
        store = TableStore(
            config.paths.get_db_path(), default_balance=config.table.starting_balance
        )
    return TableController(WebSocketPresenter(ws_manager), settings=config, store=store)


def create_app(config: AppConfig = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    config = config or settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        table = app.state.table
        table.scheduler.cancel()
        if table.store is not None:
            table.store.close()
        logger.info("Table closed")

    app = FastAPI(
        title=config.server.name,
        docs_url="/docs" if config.server.debug else None,
        redoc_url=None,
        lifespan=lifespan,
    )

    app.state.config = config
    app.state.table = build_table(config)
    app.state.limiter = api.limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_exception_handler(Exception, global_exception_handler)

    app.include_router(api.router, prefix="/api")
    app.add_api_websocket_route("/ws", websocket_endpoint)

    logger.info(f"Application '{config.server.name}' initialized")
    logger.info(f"Debug mode: {config.server.debug}")
    return app


# ==================== WebSocket Endpoint ====================


async def websocket_endpoint(websocket: WebSocket):
    """
    Read-only table feed. Clients receive phase, frame, result and bankrupt
    messages; the only thing they can send is a ping.
    """
    client_ip = websocket.client.host if websocket.client else "unknown"
    await ws_manager.connect(websocket)

    table = websocket.app.state.table
    await ws_manager.send_personal(websocket, {"type": "table", **table.snapshot()})

    timestamps = deque()
    try:
        while True:
            data = await websocket.receive_text()

            current_time = time.time()
            while timestamps and timestamps[0] < current_time - WS_RATE_LIMIT_SECONDS:
                timestamps.popleft()
            if len(timestamps) >= WS_MAX_MESSAGES:
                ws_logger.warning("WebSocket rate limit exceeded", extra={"client_ip": client_ip})
                continue
            timestamps.append(current_time)

            try:
                message = json.loads(data)
            except json.JSONDecodeError:
                continue

            if isinstance(message, dict) and message.get("type") == "ping":
                await ws_manager.send_personal(websocket, {"type": "pong"})

    except WebSocketDisconnect as e:
        ws_manager.disconnect(websocket)
        ws_logger.info(
            "WebSocket disconnected",
            extra={
                "client_ip": client_ip,
                "ws_disconnect_code": e.code,
                "ws_disconnect_reason": normalize_ws_close_code(e.code),
            },
        )


# ==================== Global Exception Handler ====================


async def global_exception_handler(request: Request, exc: Exception):
    """Handle unhandled exceptions gracefully."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "detail": str(exc) if request.app.state.config.server.debug else None,
        },
    )


# ==================== Main Entry Point ====================

if __name__ == "__main__":
    logger.info(f"Starting server on {settings.server.host}:{settings.server.port}")
    uvicorn.run(
        "roulette_engine.main:create_app",
        factory=True,
        host=settings.server.host,
        port=settings.server.port,
        reload=settings.server.debug,
    )
