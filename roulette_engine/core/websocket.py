"""
WebSocket fan-out for the table.
Pushes phase changes, spin frames and round results to every watcher.
"""

import asyncio
from typing import Set

import orjson
from fastapi import WebSocket

from roulette_engine.core.controller import Presenter, RoundResult
from roulette_engine.core.ledger import GamePhase, Session
from roulette_engine.core.logger import get_logger
from roulette_engine.core.wheel import WheelPose

logger = get_logger("websocket")


def normalize_ws_close_code(code: int) -> str:
    """Human-readable name for the common WebSocket close codes."""
    return {
        1000: "normal_closure",
        1001: "going_away",
        1006: "abnormal_closure",
        1008: "policy_violation",
        1009: "message_too_big",
        1011: "internal_error",
    }.get(code, "unknown")


class ConnectionManager:
    """Tracks connected watchers and broadcasts table events to them."""

    def __init__(self):
        self.connections: Set[WebSocket] = set()

    async def _send_json(self, websocket: WebSocket, data: dict):
        # orjson.dumps returns bytes, so send_bytes avoids a decode round trip
        await websocket.send_bytes(orjson.dumps(data))

    async def connect(self, websocket: WebSocket):
        """Accept a new WebSocket connection."""
        await websocket.accept()
        self.connections.add(websocket)
        logger.info(f"WebSocket connected: total={len(self.connections)}")

    def disconnect(self, websocket: WebSocket):
        self.connections.discard(websocket)
        logger.info(f"WebSocket disconnected: total={len(self.connections)}")

    async def send_personal(self, websocket: WebSocket, message: dict):
        try:
            await self._send_json(websocket, message)
        except Exception as e:
            logger.warning(f"Failed to send to watcher: {e}")
            self.connections.discard(websocket)

    async def broadcast(self, message: dict):
        """Send to every watcher; drops the ones whose send fails."""
        if not self.connections:
            return

        targets = list(self.connections)
        results = await asyncio.gather(
            *(self._send_json(ws, message) for ws in targets), return_exceptions=True
        )

        disconnected = [ws for ws, result in zip(targets, results) if isinstance(result, Exception)]
        if disconnected:
            logger.info(f"Found {len(disconnected)} disconnected clients during broadcast.")
            for ws in disconnected:
                self.connections.discard(ws)

    def get_connection_count(self) -> int:
        return len(self.connections)


class WebSocketPresenter(Presenter):
    """Presenter that streams the table to WebSocket watchers."""

    def __init__(self, manager: ConnectionManager):
        self.manager = manager

    async def on_phase_change(self, phase: GamePhase, session: Session):
        await self.manager.broadcast(
            {"type": "phase", "phase": phase.value, "balance": session.balance}
        )

    async def on_frame(self, pose: WheelPose):
        await self.manager.broadcast({"type": "frame", **pose.to_dict()})

    async def on_result(self, result: RoundResult):
        await self.manager.broadcast({"type": "result", **result.to_dict()})
        if result.big_win:
            logger.info(f"Big win: {result.win_amount} on {result.outcome}")

    async def on_bankrupt(self, session: Session):
        await self.manager.broadcast({"type": "bankrupt", "balance": session.balance})


# Global WebSocket manager instance
ws_manager = ConnectionManager()
