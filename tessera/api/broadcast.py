"""
Leaderboard Broadcast - Fan-out of live updates over WebSockets.

Messages from server:
- user-online-count: number of connected clients changed
- leaderboard-update: a score was recorded
- pong: reply to ping

Messages from client:
- ping: keep-alive
- user-login: {"type": "user-login", "nama": ...} announces a player
"""

from __future__ import annotations
from typing import Any
import logging

from ..ledger.scores import GameScore

logger = logging.getLogger(__name__)


def online_count_message(count: int) -> dict[str, Any]:
    return {"type": "user-online-count", "onlineCount": count}


def leaderboard_update_message(player_name: str, score: GameScore) -> dict[str, Any]:
    """The data contract for a newly recorded score."""
    return {
        "type": "leaderboard-update",
        "nama_pemain": player_name,
        "skor": score.score,
        "waktu_detik": score.elapsed_seconds,
        "tingkat_kesulitan": score.difficulty,
        "ukuran_grid": score.grid_size,
        "message": f"{player_name} selesai {score.difficulty} dengan skor {score.score}!",
    }


class LeaderboardHub:
    """
    Connected WebSocket clients.

    Usage:
        hub = LeaderboardHub()
        await hub.connect(websocket)
        await hub.broadcast(leaderboard_update_message(name, score))
        await hub.disconnect(websocket)
    """

    def __init__(self):
        self._connections: list[Any] = []

    @property
    def count(self) -> int:
        return len(self._connections)

    async def connect(self, websocket):
        await websocket.accept()
        self._connections.append(websocket)
        logger.info("Client connected (%d online)", self.count)
        await self.broadcast(online_count_message(self.count))

    async def disconnect(self, websocket):
        if websocket in self._connections:
            self._connections.remove(websocket)
        logger.info("Client disconnected (%d online)", self.count)
        await self.broadcast(online_count_message(self.count))

    async def broadcast(self, message: dict[str, Any]):
        """Send to every client, dropping connections that fail."""
        dead_connections = []
        for websocket in list(self._connections):
            try:
                await websocket.send_json(message)
            except Exception:
                dead_connections.append(websocket)
        for websocket in dead_connections:
            if websocket in self._connections:
                self._connections.remove(websocket)
        if dead_connections:
            logger.debug("Dropped %d dead connections", len(dead_connections))
