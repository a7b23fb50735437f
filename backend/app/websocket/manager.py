"""WebSocket connection manager for real-time portal updates."""

import json
import logging
from typing import Any

from fastapi import WebSocket

logger = logging.getLogger(__name__)

REPORTS_CHANNEL = "reports"
IDEAS_CHANNEL = "ideas"
CHANNELS = (REPORTS_CHANNEL, IDEAS_CHANNEL)


class ConnectionManager:
    """Manages WebSocket connections grouped by channel."""

    def __init__(self):
        """Initialize connection manager."""
        # Maps channel -> list of WebSocket connections
        self.active_connections: dict[str, list[WebSocket]] = {}

    async def connect(self, websocket: WebSocket, channel: str) -> None:
        """Accept a new WebSocket connection and add it to a channel."""
        await websocket.accept()
        self.active_connections.setdefault(channel, []).append(websocket)

    def disconnect(self, websocket: WebSocket, channel: str) -> None:
        """Remove a WebSocket connection from a channel."""
        connections = self.active_connections.get(channel)
        if not connections or websocket not in connections:
            return

        connections.remove(websocket)

        # Clean up empty channels
        if not connections:
            del self.active_connections[channel]

    async def broadcast(self, channel: str, message: dict[str, Any]) -> None:
        """Broadcast a message to all connections in a channel."""
        disconnected = []
        for connection in list(self.active_connections.get(channel, [])):
            try:
                await connection.send_text(json.dumps(message, ensure_ascii=False))
            except Exception as e:
                # Mark for removal if connection is broken
                logger.debug(f"[WS] Dropping broken connection on {channel}: {e}")
                disconnected.append(connection)

        # Clean up broken connections
        for connection in disconnected:
            self.disconnect(connection, channel)

    async def send_report_updated(self, report_id: str, teaser: str | None) -> None:
        """Broadcast a resolved report teaser."""
        await self.broadcast(REPORTS_CHANNEL, {
            "type": "report_updated",
            "data": {"id": report_id, "teaser": teaser},
        })

    async def send_reports_changed(self) -> None:
        """Broadcast that the live report list changed (full refresh needed)."""
        await self.broadcast(REPORTS_CHANNEL, {"type": "reports_changed", "data": {}})

    async def send_idea_updated(self, idea_id: str, idea_name: str) -> None:
        """Broadcast a resolved idea title."""
        await self.broadcast(IDEAS_CHANNEL, {
            "type": "idea_updated",
            "data": {"id": idea_id, "idea_name": idea_name},
        })


# Global connection manager instance
manager = ConnectionManager()
