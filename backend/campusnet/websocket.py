"""WebSocket manager for real-time notification delivery."""

from __future__ import annotations

import asyncio
import json
from typing import Any

from fastapi import WebSocket


class ConnectionManager:
    """Manages per-user WebSocket connections."""

    def __init__(self):
        self.active_connections: dict[str, list[WebSocket]] = {}
        self._lock = asyncio.Lock()

    async def connect(self, user_id: str, websocket: WebSocket) -> None:
        """Accept a new WebSocket connection for a user."""
        await websocket.accept()
        async with self._lock:
            self.active_connections.setdefault(user_id, []).append(websocket)

    async def disconnect(self, user_id: str, websocket: WebSocket) -> None:
        """Remove a WebSocket connection."""
        async with self._lock:
            connections = self.active_connections.get(user_id, [])
            if websocket in connections:
                connections.remove(websocket)
            if not connections:
                self.active_connections.pop(user_id, None)

    async def send_personal(self, message: dict[str, Any], websocket: WebSocket) -> None:
        """Send a message to a specific socket."""
        await websocket.send_json(message)

    async def send_to_user(self, user_id: str, message: dict[str, Any]) -> int:
        """Send a message to every socket a user has open. Returns deliveries."""
        connections = list(self.active_connections.get(user_id, []))
        if not connections:
            return 0

        delivered = 0
        disconnected = []
        for connection in connections:
            try:
                await connection.send_json(message)
                delivered += 1
            except Exception:
                disconnected.append(connection)

        # Clean up disconnected clients
        for conn in disconnected:
            await self.disconnect(user_id, conn)
        return delivered

    @property
    def connection_count(self) -> int:
        """Return the number of active connections."""
        return sum(len(c) for c in self.active_connections.values())


# Singleton instance
ws_manager = ConnectionManager()


async def websocket_endpoint(websocket: WebSocket, user_id: str) -> None:
    """WebSocket endpoint handler. Clients identify with ?user_id=..."""
    await ws_manager.connect(user_id, websocket)

    await ws_manager.send_personal({"type": "connected", "user_id": user_id}, websocket)

    try:
        async for data in websocket.iter_text():
            try:
                message = json.loads(data)
            except json.JSONDecodeError:
                continue
            # Keepalive only; notifications flow server -> client
            if isinstance(message, dict) and message.get("type") == "ping":
                await ws_manager.send_personal({"type": "pong"}, websocket)
    finally:
        await ws_manager.disconnect(user_id, websocket)
