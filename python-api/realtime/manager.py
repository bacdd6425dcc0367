"""WebSocket connection manager.

Tracks the active connections of this process and the rooms they joined.
Rooms are string keys such as ``team_<id>`` or ``project_<id>``; events are
fire-and-forget broadcasts to every connection in a room. Which accounts
are online is recorded in the presence registry, which may be shared with
other server instances.
"""

import json
import logging
import time
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Optional

from fastapi import WebSocket

from realtime.presence import InMemoryPresenceRegistry, PresenceRegistry

logger = logging.getLogger(__name__)


@dataclass
class ClientConnection:
    """Represents a single WebSocket client."""

    websocket: WebSocket
    user_id: str
    name: str
    rooms: set[str] = field(default_factory=set)
    connected_at: float = field(default_factory=time.time)
    messages_sent: int = 0


def encode_event(event: str, data: Any) -> str:
    return json.dumps({"event": event, "data": data}, default=str)


class ConnectionManager:
    """Manages all active WebSocket connections.

    Safe for asyncio via the single-threaded event loop.
    """

    def __init__(self, presence: Optional[PresenceRegistry] = None) -> None:
        self._connections: dict[str, ClientConnection] = {}  # conn_id -> client
        self._rooms: dict[str, set[str]] = defaultdict(set)  # room -> {conn_ids}
        self._user_connections: dict[str, set[str]] = defaultdict(set)  # user_id -> {conn_ids}
        self.presence: PresenceRegistry = presence or InMemoryPresenceRegistry()

    def configure_presence(self, presence: PresenceRegistry) -> None:
        self.presence = presence

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    def get_client(self, conn_id: str) -> Optional[ClientConnection]:
        return self._connections.get(conn_id)

    async def connect(self, websocket: WebSocket, conn_id: str, user_id: str, name: str) -> None:
        """Accept a new WebSocket connection."""
        await websocket.accept()
        self._connections[conn_id] = ClientConnection(
            websocket=websocket, user_id=user_id, name=name
        )
        self._user_connections[user_id].add(conn_id)
        await self.presence.add(user_id, conn_id)
        logger.info(f"Socket connected: {conn_id} (user {user_id})")

    async def disconnect(self, conn_id: str) -> None:
        """Remove a WebSocket connection and its room memberships."""
        client = self._connections.pop(conn_id, None)
        if client is None:
            return

        for room in client.rooms:
            self._rooms[room].discard(conn_id)
            if not self._rooms[room]:
                del self._rooms[room]

        self._user_connections[client.user_id].discard(conn_id)
        if not self._user_connections[client.user_id]:
            del self._user_connections[client.user_id]

        await self.presence.remove(client.user_id, conn_id)
        logger.info(f"Socket disconnected: {conn_id} (user {client.user_id})")

    def join_room(self, conn_id: str, room: str) -> bool:
        client = self._connections.get(conn_id)
        if client is None:
            return False
        client.rooms.add(room)
        self._rooms[room].add(conn_id)
        logger.debug(f"Socket {conn_id} joined room {room}")
        return True

    def leave_room(self, conn_id: str, room: str) -> bool:
        client = self._connections.get(conn_id)
        if client is None:
            return False
        client.rooms.discard(room)
        if room in self._rooms:
            self._rooms[room].discard(conn_id)
            if not self._rooms[room]:
                del self._rooms[room]
        return True

    def room_members(self, room: str) -> set[str]:
        """Account ids with at least one connection in the room."""
        return {
            self._connections[c].user_id
            for c in self._rooms.get(room, set())
            if c in self._connections
        }

    async def _send(self, conn_ids: list[str], payload: str) -> int:
        sent = 0
        failed: list[str] = []
        for conn_id in conn_ids:
            client = self._connections.get(conn_id)
            if client is None:
                failed.append(conn_id)
                continue
            try:
                await client.websocket.send_text(payload)
            except Exception as e:
                logger.warning(f"Dropping socket {conn_id} after failed send: {e}")
                failed.append(conn_id)
                continue
            client.messages_sent += 1
            sent += 1

        for conn_id in failed:
            await self.disconnect(conn_id)
        return sent

    async def broadcast_to_room(
        self, room: str, event: str, data: Any, exclude: Optional[str] = None
    ) -> int:
        """Send an event to every connection in a room. Returns the number delivered."""
        conn_ids = [c for c in self._rooms.get(room, set()) if c != exclude]
        if not conn_ids:
            return 0
        return await self._send(conn_ids, encode_event(event, data))

    async def send_to_user(self, user_id: str, event: str, data: Any) -> int:
        """Send an event to every connection of one account."""
        conn_ids = list(self._user_connections.get(user_id, set()))
        if not conn_ids:
            return 0
        return await self._send(conn_ids, encode_event(event, data))

    async def send_to_connection(self, conn_id: str, event: str, data: Any) -> int:
        return await self._send([conn_id], encode_event(event, data))

    def get_stats(self) -> dict:
        """Get connection statistics."""
        return {
            "total_connections": len(self._connections),
            "unique_users": len(self._user_connections),
            "rooms": {room: len(conns) for room, conns in self._rooms.items() if conns},
        }


# Global singleton
manager = ConnectionManager()
