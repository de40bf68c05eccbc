import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from constants import CALL_NAMESPACE, CHAT_NAMESPACE
from events import encode_frame
from logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class Connection:
    connection_id: str
    # Outbound channel; anything with an async ``send_text(str)``
    websocket: Any
    connected_at: str
    display_name: Optional[str] = None
    role: Optional[str] = None
    call_room: Optional[str] = None
    chat_room: Optional[str] = None

    @property
    def rooms(self) -> Dict[str, str]:
        """Rooms currently occupied, keyed by namespace."""
        occupied = {}
        if self.call_room is not None:
            occupied[CALL_NAMESPACE] = self.call_room
        if self.chat_room is not None:
            occupied[CHAT_NAMESPACE] = self.chat_room
        return occupied

    @property
    def sender_name(self) -> str:
        return self.display_name or f"User_{self.connection_id[:8]}"


class ConnectionRegistry:
    """Every live client connection, keyed by a server-assigned id."""

    def __init__(self):
        self._connections: Dict[str, Connection] = {}

    def register(self, websocket: Any) -> str:
        connection_id = str(uuid.uuid4())
        self._connections[connection_id] = Connection(
            connection_id=connection_id,
            websocket=websocket,
            connected_at=datetime.now().isoformat(),
        )
        logger.info(f"Connection {connection_id} established ({len(self._connections)} live)")
        return connection_id

    def unregister(self, connection_id: str) -> Optional[Connection]:
        connection = self._connections.pop(connection_id, None)
        if connection is None:
            logger.debug(f"Unregister ignored for unknown connection {connection_id}")
        else:
            logger.info(
                f"Connection {connection_id} closed, connected since {connection.connected_at} "
                f"({len(self._connections)} live)"
            )
        return connection

    def lookup(self, connection_id: str) -> Optional[Connection]:
        return self._connections.get(connection_id)

    async def send(self, connection_id: str, event: str, data: Optional[dict] = None) -> bool:
        """Best-effort delivery of one event; returns False when it was dropped."""
        connection = self._connections.get(connection_id)
        if connection is None:
            logger.debug(f"Dropping {event} for unknown connection {connection_id}")
            return False
        try:
            await connection.websocket.send_text(encode_frame(event, data))
        except Exception as e:
            # Peer is most likely mid-disconnect; its own loop does the cleanup
            logger.warning(f"Dropping {event} for connection {connection_id}: {e}")
            return False
        logger.debug(f"Sent {event} to connection {connection_id}")
        return True

    def __contains__(self, connection_id: str) -> bool:
        return connection_id in self._connections

    def __len__(self) -> int:
        return len(self._connections)
