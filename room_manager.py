from typing import Optional

from backend import RoomSnapshot, RoomTable
from logging_config import get_logger
from registry import Connection, ConnectionRegistry

logger = get_logger(__name__)


class RoomManager:
    """Shared leave/describe behaviour of the call and chat room managers.

    Subclasses record the occupied room on the matching ``Connection``
    attribute named by ``room_attr``.
    """

    room_attr = ""

    def __init__(self, rooms: RoomTable, registry: ConnectionRegistry):
        self.rooms = rooms
        self.registry = registry

    @property
    def namespace(self) -> str:
        return self.rooms.namespace

    def _set_room(self, connection: Optional[Connection], room_id: Optional[str]) -> None:
        if connection is not None:
            setattr(connection, self.room_attr, room_id)

    async def leave(self, connection_id: str) -> Optional[str]:
        room_id = await self.rooms.remove_member(connection_id)
        if room_id is None:
            return None
        connection = self.registry.lookup(connection_id)
        if connection is not None and getattr(connection, self.room_attr) == room_id:
            self._set_room(connection, None)
        logger.info(f"Connection {connection_id} left {self.namespace} room {room_id}")
        return room_id

    def describe(self, room_id: str) -> Optional[RoomSnapshot]:
        return self.rooms.snapshot(room_id)
