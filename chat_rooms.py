from datetime import datetime
from typing import Optional

from backend import JoinOutcome
from events import RECEIVE_MESSAGE, ROOM_FULL, USER_JOINED
from logging_config import get_logger
from room_manager import RoomManager

logger = get_logger(__name__)


class ChatRoomManager(RoomManager):
    room_attr = "chat_room"

    async def join(
        self,
        room_id: str,
        connection_id: str,
        display_name: Optional[str] = None,
        role: Optional[str] = None,
    ) -> Optional[JoinOutcome]:
        connection = self.registry.lookup(connection_id)
        if connection is None:
            logger.debug(f"Ignoring chat join to {room_id} from unknown connection {connection_id}")
            return None

        result = await self.rooms.add_member(room_id, connection_id)

        if result.outcome is JoinOutcome.FULL:
            logger.info(f"Chat room {room_id} is full, rejecting {display_name} ({connection_id})")
            await self.registry.send(connection_id, ROOM_FULL)
            return result.outcome

        if display_name is not None:
            connection.display_name = display_name
        if role is not None:
            connection.role = role
        self._set_room(connection, room_id)
        if result.released_room is not None:
            logger.info(f"Connection {connection_id} left chat room {result.released_room} for {room_id}")

        if result.outcome is JoinOutcome.JOINED:
            logger.info(f"{connection.sender_name} ({role}) joined chat room {room_id}")
            for peer_id in result.peers:
                await self.registry.send(
                    peer_id,
                    USER_JOINED,
                    {"username": connection.sender_name, "role": connection.role},
                )
        elif result.outcome is JoinOutcome.CREATED:
            logger.info(f"{connection.sender_name} ({role}) waiting in chat room {room_id}")
        return result.outcome

    async def send_message(self, room_id: str, connection_id: str, text: str) -> Optional[dict]:
        """Stamp a chat message with its sender and time and hand it to the other occupant.

        Returns the delivered message, or None when it was dropped. The sender
        never gets its own message back.
        """
        peers = self.rooms.others(room_id, connection_id)
        if peers is None:
            logger.warning(f"Dropping message from {connection_id}: not a member of chat room {room_id}")
            return None
        if not peers:
            logger.debug(f"Dropping message from {connection_id}: nobody else in chat room {room_id}")
            return None

        connection = self.registry.lookup(connection_id)
        if connection is None:
            return None

        message = {
            "sender": connection.sender_name,
            "text": text,
            "timestamp": datetime.now().isoformat(),
        }
        delivered = False
        for peer_id in peers:
            if await self.registry.send(peer_id, RECEIVE_MESSAGE, message):
                delivered = True
        return message if delivered else None
