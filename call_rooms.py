from typing import Any, Optional

from backend import JoinOutcome
from events import RECEIVING_RETURNED_SIGNAL, ROOM_FULL, USER_JOINED
from logging_config import get_logger
from room_manager import RoomManager

logger = get_logger(__name__)


class CallRoomManager(RoomManager):
    """Brokers the single offer/answer exchange between the two callers of a room.

    The member that was already waiting receives ``user-joined`` with the
    joiner's offer and answers through ``relay_signal``; the joiner is always
    the initiating side of the negotiation.
    """

    room_attr = "call_room"

    async def join(self, room_id: str, connection_id: str, signal: Any) -> Optional[JoinOutcome]:
        connection = self.registry.lookup(connection_id)
        if connection is None:
            logger.debug(f"Ignoring call join to {room_id} from unknown connection {connection_id}")
            return None

        result = await self.rooms.add_member(room_id, connection_id)

        if result.outcome is JoinOutcome.FULL:
            logger.info(f"Call room {room_id} is full, rejecting connection {connection_id}")
            await self.registry.send(connection_id, ROOM_FULL)
            return result.outcome

        self._set_room(connection, room_id)
        if result.released_room is not None:
            logger.info(f"Connection {connection_id} left call room {result.released_room} for {room_id}")

        if result.outcome is JoinOutcome.CREATED:
            logger.info(f"Connection {connection_id} waiting in call room {room_id}")
        elif result.outcome is JoinOutcome.JOINED:
            logger.info(f"Connection {connection_id} joined call room {room_id}, notifying peer")
            for peer_id in result.peers:
                await self.registry.send(peer_id, USER_JOINED, {"signal": signal})
        return result.outcome

    async def relay_signal(self, room_id: str, connection_id: str, signal: Any) -> bool:
        peers = self.rooms.others(room_id, connection_id)
        if peers is None:
            logger.debug(f"Dropping signal from {connection_id}: not a member of call room {room_id}")
            return False
        if not peers:
            logger.debug(f"Dropping signal from {connection_id}: no peer in call room {room_id}")
            return False

        delivered = False
        for peer_id in peers:
            if await self.registry.send(peer_id, RECEIVING_RETURNED_SIGNAL, {"signal": signal}):
                delivered = True
        return delivered
