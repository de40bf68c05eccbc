from typing import Any

from pydantic import ValidationError

from call_rooms import CallRoomManager
from chat_rooms import ChatRoomManager
from events import EventType, FrameError, decode_frame
from logging_config import get_logger
from registry import ConnectionRegistry
from schemas.events import JoinChatRoomPayload, JoinRoomPayload, ReturningSignalPayload, SendMessagePayload

logger = get_logger(__name__)


class ConnectionLifecycle:
    """Registers connections, routes their events to the room managers and
    sweeps both managers when a connection goes away."""

    def __init__(self, registry: ConnectionRegistry, call_rooms: CallRoomManager, chat_rooms: ChatRoomManager):
        self.registry = registry
        self.call_rooms = call_rooms
        self.chat_rooms = chat_rooms

    def connect(self, websocket: Any) -> str:
        return self.registry.register(websocket)

    async def handle_frame(self, connection_id: str, raw: Any) -> None:
        """Decode and dispatch one inbound frame. Bad frames only cost the frame itself."""
        try:
            event, data = decode_frame(raw)
        except FrameError as e:
            logger.warning(f"Dropping frame from connection {connection_id}: {e}")
            return

        try:
            await self.dispatch(connection_id, event, data)
        except ValidationError as e:
            logger.warning(
                f"Dropping malformed {event.value} from connection {connection_id}: "
                f"{e.error_count()} validation error(s)"
            )

    async def dispatch(self, connection_id: str, event: EventType, data: dict) -> None:
        logger.debug(f"Dispatching {event.value} from connection {connection_id}")
        if event is EventType.JOIN_ROOM:
            payload = JoinRoomPayload.model_validate(data)
            await self.call_rooms.join(payload.room_id, connection_id, payload.signal)
        elif event is EventType.RETURNING_SIGNAL:
            payload = ReturningSignalPayload.model_validate(data)
            await self.call_rooms.relay_signal(payload.room_id, connection_id, payload.signal)
        elif event is EventType.JOIN_CHAT_ROOM:
            payload = JoinChatRoomPayload.model_validate(data)
            await self.chat_rooms.join(payload.room_id, connection_id, payload.username, payload.role)
        elif event is EventType.SEND_MESSAGE:
            payload = SendMessagePayload.model_validate(data)
            await self.chat_rooms.send_message(payload.room_id, connection_id, payload.message.text)
        else:
            logger.warning(f"No handler for {event.value} from connection {connection_id}")

    async def disconnect(self, connection_id: str) -> None:
        if connection_id not in self.registry:
            logger.debug(f"Duplicate disconnect for connection {connection_id} ignored")
            return

        occupied = self.registry.lookup(connection_id).rooms
        await self.call_rooms.leave(connection_id)
        await self.chat_rooms.leave(connection_id)
        self.registry.unregister(connection_id)
        logger.info(f"Connection {connection_id} cleaned up (rooms left: {occupied or 'none'})")
