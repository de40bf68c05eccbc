import json
from enum import Enum
from typing import Any, Optional, Tuple


class EventType(str, Enum):
    """Events a client may send to the relay."""

    JOIN_ROOM = "join-room"
    RETURNING_SIGNAL = "returning-signal"
    JOIN_CHAT_ROOM = "join-chat-room"
    SEND_MESSAGE = "send-message"


# Events the relay sends to clients
USER_JOINED = "user-joined"
RECEIVING_RETURNED_SIGNAL = "receiving-returned-signal"
ROOM_FULL = "room-full"
RECEIVE_MESSAGE = "receive-message"


class FrameError(ValueError):
    """Raised when an inbound frame cannot be decoded into a known event."""


# **Frame format**
# Every WebSocket text frame, in both directions, is a JSON object:
# - `event` = one of the event names above
# - `data` = object with the event's payload fields (empty for `room-full`)


def encode_frame(event: str, data: Optional[dict] = None) -> str:
    return json.dumps({"event": event, "data": data if data is not None else {}})


def decode_frame(raw: Any) -> Tuple[EventType, dict]:
    if not isinstance(raw, str):
        raise FrameError("Only JSON text frames are accepted")
    try:
        frame = json.loads(raw)
    except (ValueError, RecursionError) as e:
        raise FrameError(f"Frame is not valid JSON: {type(e).__name__}") from e

    if not isinstance(frame, dict):
        raise FrameError("Frame must be a JSON object")

    name = frame.get("event")
    try:
        event = EventType(name)
    except ValueError:
        raise FrameError(f"Unknown event: {name!r}") from None

    data: Any = frame.get("data")
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise FrameError(f"Payload of {event.value} must be a JSON object")
    return event, data
