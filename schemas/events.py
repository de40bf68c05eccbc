from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class EventPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    room_id: str = Field(alias="roomId", min_length=1)


class JoinRoomPayload(EventPayload):
    # Offer produced by the client's peer connection; never inspected
    signal: Any


class ReturningSignalPayload(EventPayload):
    signal: Any


class JoinChatRoomPayload(EventPayload):
    username: Optional[str] = None
    role: Optional[str] = None


class ChatMessageBody(BaseModel):
    text: str


class SendMessagePayload(EventPayload):
    message: ChatMessageBody
