from pydantic import BaseModel

from backend import RoomState


class RoomDetailsResponse(BaseModel):
    room_id: str
    namespace: str
    state: RoomState
    members_count: int
    capacity: int
    is_full: bool


class HealthResponse(BaseModel):
    status: str
    connections: int
    call_rooms: int
    chat_rooms: int
