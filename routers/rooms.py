from fastapi import APIRouter, HTTPException, Request

from logging_config import get_logger
from room_manager import RoomManager
from schemas.rooms import RoomDetailsResponse

logger = get_logger(__name__)

rooms_router = APIRouter(prefix="/rooms", tags=["rooms"])


def room_details(manager: RoomManager, room_id: str) -> RoomDetailsResponse:
    snapshot = manager.describe(room_id)
    if snapshot is None:
        logger.info(f"Room details failed: {manager.namespace} room {room_id} not found")
        raise HTTPException(status_code=404, detail="Room not found")

    logger.info(f"Room details retrieved for {manager.namespace} room {room_id}: {len(snapshot.members)}/{snapshot.capacity} members")
    return RoomDetailsResponse(
        room_id=snapshot.room_id,
        namespace=snapshot.namespace,
        state=snapshot.state,
        members_count=len(snapshot.members),
        capacity=snapshot.capacity,
        is_full=snapshot.is_full,
    )


@rooms_router.get("/call/{room_id}", response_model=RoomDetailsResponse)
async def get_call_room_details(room_id: str, request: Request):
    """Occupancy of a call room. Member ids are not exposed."""
    return room_details(request.app.state.call_rooms, room_id)


@rooms_router.get("/chat/{room_id}", response_model=RoomDetailsResponse)
async def get_chat_room_details(room_id: str, request: Request):
    return room_details(request.app.state.chat_rooms, room_id)
