from fastapi import FastAPI, WebSocket
from fastapi.middleware.cors import CORSMiddleware

from backend import RoomTable
from call_rooms import CallRoomManager
from chat_rooms import ChatRoomManager
from constants import ALLOWED_ORIGINS, CALL_NAMESPACE, CHAT_NAMESPACE, LOG_FILE, LOG_LEVEL
from lifecycle import ConnectionLifecycle
from logging_config import get_logger, setup_logging
from registry import ConnectionRegistry
from routers.rooms import rooms_router
from schemas.rooms import HealthResponse

# Setup logging
setup_logging(log_level=LOG_LEVEL, log_file=LOG_FILE)
logger = get_logger(__name__)


def origin_allowed(origin: str) -> bool:
    # Non-browser clients send no Origin header
    if not origin:
        return True
    return "*" in ALLOWED_ORIGINS or origin in ALLOWED_ORIGINS


def create_app() -> FastAPI:
    """Build the relay with its own registry and room tables.

    Each call returns an independent relay, so tests get fresh state.
    """
    app = FastAPI(title="Call & chat signaling relay")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    registry = ConnectionRegistry()
    call_rooms = CallRoomManager(RoomTable(CALL_NAMESPACE), registry)
    chat_rooms = ChatRoomManager(RoomTable(CHAT_NAMESPACE), registry)
    lifecycle = ConnectionLifecycle(registry, call_rooms, chat_rooms)

    app.state.registry = registry
    app.state.call_rooms = call_rooms
    app.state.chat_rooms = chat_rooms
    app.state.lifecycle = lifecycle

    app.include_router(rooms_router)

    @app.get("/health", response_model=HealthResponse)
    async def health():
        return HealthResponse(
            status="ok",
            connections=len(registry),
            call_rooms=len(call_rooms.rooms),
            chat_rooms=len(chat_rooms.rooms),
        )

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket):
        """One relay connection; every frame is ``{"event": ..., "data": {...}}``."""
        origin = websocket.headers.get("origin", "")
        if not origin_allowed(origin):
            logger.warning(f"WebSocket connection rejected: origin {origin} not allowed")
            await websocket.close(code=1008, reason="Origin not allowed")
            return

        await websocket.accept()
        connection_id = lifecycle.connect(websocket)

        try:
            message_count = 0
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    logger.info(f"WebSocket disconnected normally for connection {connection_id}")
                    break
                message_count += 1
                logger.debug(f"Received frame #{message_count} from connection {connection_id}")
                # Binary frames carry "bytes" instead of "text" and are rejected by the decoder
                data = message.get("text")
                if data is None:
                    data = message.get("bytes")
                await lifecycle.handle_frame(connection_id, data)
        except Exception as e:
            logger.error(f"WebSocket error for connection {connection_id}: {e}", exc_info=True)
        finally:
            await lifecycle.disconnect(connection_id)
            try:
                await websocket.close()
            except Exception as e:
                logger.debug(f"Error closing WebSocket for connection {connection_id}: {e}")

    logger.info(f"Relay application initialized (allowed origins: {ALLOWED_ORIGINS})")
    return app


app = create_app()
