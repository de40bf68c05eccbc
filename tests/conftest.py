import pytest

from backend import RoomTable
from call_rooms import CallRoomManager
from chat_rooms import ChatRoomManager
from fakes import FakeWebSocket
from lifecycle import ConnectionLifecycle
from registry import ConnectionRegistry


@pytest.fixture
def registry() -> ConnectionRegistry:
    return ConnectionRegistry()


@pytest.fixture
def call_rooms(registry: ConnectionRegistry) -> CallRoomManager:
    return CallRoomManager(RoomTable("call"), registry)


@pytest.fixture
def chat_rooms(registry: ConnectionRegistry) -> ChatRoomManager:
    return ChatRoomManager(RoomTable("chat"), registry)


@pytest.fixture
def lifecycle(registry, call_rooms, chat_rooms) -> ConnectionLifecycle:
    return ConnectionLifecycle(registry, call_rooms, chat_rooms)


@pytest.fixture
def connect(registry):
    """Register a fake client and return ``(connection_id, websocket)``."""

    def _connect():
        websocket = FakeWebSocket()
        return registry.register(websocket), websocket

    return _connect
