import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from constants import MAX_ROOM_MEMBERS
from logging_config import get_logger

logger = get_logger(__name__)


class RoomState(str, Enum):
    WAITING = "waiting"
    FULL = "full"


class JoinOutcome(str, Enum):
    CREATED = "created"  # Absent -> Waiting
    JOINED = "joined"  # Waiting -> Full
    ALREADY_MEMBER = "already_member"
    FULL = "full"


@dataclass
class JoinResult:
    outcome: JoinOutcome
    # Members other than the joiner at the moment of the join
    peers: List[str] = field(default_factory=list)
    # Room the joiner was moved out of, if it switched rooms
    released_room: Optional[str] = None

    @property
    def admitted(self) -> bool:
        return self.outcome in (JoinOutcome.CREATED, JoinOutcome.JOINED)


@dataclass
class RoomSnapshot:
    room_id: str
    namespace: str
    members: List[str]
    capacity: int

    @property
    def state(self) -> RoomState:
        return RoomState.FULL if len(self.members) >= self.capacity else RoomState.WAITING

    @property
    def is_full(self) -> bool:
        return self.state is RoomState.FULL


class RoomTable:
    """In-memory mapping of room id to its ordered members for one namespace.

    Membership changes run under a single lock so that concurrent joins can
    never push a room past ``capacity``. Reads don't await and are therefore
    consistent without the lock on a single event loop. A connection occupies
    at most one room per table; empty rooms are deleted immediately.
    """

    def __init__(self, namespace: str, capacity: int = MAX_ROOM_MEMBERS):
        self.namespace = namespace
        self.capacity = capacity
        self._rooms: Dict[str, List[str]] = {}
        self._membership: Dict[str, str] = {}
        self._lock = asyncio.Lock()
        logger.info(f"Initializing {namespace} room table with capacity {capacity}")

    async def add_member(self, room_id: str, connection_id: str) -> JoinResult:
        async with self._lock:
            current = self._membership.get(connection_id)
            if current == room_id:
                logger.debug(f"Connection {connection_id} already in {self.namespace} room {room_id}")
                return JoinResult(JoinOutcome.ALREADY_MEMBER, self._others(room_id, connection_id))

            members = self._rooms.get(room_id)
            if members is not None and len(members) >= self.capacity:
                logger.debug(f"{self.namespace} room {room_id} is full ({len(members)}/{self.capacity})")
                return JoinResult(JoinOutcome.FULL, list(members))

            released = None
            if current is not None:
                self._discard(connection_id)
                released = current
                logger.debug(f"Connection {connection_id} moved out of {self.namespace} room {current}")

            if members is None:
                members = []
                self._rooms[room_id] = members
                logger.info(f"Created {self.namespace} room {room_id}")

            peers = list(members)
            members.append(connection_id)
            self._membership[connection_id] = room_id
            outcome = JoinOutcome.CREATED if not peers else JoinOutcome.JOINED
            logger.debug(f"Connection {connection_id} added to {self.namespace} room {room_id} ({len(members)}/{self.capacity})")
            return JoinResult(outcome, peers, released)

    async def remove_member(self, connection_id: str) -> Optional[str]:
        """Remove a connection from whichever room it occupies and return that room id."""
        async with self._lock:
            return self._discard(connection_id)

    def _discard(self, connection_id: str) -> Optional[str]:
        room_id = self._membership.pop(connection_id, None)
        if room_id is None:
            return None
        members = self._rooms.get(room_id, [])
        if connection_id in members:
            members.remove(connection_id)
        logger.debug(f"Connection {connection_id} removed from {self.namespace} room {room_id}")
        if not members:
            self._rooms.pop(room_id, None)
            logger.info(f"Deleted empty {self.namespace} room {room_id}")
        return room_id

    def _others(self, room_id: str, connection_id: str) -> List[str]:
        return [member for member in self._rooms.get(room_id, []) if member != connection_id]

    def others(self, room_id: str, connection_id: str) -> Optional[List[str]]:
        """Members of ``room_id`` other than ``connection_id``; None if it is not a member."""
        if self._membership.get(connection_id) != room_id:
            return None
        return self._others(room_id, connection_id)

    def members(self, room_id: str) -> List[str]:
        return list(self._rooms.get(room_id, []))

    def snapshot(self, room_id: str) -> Optional[RoomSnapshot]:
        members = self._rooms.get(room_id)
        if not members:
            return None
        return RoomSnapshot(room_id=room_id, namespace=self.namespace, members=list(members), capacity=self.capacity)

    def __contains__(self, room_id: str) -> bool:
        return room_id in self._rooms

    def __len__(self) -> int:
        return len(self._rooms)
