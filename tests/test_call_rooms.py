"""Tests for call room admission and signal relay."""

import pytest

from backend import JoinOutcome


OFFER = {"type": "offer", "sdp": "v=0\r\no=- 1 2 IN IP4 127.0.0.1\r\n"}
ANSWER = {"type": "answer", "sdp": "v=0\r\no=- 3 4 IN IP4 127.0.0.1\r\n"}


@pytest.mark.asyncio
async def test_first_join_waits_silently(call_rooms, connect) -> None:
    a, ws_a = connect()

    outcome = await call_rooms.join("r1", a, OFFER)

    assert outcome is JoinOutcome.CREATED
    assert ws_a.sent == []
    assert call_rooms.registry.lookup(a).call_room == "r1"


@pytest.mark.asyncio
async def test_second_join_notifies_only_existing_member(call_rooms, connect) -> None:
    a, ws_a = connect()
    b, ws_b = connect()
    await call_rooms.join("r1", a, None)

    outcome = await call_rooms.join("r1", b, OFFER)

    assert outcome is JoinOutcome.JOINED
    assert ws_a.sent == [{"event": "user-joined", "data": {"signal": OFFER}}]
    assert ws_b.sent == []


@pytest.mark.asyncio
async def test_third_join_receives_room_full(call_rooms, connect) -> None:
    a, ws_a = connect()
    b, _ = connect()
    c, ws_c = connect()
    await call_rooms.join("r1", a, OFFER)
    await call_rooms.join("r1", b, OFFER)

    outcome = await call_rooms.join("r1", c, OFFER)

    assert outcome is JoinOutcome.FULL
    assert ws_c.sent == [{"event": "room-full", "data": {}}]
    assert ws_a.events() == ["user-joined"]
    assert call_rooms.registry.lookup(c).call_room is None
    assert call_rooms.rooms.members("r1") == [a, b]


@pytest.mark.asyncio
async def test_join_from_unknown_connection_is_ignored(call_rooms) -> None:
    assert await call_rooms.join("r1", "ghost", OFFER) is None
    assert "r1" not in call_rooms.rooms


@pytest.mark.asyncio
async def test_relay_signal_reaches_the_other_member_unmodified(call_rooms, connect) -> None:
    a, ws_a = connect()
    b, ws_b = connect()
    await call_rooms.join("r1", a, None)
    await call_rooms.join("r1", b, OFFER)

    assert await call_rooms.relay_signal("r1", a, ANSWER) is True

    assert ws_b.sent == [{"event": "receiving-returned-signal", "data": {"signal": ANSWER}}]
    assert ws_a.events() == ["user-joined"]


@pytest.mark.asyncio
async def test_relay_without_peer_is_dropped(call_rooms, connect) -> None:
    a, ws_a = connect()
    await call_rooms.join("r1", a, OFFER)

    assert await call_rooms.relay_signal("r1", a, ANSWER) is False
    assert ws_a.sent == []


@pytest.mark.asyncio
async def test_relay_from_non_member_is_dropped(call_rooms, connect) -> None:
    a, ws_a = connect()
    b, ws_b = connect()
    outsider, _ = connect()
    await call_rooms.join("r1", a, None)
    await call_rooms.join("r1", b, OFFER)

    assert await call_rooms.relay_signal("r1", outsider, ANSWER) is False
    assert ws_a.events() == ["user-joined"]
    assert ws_b.sent == []


@pytest.mark.asyncio
async def test_relay_to_closed_peer_is_dropped(call_rooms, connect) -> None:
    a, _ = connect()
    b, ws_b = connect()
    await call_rooms.join("r1", a, None)
    await call_rooms.join("r1", b, OFFER)
    ws_b.closed = True

    assert await call_rooms.relay_signal("r1", a, ANSWER) is False


@pytest.mark.asyncio
async def test_leave_deletes_empty_room_without_notifying_peer(call_rooms, connect) -> None:
    a, ws_a = connect()
    b, _ = connect()
    await call_rooms.join("r1", a, None)
    await call_rooms.join("r1", b, OFFER)

    assert await call_rooms.leave(b) == "r1"
    assert ws_a.events() == ["user-joined"]
    assert call_rooms.describe("r1").members == [a]

    assert await call_rooms.leave(a) == "r1"
    assert call_rooms.describe("r1") is None
    assert call_rooms.registry.lookup(a).call_room is None


@pytest.mark.asyncio
async def test_leave_without_room_is_noop(call_rooms, connect) -> None:
    a, _ = connect()

    assert await call_rooms.leave(a) is None


@pytest.mark.asyncio
async def test_full_handshake_and_fresh_room_after_disconnect(lifecycle, call_rooms, connect) -> None:
    a, ws_a = connect()
    b, ws_b = connect()

    assert await call_rooms.join("r1", a, None) is JoinOutcome.CREATED
    assert await call_rooms.join("r1", b, "S1") is JoinOutcome.JOINED
    assert ws_a.sent == [{"event": "user-joined", "data": {"signal": "S1"}}]

    await call_rooms.relay_signal("r1", a, "S2")
    assert ws_b.sent == [{"event": "receiving-returned-signal", "data": {"signal": "S2"}}]

    await lifecycle.disconnect(b)
    await lifecycle.disconnect(a)
    assert "r1" not in call_rooms.rooms

    c, ws_c = connect()
    assert await call_rooms.join("r1", c, "S3") is JoinOutcome.CREATED
    assert ws_c.sent == []


@pytest.mark.asyncio
async def test_joining_another_room_releases_the_previous_one(call_rooms, connect) -> None:
    a, ws_a = connect()
    await call_rooms.join("r1", a, OFFER)

    outcome = await call_rooms.join("r2", a, OFFER)

    assert outcome is JoinOutcome.CREATED
    assert "r1" not in call_rooms.rooms
    assert call_rooms.registry.lookup(a).call_room == "r2"
    assert ws_a.sent == []
