# partyhub/domain/pong/handlers.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

from partyhub.domain.common.events import targeted
from partyhub.store.rooms import RoomError, RoomRegistry
from partyhub.transport.protocols import (
    InCreateRoom,
    InInput,
    InJoinRoom,
    InLeaveRoom,
    InPongStartGame,
    OutError,
    OutJoinRoomResult,
    OutPlayerInput,
    OutPongStartGame,
    OutRoomClosed,
    OutRoomCreated,
    OutRoomUpdate,
)

logger = logging.getLogger(__name__)

Outgoing = List[object]
Result = Tuple[Outgoing, Outgoing]
# Room events are always targeted at the room's members; see _room_update.


def _room_update(rooms: RoomRegistry, code: str) -> Dict[str, Any]:
    return targeted(OutRoomUpdate(slots=rooms.occupancy(code)), rooms.members(code))


def _after_vacate(rooms: RoomRegistry, code: str, display: Optional[str]) -> Outgoing:
    """roomUpdate for a surviving room; roomClosed to the display of a deleted one."""
    if rooms.get(code) is not None:
        return [_room_update(rooms, code)]
    if display:
        return [targeted(OutRoomClosed(room=code), [display])]
    return []


def _display_of(rooms: RoomRegistry, code: Optional[str]) -> Optional[str]:
    room = rooms.get(code) if code else None
    return room.display if room is not None else None


async def handle_create_room(*, app, conn_id: str, msg: InCreateRoom) -> Result:
    rooms: RoomRegistry = app.state.rooms
    room = rooms.create(display=conn_id)
    return [OutRoomCreated(room=room.code)], []


async def handle_join_room(*, app, conn_id: str, msg: InJoinRoom) -> Result:
    rooms: RoomRegistry = app.state.rooms
    previous = rooms.room_of(conn_id)
    previous_display = _display_of(rooms, previous)

    try:
        player = rooms.join(msg.room, conn_id)
    except RoomError as e:
        return [OutJoinRoomResult(ok=False, error=str(e))], []

    room = rooms.get(msg.room)
    to_room: Outgoing = [_room_update(rooms, room.code)]
    if previous is not None and previous != room.code:
        to_room.extend(_after_vacate(rooms, previous, previous_display))
    return [OutJoinRoomResult(ok=True, room=room.code, player=player)], to_room


async def handle_leave_room(*, app, conn_id: str, msg: InLeaveRoom) -> Result:
    rooms: RoomRegistry = app.state.rooms
    room = rooms.get(msg.room)
    if room is None or rooms.slot_of(room.code, conn_id) is None:
        return [], []
    code, display = room.code, room.display
    rooms.leave(code, conn_id)
    return [], _after_vacate(rooms, code, display)


async def handle_pong_start_game(*, app, conn_id: str, msg: InPongStartGame) -> Result:
    rooms: RoomRegistry = app.state.rooms
    room = rooms.get(msg.room)
    if room is None:
        return [OutError(code="ROOM_NOT_FOUND", message=f"Room {msg.room} not found")], []

    members = rooms.members(room.code)
    if conn_id not in members:
        return [OutError(code="NOT_IN_ROOM", message="Join the room first")], []

    logger.info("room %s: game started (%s)", room.code, msg.mode)
    return [], [targeted(OutPongStartGame(mode=msg.mode), members)]


async def handle_input(*, app, conn_id: str, msg: InInput) -> Result:
    """
    Relay a controller's input to everyone in the room, stamped with the
    sender's own slot number. Senders without a slot are ignored.
    """
    rooms: RoomRegistry = app.state.rooms
    idx = rooms.slot_of(msg.room, conn_id)
    if idx is None:
        return [], []
    code = rooms.room_of(conn_id)
    return [], [targeted(OutPlayerInput(player=idx + 1, input=msg.input), rooms.members(code))]


async def handle_pong_disconnect(*, app, conn_id: str) -> Result:
    rooms: RoomRegistry = app.state.rooms
    seated = rooms.room_of(conn_id)
    seated_display = _display_of(rooms, seated)
    surviving = rooms.drop_conn(conn_id)

    to_room: Outgoing = [_room_update(rooms, code) for code in surviving]
    if seated is not None and seated not in surviving and seated_display != conn_id:
        to_room.extend(_after_vacate(rooms, seated, seated_display))
    return [], to_room
