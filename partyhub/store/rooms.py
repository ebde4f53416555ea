# partyhub/store/rooms.py
from __future__ import annotations

import logging
import random
import string
from typing import Dict, List, Optional

from partyhub.store.models import RoomStore
from partyhub.util.timeutil import now_ts

logger = logging.getLogger(__name__)


class RoomError(Exception):
    message = "Room error"

    def __str__(self) -> str:
        return self.message


class RoomNotFound(RoomError):
    message = "Room not found"


class RoomFull(RoomError):
    message = "Room full"


def gen_code(n: int = 6, rng: Optional[random.Random] = None) -> str:
    alphabet = string.ascii_uppercase + string.digits
    pick = (rng or random).choice
    return "".join(pick(alphabet) for _ in range(n))


def norm_code(code: str) -> str:
    return (code or "").strip().upper()


class RoomRegistry:
    """
    In-memory pong rooms.
    - code -> RoomStore
    - conn_id -> code (a connection sits in at most one room)
    Transport-agnostic: no sockets here.
    """
    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self._rooms: Dict[str, RoomStore] = {}
        self._conn_room: Dict[str, str] = {}
        self._rng = rng

    def create(self, display: Optional[str] = None) -> RoomStore:
        # collisions are not checked; 36^6 codes for a handful of rooms
        code = gen_code(rng=self._rng)
        room = RoomStore(code=code, display=display, created_at=now_ts())
        self._rooms[code] = room
        logger.info("room %s created", code)
        return room

    def get(self, code: str) -> Optional[RoomStore]:
        return self._rooms.get(norm_code(code))

    def list_rooms(self) -> List[RoomStore]:
        return sorted(self._rooms.values(), key=lambda r: r.created_at)

    def join(self, code: str, conn_id: str) -> int:
        """
        Assign the lowest empty slot. Returns the 1-based player number.
        Raises RoomNotFound / RoomFull.
        """
        room = self.get(code)
        if room is None:
            raise RoomNotFound()

        current = self.slot_of(room.code, conn_id)
        if current is not None:
            return current + 1

        try:
            idx = room.slots.index(None)
        except ValueError:
            raise RoomFull() from None

        # one slot per connection: vacate any slot held elsewhere
        previous = self._conn_room.get(conn_id)
        if previous is not None and previous != room.code:
            self.leave(previous, conn_id)

        room.slots[idx] = conn_id
        self._conn_room[conn_id] = room.code
        logger.info("room %s: player %d joined", room.code, idx + 1)
        return idx + 1

    def leave(self, code: str, conn_id: str) -> Optional[RoomStore]:
        """
        Vacate the slot held by conn_id. Deletes the room once every slot is empty.
        Returns the room if it still exists.
        """
        room = self.get(code)
        if room is None:
            return None

        idx = self.slot_of(room.code, conn_id)
        if idx is None:
            return room

        room.slots[idx] = None
        if self._conn_room.get(conn_id) == room.code:
            self._conn_room.pop(conn_id, None)
        logger.info("room %s: player %d left", room.code, idx + 1)

        if all(s is None for s in room.slots):
            self.delete(room.code)
            return None
        return room

    def drop_conn(self, conn_id: str) -> List[str]:
        """
        Connection went away: vacate its slot and release every room it displays.
        Returns the codes of affected rooms that survive.
        """
        touched: List[str] = []
        code = self._conn_room.get(conn_id)
        if code is not None:
            room = self.leave(code, conn_id)
            if room is not None:
                touched.append(room.code)

        for room in list(self._rooms.values()):
            if room.display != conn_id:
                continue
            room.display = None
            if all(s is None for s in room.slots):
                self.delete(room.code)
                continue
            if room.code not in touched:
                touched.append(room.code)
        return [c for c in touched if c in self._rooms]

    def delete(self, code: str) -> Optional[RoomStore]:
        room = self._rooms.pop(norm_code(code), None)
        if room is None:
            return None
        for cid in room.slots:
            if cid is not None and self._conn_room.get(cid) == room.code:
                self._conn_room.pop(cid, None)
        logger.info("room %s deleted", room.code)
        return room

    def room_of(self, conn_id: str) -> Optional[str]:
        return self._conn_room.get(conn_id)

    def slot_of(self, code: str, conn_id: str) -> Optional[int]:
        room = self.get(code)
        if room is None:
            return None
        for i, cid in enumerate(room.slots):
            if cid == conn_id:
                return i
        return None

    def members(self, code: str) -> List[str]:
        """Display first, then slot holders in slot order."""
        room = self.get(code)
        if room is None:
            return []
        out = [room.display] if room.display else []
        out.extend(cid for cid in room.slots if cid is not None and cid not in out)
        return out

    def occupancy(self, code: str) -> List[bool]:
        room = self.get(code)
        if room is None:
            return []
        return [cid is not None for cid in room.slots]
