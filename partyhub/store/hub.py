# partyhub/store/hub.py
from __future__ import annotations

import logging
import random
import string
from typing import Any, Dict, List, Optional, Tuple

from partyhub.domain.common.types import DEFAULT_NAME, NAME_MAX_LEN
from partyhub.store.models import HubPlayerStore
from partyhub.store.rooms import gen_code
from partyhub.util.timeutil import now_ms

logger = logging.getLogger(__name__)

DISPLAY_HOST = "tv"


def clean_name(name: Optional[str]) -> str:
    return ((name or "").strip() or DEFAULT_NAME)[:NAME_MAX_LEN]


def gen_pid(rng: Optional[random.Random] = None) -> str:
    alphabet = string.ascii_lowercase + string.digits
    pick = (rng or random).choice
    suffix = "".join(pick(alphabet) for _ in range(4))
    return f"p_{now_ms()}_{suffix}"


class HubState:
    """
    Presence for one hub.
    - players: conn_id -> player (currently connected)
    - pid_index: pid -> conn_id
    - identities: pid -> player, kept across disconnects so a rejoin with
      the same pid gets its name/ready back
    """
    def __init__(self, code: Optional[str] = None, rng: Optional[random.Random] = None) -> None:
        self._rng = rng
        self.code = code or gen_code(rng=rng)
        self.display_conn: Optional[str] = None
        self.host_conn: Optional[str] = None
        self.players: Dict[str, HubPlayerStore] = {}
        self.pid_index: Dict[str, str] = {}
        self.identities: Dict[str, HubPlayerStore] = {}
        self.current_game: Optional[str] = None
        self.last_snapshot: Optional[Dict[str, Any]] = None
        self._seq = 0

    # ----------------------------
    # Display / host
    # ----------------------------
    def bind_display(self, conn_id: str) -> None:
        self.display_conn = conn_id
        self.host_conn = conn_id

    def is_host(self, conn_id: str) -> bool:
        return self.host_conn is not None and self.host_conn == conn_id

    def elect_host(self, leaving: Optional[str] = None) -> Optional[str]:
        """
        Earliest joiner still connected, else the display, else nobody.
        """
        candidates = sorted(
            ((p.seq, cid) for cid, p in self.players.items() if cid != leaving),
        )
        if candidates:
            self.host_conn = candidates[0][1]
        elif self.display_conn and self.display_conn != leaving:
            self.host_conn = self.display_conn
        else:
            self.host_conn = None
        logger.info("hub %s: host -> %s", self.code, self.host_label())
        return self.host_conn

    def host_label(self) -> Optional[str]:
        """Host as clients see it: the host player's pid, or 'tv' for the display."""
        if self.host_conn is None:
            return None
        p = self.players.get(self.host_conn)
        if p is not None:
            return p.pid
        if self.host_conn == self.display_conn:
            return DISPLAY_HOST
        return None

    # ----------------------------
    # Players
    # ----------------------------
    def join(self, conn_id: str, name: Optional[str], pid: Optional[str]) -> Tuple[HubPlayerStore, bool]:
        """
        Bind a player to conn_id. A known pid is reattached (name/ready kept);
        A repeat join without a pid keeps the player already on conn_id;
        anything else gets a fresh pid. Returns (player, reconnected).
        """
        existing = self.identities.get(pid) if pid else self.players.get(conn_id)

        # this connection may already carry someone else
        current = self.players.get(conn_id)
        if current is not None and (existing is None or current.pid != existing.pid):
            self._unbind(conn_id)

        if existing is not None:
            old_conn = self.pid_index.get(existing.pid)
            if old_conn is not None and old_conn != conn_id:
                self._unbind(old_conn)
                if self.host_conn == old_conn:
                    self.host_conn = conn_id
            player, reconnected = existing, True
        else:
            self._seq += 1
            player = HubPlayerStore(pid=gen_pid(self._rng), name=clean_name(name), ready=False, seq=self._seq)
            self.identities[player.pid] = player
            reconnected = False

        self.players[conn_id] = player
        self.pid_index[player.pid] = conn_id
        if self.host_conn is None:
            self.host_conn = conn_id
        logger.info("hub %s: %s %s (%s)", self.code, "rejoined" if reconnected else "joined", player.pid, player.name)
        return player, reconnected

    def player_for(self, conn_id: str, pid: Optional[str] = None) -> Optional[HubPlayerStore]:
        """
        Player bound to conn_id. A pid claimed by the client must match it.
        """
        p = self.players.get(conn_id)
        if p is None:
            return None
        if pid is not None and pid != p.pid:
            return None
        return p

    def drop_conn(self, conn_id: str) -> None:
        """Connection lost: player leaves the list but keeps its identity."""
        was_host = self.is_host(conn_id)
        if self.display_conn == conn_id:
            self.display_conn = None
        p = self._unbind(conn_id)
        if p is not None:
            logger.info("hub %s: %s disconnected", self.code, p.pid)
        if was_host:
            self.elect_host(leaving=conn_id)

    def forget(self, conn_id: str) -> Optional[HubPlayerStore]:
        """Explicit leave: player and identity are removed."""
        was_host = self.is_host(conn_id)
        p = self._unbind(conn_id)
        if p is None:
            return None
        self.identities.pop(p.pid, None)
        logger.info("hub %s: %s left", self.code, p.pid)
        if was_host:
            self.elect_host(leaving=conn_id)
        return p

    def _unbind(self, conn_id: str) -> Optional[HubPlayerStore]:
        p = self.players.pop(conn_id, None)
        if p is not None and self.pid_index.get(p.pid) == conn_id:
            self.pid_index.pop(p.pid, None)
        return p

    def conn_of(self, pid: str) -> Optional[str]:
        return self.pid_index.get(pid)

    def connected_pids(self) -> List[str]:
        return [p.pid for p in self.ordered_players()]

    def ordered_players(self) -> List[HubPlayerStore]:
        return sorted(self.players.values(), key=lambda p: p.seq)

    def reset_ready(self) -> None:
        for p in self.identities.values():
            p.ready = False

    def reset(self, code: Optional[str] = None) -> None:
        """Wipe players and game; display and host stay bound."""
        self.players.clear()
        self.pid_index.clear()
        self.identities.clear()
        self.current_game = None
        self.last_snapshot = None
        self.code = code or gen_code(rng=self._rng)
        if self.host_conn != self.display_conn:
            self.host_conn = self.display_conn
        logger.info("hub reset, new code %s", self.code)

    def public_players(self) -> List[Dict[str, Any]]:
        return [{"pid": p.pid, "name": p.name, "ready": p.ready} for p in self.ordered_players()]
