# partyhub/domain/hub/handlers_presence.py
from __future__ import annotations

import logging
from typing import List, Tuple

from partyhub.store.hub import clean_name
from partyhub.transport.protocols import (
    InJoinHub,
    InLeave,
    InRegisterTV,
    InSetName,
    InSetReady,
    OutJoined,
    OutRestoreSnapshot,
)

logger = logging.getLogger(__name__)

Outgoing = List[object]
Result = Tuple[Outgoing, Outgoing]


async def handle_register_tv(*, app, conn_id: str, msg: InRegisterTV) -> Result:
    hub = app.state.hub
    hub.state.bind_display(conn_id)
    logger.info("hub %s: display registered (%s)", hub.state.code, conn_id)

    to_sender: Outgoing = []
    snap = hub.snapshot_for(display=True)
    if snap is not None:
        to_sender.append(OutRestoreSnapshot(snapshot=snap))
    return to_sender, [hub.hub_state_event()]


async def handle_join_hub(*, app, conn_id: str, msg: InJoinHub) -> Result:
    hub = app.state.hub
    player, _ = hub.state.join(conn_id, msg.name, msg.pid)

    to_sender: Outgoing = [OutJoined(pid=player.pid, name=player.name, code=hub.state.code)]
    snap = hub.snapshot_for(display=False)
    if snap is not None:
        to_sender.append(OutRestoreSnapshot(snapshot=snap))
    return to_sender, [hub.hub_state_event()]


async def handle_set_name(*, app, conn_id: str, msg: InSetName) -> Result:
    hub = app.state.hub
    player = hub.state.player_for(conn_id, msg.pid)
    if player is None:
        return [], []
    player.name = clean_name(msg.name)
    return [], [hub.hub_state_event()]


async def handle_set_ready(*, app, conn_id: str, msg: InSetReady) -> Result:
    hub = app.state.hub
    player = hub.state.player_for(conn_id, msg.pid)
    if player is None:
        return [], []
    player.ready = bool(msg.ready)
    return [], [hub.hub_state_event()]


async def handle_leave(*, app, conn_id: str, msg: InLeave) -> Result:
    hub = app.state.hub
    if hub.state.player_for(conn_id, msg.pid) is None:
        return [], []
    hub.state.forget(conn_id)
    return [], [hub.hub_state_event()]


async def handle_hub_disconnect(*, app, conn_id: str) -> Result:
    """
    Called by transport on WebSocketDisconnect.
    The player leaves the list; its pid stays claimable for a rejoin.
    """
    hub = app.state.hub
    s = hub.state
    if conn_id not in s.players and conn_id != s.display_conn and conn_id != s.host_conn:
        return [], []
    s.drop_conn(conn_id)
    return [], [hub.hub_state_event()]
