# partyhub/domain/hub/handlers_game.py
from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from partyhub.domain.common.events import targeted
from partyhub.domain.trivia.availability import get_rule, title_of
from partyhub.transport.protocols import (
    InChooseGame,
    InHubStartGame,
    InLeaveGame,
    InRefreshHub,
    InTvControl,
    OutError,
    OutGameEnded,
    OutGameSelected,
    OutToast,
    OutTvNavigate,
)

logger = logging.getLogger(__name__)

Outgoing = List[object]
Result = Tuple[Outgoing, Outgoing]


def _not_host(hub, conn_id: str) -> Optional[OutError]:
    if hub.state.is_host(conn_id):
        return None
    return OutError(code="NOT_HOST", message="Only the host can do that")


async def handle_choose_game(*, app, conn_id: str, msg: InChooseGame) -> Result:
    hub = app.state.hub
    err = _not_host(hub, conn_id)
    if err:
        return [err], []

    rule = get_rule(msg.id)
    if rule is None:
        return [OutError(code="UNKNOWN_GAME", message=f"Unknown game {msg.id}")], []

    # a new pick replaces whatever is running
    hub.abort_round()
    hub.state.current_game = msg.id
    hub.state.reset_ready()
    logger.info("hub %s: game selected %s", hub.state.code, msg.id)

    meta = {"title": title_of(msg.id), **rule.model_dump()}
    return [], [OutGameSelected(id=msg.id, meta=meta), hub.hub_state_event()]


async def handle_start_game(*, app, conn_id: str, msg: InHubStartGame) -> Result:
    hub = app.state.hub
    err = _not_host(hub, conn_id)
    if err:
        return [err], []

    advisory = hub.start_round(msg.rounds)
    if advisory:
        return [], [OutToast(msg=advisory)]
    return [], []


async def handle_refresh_hub(*, app, conn_id: str, msg: InRefreshHub) -> Result:
    hub = app.state.hub
    err = _not_host(hub, conn_id)
    if err:
        return [err], []

    hub.reset()
    return [], [hub.hub_state_event()]


async def handle_leave_game(*, app, conn_id: str, msg: InLeaveGame) -> Result:
    hub = app.state.hub
    err = _not_host(hub, conn_id)
    if err:
        return [err], []

    hub.abort_round()
    return [], [OutGameEnded(reason="hostLeft"), hub.hub_state_event()]


async def handle_tv_control(*, app, conn_id: str, msg: InTvControl) -> Result:
    hub = app.state.hub
    err = _not_host(hub, conn_id)
    if err:
        return [err], []

    display = hub.state.display_conn
    if display is None or display == conn_id:
        return [], []
    return [], [targeted(OutTvNavigate(action=msg.action, data=msg.data), [display])]
