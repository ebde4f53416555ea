# partyhub/transport/dispatcher.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Tuple

from pydantic import ValidationError

from partyhub.domain.common.events import dump
from partyhub.transport.protocols import (
    parse_hub_incoming,
    parse_pong_incoming,
    OutError,
    InCreateRoom,
    InJoinRoom,
    InLeaveRoom,
    InPongStartGame,
    InInput,
    InRegisterTV,
    InJoinHub,
    InSetName,
    InSetReady,
    InLeave,
    InChooseGame,
    InHubStartGame,
    InRefreshHub,
    InLeaveGame,
    InTvControl,
    InAnswer,
    InAnswerCouplesPhase,
)
from partyhub.domain.pong.handlers import (
    handle_create_room,
    handle_join_room,
    handle_leave_room,
    handle_pong_start_game,
    handle_input,
)
from partyhub.domain.hub.handlers import (
    handle_register_tv,
    handle_join_hub,
    handle_set_name,
    handle_set_ready,
    handle_leave,
    handle_choose_game,
    handle_start_game,
    handle_refresh_hub,
    handle_leave_game,
    handle_tv_control,
    handle_answer,
)

logger = logging.getLogger(__name__)

DispatchResult = Tuple[List[Dict[str, Any]], List[Dict[str, Any]]]
# (to_sender_events, to_others_events), each event is JSON dict.
# Events carrying `targets` go only to those connections.


def _bad_message(e: Exception) -> DispatchResult:
    err = OutError(code="BAD_MESSAGE", message=str(e)).model_dump()
    return [err], []


async def dispatch_pong_message(*, app, conn_id: str, raw: Dict[str, Any]) -> DispatchResult:
    """
    Transport layer calls this for /ws/pong.
    - Parses + validates raw JSON
    - Routes to the pong handler
    - Returns (to_sender, to_room) events as JSON dicts
    """
    try:
        msg = parse_pong_incoming(raw)
    except (ValidationError, ValueError) as e:
        return _bad_message(e)

    if isinstance(msg, InCreateRoom):
        to_sender, to_room = await handle_create_room(app=app, conn_id=conn_id, msg=msg)
        return dump(to_sender), dump(to_room)

    if isinstance(msg, InJoinRoom):
        to_sender, to_room = await handle_join_room(app=app, conn_id=conn_id, msg=msg)
        return dump(to_sender), dump(to_room)

    if isinstance(msg, InLeaveRoom):
        to_sender, to_room = await handle_leave_room(app=app, conn_id=conn_id, msg=msg)
        return dump(to_sender), dump(to_room)

    if isinstance(msg, InPongStartGame):
        to_sender, to_room = await handle_pong_start_game(app=app, conn_id=conn_id, msg=msg)
        return dump(to_sender), dump(to_room)

    if isinstance(msg, InInput):
        to_sender, to_room = await handle_input(app=app, conn_id=conn_id, msg=msg)
        return dump(to_sender), dump(to_room)

    err = OutError(code="NOT_IMPLEMENTED", message=f"Handler not implemented for type={msg.type}").model_dump()
    return [err], []


async def dispatch_hub_message(*, app, conn_id: str, raw: Dict[str, Any]) -> DispatchResult:
    """
    Transport layer calls this for /ws/hub.
    Returns (to_sender, to_all) events as JSON dicts.
    """
    try:
        msg = parse_hub_incoming(raw)
    except (ValidationError, ValueError) as e:
        return _bad_message(e)

    logger.debug("hub <- %s: %s", conn_id, msg.type)

    # ---- Presence ----
    if isinstance(msg, InRegisterTV):
        to_sender, to_all = await handle_register_tv(app=app, conn_id=conn_id, msg=msg)
        return dump(to_sender), dump(to_all)

    if isinstance(msg, InJoinHub):
        to_sender, to_all = await handle_join_hub(app=app, conn_id=conn_id, msg=msg)
        return dump(to_sender), dump(to_all)

    if isinstance(msg, InSetName):
        to_sender, to_all = await handle_set_name(app=app, conn_id=conn_id, msg=msg)
        return dump(to_sender), dump(to_all)

    if isinstance(msg, InSetReady):
        to_sender, to_all = await handle_set_ready(app=app, conn_id=conn_id, msg=msg)
        return dump(to_sender), dump(to_all)

    if isinstance(msg, InLeave):
        to_sender, to_all = await handle_leave(app=app, conn_id=conn_id, msg=msg)
        return dump(to_sender), dump(to_all)

    # ---- Host controls ----
    if isinstance(msg, InChooseGame):
        to_sender, to_all = await handle_choose_game(app=app, conn_id=conn_id, msg=msg)
        return dump(to_sender), dump(to_all)

    if isinstance(msg, InHubStartGame):
        to_sender, to_all = await handle_start_game(app=app, conn_id=conn_id, msg=msg)
        return dump(to_sender), dump(to_all)

    if isinstance(msg, InRefreshHub):
        to_sender, to_all = await handle_refresh_hub(app=app, conn_id=conn_id, msg=msg)
        return dump(to_sender), dump(to_all)

    if isinstance(msg, InLeaveGame):
        to_sender, to_all = await handle_leave_game(app=app, conn_id=conn_id, msg=msg)
        return dump(to_sender), dump(to_all)

    if isinstance(msg, InTvControl):
        to_sender, to_all = await handle_tv_control(app=app, conn_id=conn_id, msg=msg)
        return dump(to_sender), dump(to_all)

    # ---- Answers ----
    if isinstance(msg, (InAnswer, InAnswerCouplesPhase)):
        to_sender, to_all = await handle_answer(app=app, conn_id=conn_id, msg=msg)
        return dump(to_sender), dump(to_all)

    err = OutError(code="NOT_IMPLEMENTED", message=f"Handler not implemented for type={msg.type}").model_dump()
    return [err], []
