# partyhub/domain/hub/handlers.py
from __future__ import annotations

from partyhub.domain.hub.handlers_presence import (
    handle_register_tv,
    handle_join_hub,
    handle_set_name,
    handle_set_ready,
    handle_leave,
    handle_hub_disconnect,
)
from partyhub.domain.hub.handlers_game import (
    handle_choose_game,
    handle_start_game,
    handle_refresh_hub,
    handle_leave_game,
    handle_tv_control,
)
from partyhub.domain.hub.handlers_answer import handle_answer

__all__ = [
    "handle_register_tv",
    "handle_join_hub",
    "handle_set_name",
    "handle_set_ready",
    "handle_leave",
    "handle_hub_disconnect",
    "handle_choose_game",
    "handle_start_game",
    "handle_refresh_hub",
    "handle_leave_game",
    "handle_tv_control",
    "handle_answer",
]
