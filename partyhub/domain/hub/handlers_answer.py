# partyhub/domain/hub/handlers_answer.py
from __future__ import annotations

import logging
from typing import List, Tuple, Union

from partyhub.transport.protocols import InAnswer, InAnswerCouplesPhase

logger = logging.getLogger(__name__)

Outgoing = List[object]
Result = Tuple[Outgoing, Outgoing]


async def handle_answer(*, app, conn_id: str, msg: Union[InAnswer, InAnswerCouplesPhase]) -> Result:
    """
    Record an answer for the current (sub-)phase.
    The acting player comes from the connection; a mismatched pid is ignored,
    as are late and duplicate answers. Results only surface at reveal.
    """
    hub = app.state.hub
    player = hub.state.player_for(conn_id, msg.pid)
    if player is None:
        return [], []

    accepted = hub.submit_answer(player.pid, msg.choice)
    logger.debug("answer %s from %s: %s", msg.choice, player.pid, "ok" if accepted else "ignored")
    return [], []
