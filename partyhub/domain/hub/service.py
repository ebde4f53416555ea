# partyhub/domain/hub/service.py
from __future__ import annotations

import asyncio
import logging
import random
from typing import Any, Callable, Dict, Optional

from partyhub.domain.common.events import Broadcaster
from partyhub.domain.common.types import OptionLabel
from partyhub.domain.trivia.availability import availability_table, check_player_count, has_jinx, is_couples
from partyhub.domain.trivia.round import TriviaRound
from partyhub.domain.trivia.runner import RoundRunner, RoundTimings
from partyhub.store.hub import HubState
from partyhub.store.packs import PackLoader
from partyhub.transport.protocols import OutHubState
from partyhub.util.timeutil import now_ms

logger = logging.getLogger(__name__)


class HubService:
    """
    The process-wide hub: presence (HubState) plus at most one running round.

    Every started round gets a new generation number. Starting, aborting or
    resetting bumps the generation and cancels the previous runner, so a
    superseded runner can never emit again.
    """
    def __init__(
        self,
        *,
        state: HubState,
        packs: PackLoader,
        timings: RoundTimings,
        out: Broadcaster,
        clock: Callable[[], int] = now_ms,
        rng: Optional[random.Random] = None,
        default_rounds: int = 10,
    ) -> None:
        self.state = state
        self.packs = packs
        self.timings = timings
        self.out = out
        self.clock = clock
        self.rng = rng or random.Random()
        self.default_rounds = default_rounds

        self.generation = 0
        self.runner: Optional[RoundRunner] = None

    # ----------------------------
    # Views
    # ----------------------------
    def hub_state_event(self) -> OutHubState:
        s = self.state
        return OutHubState(
            code=s.code,
            players=s.public_players(),
            currentGame=s.current_game,
            availability=availability_table(),
            host=s.host_label(),
        )

    def is_current(self, generation: int) -> bool:
        return generation == self.generation

    @property
    def round(self) -> Optional[TriviaRound]:
        return self.runner.round if self.runner is not None else None

    def status(self) -> Dict[str, Any]:
        r = self.round
        return {
            "code": self.state.code,
            "players": self.state.public_players(),
            "host": self.state.host_label(),
            "currentGame": self.state.current_game,
            "generation": self.generation,
            "round": None if r is None else {
                "gameId": r.game_id,
                "idx": r.number,
                "total": r.total,
                "phase": r.phase,
                "phaseFlag": r.phase_flag,
                "scores": dict(r.scores),
            },
        }

    # ----------------------------
    # Round lifecycle
    # ----------------------------
    def start_round(self, rounds: Optional[int] = None) -> Optional[str]:
        """
        Start a round of the selected game with the connected players.
        Returns an advisory message (and changes nothing) when it cannot start.
        """
        s = self.state
        game_id = s.current_game
        ok, msg = check_player_count(game_id, len(s.players))
        if not ok:
            logger.info("hub %s: start refused (%s)", s.code, msg)
            return msg

        questions = self.packs.load(game_id)
        self.rng.shuffle(questions)
        questions = questions[: rounds or self.default_rounds]

        self._supersede()
        couples = is_couples(game_id)
        rnd = TriviaRound(
            game_id=game_id,
            questions=questions,
            participants=s.connected_pids(),
            timer_sec=self.timings.couples_timer_sec if couples else self.timings.single_timer_sec,
            couples=couples,
            generation=self.generation,
            jinx=has_jinx(game_id),
            rng=self.rng,
        )
        s.last_snapshot = None
        self.runner = RoundRunner(hub=self, round=rnd, timings=self.timings, clock=self.clock)
        self.runner.start()
        return None

    def abort_round(self) -> bool:
        """Stop the running round (if any) and return the hub to the lobby."""
        had_round = self.runner is not None
        self._supersede()
        s = self.state
        s.last_snapshot = None
        s.current_game = None
        s.reset_ready()
        if had_round:
            logger.info("hub %s: round aborted", s.code)
        return had_round

    async def finish_round(self, runner: RoundRunner) -> None:
        if not self.is_current(runner.generation):
            return
        s = self.state
        self.runner = None
        s.last_snapshot = None
        s.current_game = None
        s.reset_ready()
        await self.out.broadcast(self.hub_state_event().model_dump())

    def reset(self) -> None:
        self._supersede()
        self.state.reset()

    def _supersede(self) -> None:
        self.generation += 1
        if self.runner is not None:
            self.runner.cancel()
            self.runner = None

    async def close(self) -> None:
        runner = self.runner
        self._supersede()
        if runner is not None and runner.task is not None:
            try:
                await runner.task
            except asyncio.CancelledError:
                pass

    # ----------------------------
    # Answers
    # ----------------------------
    def submit_answer(self, pid: str, choice: OptionLabel) -> bool:
        r = self.round
        if r is None:
            return False
        return r.submit(pid, choice, self.clock())

    def snapshot_for(self, *, display: bool) -> Optional[Dict[str, Any]]:
        snap = self.state.last_snapshot
        if not snap:
            return None
        return snap["display" if display else "controller"]

