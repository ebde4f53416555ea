# partyhub/domain/trivia/runner.py
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Optional

from partyhub.domain.trivia.availability import COUPLES_GUESS_TITLE, COUPLES_SELF_TITLE, title_of
from partyhub.domain.trivia.round import TriviaRound
from partyhub.transport.protocols import (
    OutCsGameOver,
    OutCsGuess,
    OutCsReveal,
    OutCsSelf,
    OutLbGameOver,
    OutLbQuestion,
    OutLbReveal,
    OutPreQuestion,
    OutTimer,
    OutYouAreJinxed,
)

if TYPE_CHECKING:
    from partyhub.domain.hub.service import HubService

logger = logging.getLogger(__name__)

AFK_REPORT_AFTER = 3


@dataclass(frozen=True)
class RoundTimings:
    pre_question_ms: int = 1000
    tick_ms: int = 120
    suspense_ms: int = 800
    couples_switch_ms: int = 500
    post_reveal_ms: int = 2400
    single_timer_sec: int = 12
    couples_timer_sec: int = 20

    @classmethod
    def from_settings(cls, settings: Any) -> "RoundTimings":
        return cls(
            pre_question_ms=settings.PRE_QUESTION_MS,
            tick_ms=settings.TICK_MS,
            suspense_ms=settings.SUSPENSE_MS,
            couples_switch_ms=settings.COUPLES_SWITCH_MS,
            post_reveal_ms=settings.POST_REVEAL_MS,
            single_timer_sec=settings.SINGLE_TIMER_SEC,
            couples_timer_sec=settings.COUPLES_TIMER_SEC,
        )


class StaleRound(Exception):
    """A newer round took over the hub."""


class RoundRunner:
    """
    Drives one TriviaRound on the event loop:
      preQuestion -> pause -> question (+ timer ticks) -> suspense -> reveal -> pause
    Couples questions run the question/reveal pair twice (self, then guess).

    Every emission first checks that this round's generation is still the
    hub's current one; the hub also cancels the task when superseded.
    """
    def __init__(
        self,
        *,
        hub: "HubService",
        round: TriviaRound,
        timings: RoundTimings,
        clock: Callable[[], int],
    ) -> None:
        self.hub = hub
        self.round = round
        self.timings = timings
        self.clock = clock
        self.task: Optional[asyncio.Task] = None

    @property
    def generation(self) -> int:
        return self.round.generation

    def start(self) -> asyncio.Task:
        self.task = asyncio.create_task(self.run(), name=f"trivia-round-{self.generation}")
        return self.task

    def cancel(self) -> None:
        if self.task is not None and not self.task.done():
            self.task.cancel()

    async def run(self) -> None:
        r = self.round
        logger.info("round %d started: %s, %d question(s)", self.generation, r.game_id, r.total)
        try:
            while await self._play_question():
                pass
            await self._finish()
        except StaleRound:
            logger.info("round %d superseded", self.generation)
        except asyncio.CancelledError:
            logger.info("round %d cancelled", self.generation)
            raise

    # ----------------------------
    # Steps
    # ----------------------------
    async def _play_question(self) -> bool:
        r = self.round
        if r.next_question() is None:
            return False

        self._publish_snapshot()
        title = COUPLES_SELF_TITLE if r.couples else title_of(r.game_id)
        await self._emit(OutPreQuestion(title=title, idx=r.number, total=r.total, timerSec=r.timer_sec))
        await self._sleep(self.timings.pre_question_ms)

        await self._run_phase()
        if r.couples:
            await self._sleep(self.timings.couples_switch_ms)
            r.start_guess()
            await self._run_phase()

        await self._sleep(self.timings.post_reveal_ms)
        return r.advance()

    async def _run_phase(self) -> None:
        r = self.round
        r.open_phase(self.clock())
        logger.debug("round %d: question %d/%d open (%s)", self.generation, r.number, r.total, r.phase_flag or "single")
        self._publish_snapshot()
        if r.jinxed and r.phase_flag is None:
            conn = self.hub.state.conn_of(r.jinxed)
            if conn is not None:
                await self._emit_to(conn, OutYouAreJinxed())
        await self._emit(self._question_event())

        while True:
            await self._sleep(self.timings.tick_ms)
            left = r.remaining_ms(self.clock())
            await self._emit(OutTimer(left=left, total=r.timer_sec * 1000))
            if left <= 0 or r.all_answered(self.hub.state.connected_pids()):
                break

        r.begin_reveal()
        self._publish_snapshot()
        await self._sleep(self.timings.suspense_ms)

        result = r.reveal()
        self._publish_snapshot()
        if r.couples:
            ev = OutCsReveal(
                correct=result.correct,
                scores=dict(r.scores),
                picks=result.picks,
                scoreChanges=result.score_changes,
                phaseFlag=result.phase_flag,
            )
        else:
            ev = OutLbReveal(
                correct=result.correct,
                scores=dict(r.scores),
                picks=result.picks,
                scoreChanges=result.score_changes,
                afk={pid: n for pid, n in r.afk.items() if n >= AFK_REPORT_AFTER},
            )
        await self._emit(ev)

    async def _finish(self) -> None:
        r = self.round
        over = OutCsGameOver(scores=dict(r.scores)) if r.couples else OutLbGameOver(scores=dict(r.scores))
        await self._emit(over)
        logger.info("round %d finished: %s", self.generation, r.scores)
        await self.hub.finish_round(self)

    # ----------------------------
    # Helpers
    # ----------------------------
    def _question_event(self):
        r = self.round
        fields = dict(
            q=r.question.public() if r.question else {},
            idx=r.number,
            total=r.total,
            endsAt=r.ends_at,
            timerSec=r.timer_sec,
        )
        if not r.couples:
            return OutLbQuestion(title=title_of(r.game_id), **fields)
        if r.phase_flag == "self":
            return OutCsSelf(title=COUPLES_SELF_TITLE, **fields)
        return OutCsGuess(title=COUPLES_GUESS_TITLE, **fields)

    def _check_current(self) -> None:
        if not self.hub.is_current(self.generation):
            raise StaleRound()

    def _publish_snapshot(self) -> None:
        self._check_current()
        self.hub.state.last_snapshot = {
            "display": self.round.snapshot(for_display=True),
            "controller": self.round.snapshot(),
        }

    async def _emit(self, event) -> None:
        self._check_current()
        await self.hub.out.broadcast(event.model_dump())

    async def _emit_to(self, conn_id: str, event) -> None:
        self._check_current()
        await self.hub.out.send_to(conn_id, event.model_dump())

    async def _sleep(self, ms: int) -> None:
        await asyncio.sleep(max(0, ms) / 1000)
        self._check_current()
