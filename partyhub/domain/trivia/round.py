# partyhub/domain/trivia/round.py
from __future__ import annotations

import random
from typing import Any, Dict, Iterable, List, Optional

from partyhub.domain.common.types import OptionLabel, Phase, PhaseFlag
from partyhub.domain.trivia.scoring import score_couples, score_single
from partyhub.store.models import Question, SubmittedAnswer


class RevealResult:
    def __init__(self, *, correct: str, picks: Dict[str, Any], score_changes: Dict[str, int], phase_flag: Optional[PhaseFlag]):
        self.correct = correct
        self.picks = picks
        self.score_changes = score_changes
        self.phase_flag = phase_flag


class TriviaRound:
    """
    One trivia game: a fixed question list walked through
    idle -> question -> reveal per question (couples: self, then guess).

    Holds no timers; RoundRunner drives it and supplies timestamps.
    """
    def __init__(
        self,
        *,
        game_id: str,
        questions: List[Question],
        participants: List[str],
        timer_sec: int,
        couples: bool,
        generation: int = 0,
        jinx: bool = False,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.game_id = game_id
        self.questions = list(questions)
        self.participants = list(participants)
        self.timer_sec = timer_sec
        self.couples = couples
        self.generation = generation
        self.jinx = jinx
        self.rng = rng or random.Random()

        self.index = 0
        self.total = len(self.questions)
        self.scores: Dict[str, int] = {pid: 0 for pid in self.participants}
        self.afk: Dict[str, int] = {pid: 0 for pid in self.participants}
        self.phase: Phase = "idle"
        self.phase_flag: Optional[PhaseFlag] = "self" if couples else None
        self.ends_at = 0
        self.question: Optional[Question] = None
        self.answers: Dict[str, SubmittedAnswer] = {}
        self.self_picks: Dict[str, SubmittedAnswer] = {}
        self.jinxed: Optional[str] = None

    @property
    def number(self) -> int:
        """1-based question number shown to players."""
        return self.index + 1

    @property
    def couple(self) -> List[str]:
        return self.participants[:2]

    @property
    def finished(self) -> bool:
        return self.index >= self.total

    # ----------------------------
    # Transitions
    # ----------------------------
    def next_question(self) -> Optional[Question]:
        if self.finished:
            self.question = None
            return None
        self.question = self.questions[self.index]
        self.answers = {}
        self.self_picks = {}
        self.phase = "idle"
        self.phase_flag = "self" if self.couples else None
        self.ends_at = 0
        self.jinxed = self.rng.choice(self.participants) if self.jinx and self.participants else None
        return self.question

    def open_phase(self, now: int) -> None:
        self.phase = "question"
        self.ends_at = now + self.timer_sec * 1000

    def start_guess(self) -> None:
        """Couples only: same question, partner-guess sub-phase."""
        self.phase = "idle"
        self.phase_flag = "guess"
        self.answers = {}

    def begin_reveal(self) -> None:
        self.phase = "reveal"

    def advance(self) -> bool:
        """Move past the current question. True when more questions remain."""
        self.index += 1
        return not self.finished

    # ----------------------------
    # Answers
    # ----------------------------
    def can_answer(self, pid: str) -> bool:
        if self.phase != "question":
            return False
        eligible = self.couple if self.couples else self.participants
        return pid in eligible and pid not in self.answers

    def submit(self, pid: str, choice: OptionLabel, now: int) -> bool:
        """First answer per pid per phase wins. Returns False when ignored."""
        if not self.can_answer(pid):
            return False
        if pid == self.jinxed and self.question is not None:
            choice = self.rng.choice([o for o in ("A", "B", "C", "D") if o != self.question.correct])
        self.answers[pid] = SubmittedAnswer(choice=choice, at=now)
        return True

    def remaining_ms(self, now: int) -> int:
        return max(0, self.ends_at - now)

    def all_answered(self, connected: Iterable[str]) -> bool:
        """Every connected eligible player has answered this phase."""
        eligible = self.couple if self.couples else self.participants
        online = set(connected)
        waiting = [pid for pid in eligible if pid in online]
        return all(pid in self.answers for pid in waiting)

    # ----------------------------
    # Reveal
    # ----------------------------
    def reveal(self) -> RevealResult:
        """
        Score the phase that just closed and fold its answers into the totals.
        """
        q = self.question
        correct = q.correct if q else ""

        if self.couples:
            if self.phase_flag == "self":
                self.self_picks = dict(self.answers)
                changes: Dict[str, int] = {}
            else:
                changes = score_couples(self.couple, self.self_picks, self.answers)
            picks = {
                pid: {
                    "self": self.self_picks[pid].choice if pid in self.self_picks else None,
                    "guess": self.answers[pid].choice if self.phase_flag == "guess" and pid in self.answers else None,
                }
                for pid in self.couple
            }
        else:
            changes = score_single(q, self.answers, self.ends_at) if q else {}
            for pid in self.participants:
                if pid in self.answers:
                    self.afk[pid] = 0
                else:
                    self.afk[pid] = self.afk.get(pid, 0) + 1
            picks = {pid: self.answers[pid].choice if pid in self.answers else None for pid in self.participants}

        for pid, pts in changes.items():
            self.scores[pid] = self.scores.get(pid, 0) + pts

        return RevealResult(correct=correct, picks=picks, score_changes=changes, phase_flag=self.phase_flag)

    # ----------------------------
    # Snapshots
    # ----------------------------
    def snapshot(self, *, for_display: bool = False) -> Dict[str, Any]:
        snap: Dict[str, Any] = {
            "phase": self.phase,
            "phaseFlag": self.phase_flag,
            "idx": self.number,
            "total": self.total,
            "endsAt": self.ends_at,
            "gameId": self.game_id,
            "timerSec": self.timer_sec,
            "currentQuestion": self.question.public() if self.question else None,
        }
        if for_display:
            snap["scores"] = dict(self.scores)
            snap["answered"] = sorted(self.answers)
        return snap
