# partyhub/domain/trivia/scoring.py
from __future__ import annotations

import math
from typing import Dict, Mapping, Sequence

from partyhub.store.models import Question, SubmittedAnswer

COUPLES_MATCH_POINTS = 5


def speed_points(ends_at: int, submitted_at: int) -> int:
    """Whole seconds left on the clock when the answer landed (rounded up)."""
    return max(0, math.ceil((ends_at - submitted_at) / 1000))


def score_single(question: Question, answers: Mapping[str, SubmittedAnswer], ends_at: int) -> Dict[str, int]:
    """
    Points earned this question, by pid. Wrong or missing answers earn nothing
    and are left out.
    """
    changes: Dict[str, int] = {}
    for pid, ans in answers.items():
        if ans.choice != question.correct:
            continue
        changes[pid] = speed_points(ends_at, ans.at)
    return changes


def score_couples(
    couple: Sequence[str],
    self_picks: Mapping[str, SubmittedAnswer],
    guesses: Mapping[str, SubmittedAnswer],
) -> Dict[str, int]:
    """
    Guess sub-phase scoring: a player who guessed the partner's own pick
    earns COUPLES_MATCH_POINTS.
    """
    changes: Dict[str, int] = {}
    if len(couple) < 2:
        return changes
    a, b = couple[0], couple[1]
    for guesser, partner in ((a, b), (b, a)):
        guess = guesses.get(guesser)
        own = self_picks.get(partner)
        if guess is not None and own is not None and guess.choice == own.choice:
            changes[guesser] = COUPLES_MATCH_POINTS
    return changes
