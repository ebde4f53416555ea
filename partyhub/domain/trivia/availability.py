# partyhub/domain/trivia/availability.py
from __future__ import annotations

from typing import Dict, Optional

from partyhub.store.models import AvailabilityRule

COUPLES_PREFIX = "couples."

_PARTY = AvailabilityRule(min=2, max=10, label="2-10 players")
_COUPLES = AvailabilityRule(min=2, max=2, label="Exactly 2 players")

AVAILABILITY: Dict[str, AvailabilityRule] = {
    # party (2-10)
    "party.quick-quiz": _PARTY,
    "party.finish-phrase": _PARTY,
    "party.fact-fiction": _PARTY,
    "party.phone-confessions": _PARTY,
    "party.answer-roulette": AvailabilityRule(min=3, max=10, label="3-10 players"),
    "party.lie-detector": _PARTY,
    "party.buzzkill": _PARTY,
    # couples (exactly 2)
    "couples.how-good": _COUPLES,
    "couples.survival": _COUPLES,
    "couples.finish-phrase": _COUPLES,
    "couples.relationship": _COUPLES,
    "couples.secret-sync": _COUPLES,
}

TITLES: Dict[str, str] = {
    "party.quick-quiz": "Quick Quiz Royale",
    "party.finish-phrase": "Finish the Phrase",
    "party.fact-fiction": "Fact or Fiction?",
    "party.phone-confessions": "Phone Confessions",
    "party.answer-roulette": "Answer Roulette",
    "party.lie-detector": "Lie Detector",
    "party.buzzkill": "Buzzkill Bonus Round",
}

# one random player per question has their pick swapped for a wrong one
JINX_MODES = {"party.answer-roulette"}

COUPLES_SELF_TITLE = "Couples: Your Answer"
COUPLES_GUESS_TITLE = "Couples: Guess Partner"


def get_rule(game_id: Optional[str]) -> Optional[AvailabilityRule]:
    if not game_id:
        return None
    return AVAILABILITY.get(game_id)


def availability_table() -> Dict[str, dict]:
    return {k: v.model_dump() for k, v in AVAILABILITY.items()}


def check_player_count(game_id: Optional[str], n: int) -> tuple[bool, Optional[str]]:
    """
    Can a round of game_id start with n players?
    Returns (ok, advisory_message)
    """
    rule = get_rule(game_id)
    if rule is None:
        return False, "Pick a game first"
    if n < rule.min or n > rule.max:
        return False, f"Party is {n}. {rule.label} required."
    return True, None


def is_couples(game_id: Optional[str]) -> bool:
    return bool(game_id) and game_id.startswith(COUPLES_PREFIX)


def has_jinx(game_id: Optional[str]) -> bool:
    return game_id in JINX_MODES


def title_of(game_id: Optional[str]) -> str:
    return TITLES.get(game_id or "", "Trivia")
