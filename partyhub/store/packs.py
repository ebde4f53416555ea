# partyhub/store/packs.py
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from partyhub.store.models import Question

logger = logging.getLogger(__name__)

MEGA_FILE = "all-trivia-mega.json"

# mode id -> category inside the mega file
PACK_CATEGORIES: Dict[str, str] = {
    "party.quick-quiz": "party-quick-quiz",
    "party.finish-phrase": "party-finish-the-phrase",
    "party.fact-fiction": "party-fact-or-fiction",
    "party.phone-confessions": "party-phone-confessions",
    "party.answer-roulette": "party-answer-roulette",
    "party.lie-detector": "party-lie-detector",
    "party.buzzkill": "party-buzzkill",
    "couples.how-good": "couples-know-me",
    "couples.survival": "couples-survival",
    "couples.finish-phrase": "couples-love-phrase",
    "couples.relationship": "couples-roulette",
    "couples.secret-sync": "couples-secret-sync",
}

# mode id -> standalone pack file
PACK_FILES: Dict[str, str] = {
    "party.quick-quiz": "party-quick-quiz.json",
    "party.finish-phrase": "party-finish-the-phrase.json",
    "party.fact-fiction": "party-fact-or-fiction.json",
    "party.phone-confessions": "party-phone-confessions.json",
    "party.answer-roulette": "party-answer-roulette.json",
    "party.lie-detector": "party-lie-detector.json",
    "party.buzzkill": "party-buzzkill.json",
    "couples.how-good": "couples-how-good.json",
    "couples.survival": "couples-survival.json",
    "couples.finish-phrase": "couples-finish-phrase.json",
    "couples.relationship": "couples-relationship-roulette.json",
    "couples.secret-sync": "couples-secret-sync.json",
}


class PackLoader:
    """
    Reads question packs from disk. Any problem degrades to an empty pack;
    a round with no questions simply ends.
    """
    def __init__(self, packs_dir: str | Path) -> None:
        self.packs_dir = Path(packs_dir)

    def load(self, game_id: str) -> List[Question]:
        category = PACK_CATEGORIES.get(game_id)
        if category is None:
            logger.warning("no pack registered for %s", game_id)
            return []

        mega = self._read(self.packs_dir / MEGA_FILE, quiet_missing=True)
        if mega:
            rows = [r for r in mega if isinstance(r, dict) and r.get("category") == category]
            if rows:
                return self._parse(rows, source=f"{MEGA_FILE}:{category}")

        fname = PACK_FILES.get(game_id)
        if fname is None:
            return []
        rows = self._read(self.packs_dir / fname) or []
        return self._parse(rows, source=fname)

    def _read(self, path: Path, quiet_missing: bool = False) -> Optional[List[Any]]:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            if not quiet_missing:
                logger.warning("pack file missing: %s", path)
            return None
        except (OSError, ValueError) as e:
            logger.warning("pack file unreadable: %s (%s)", path, e)
            return None
        if not isinstance(data, list):
            logger.warning("pack file is not a list: %s", path)
            return None
        return data

    def _parse(self, rows: List[Any], *, source: str) -> List[Question]:
        out: List[Question] = []
        skipped = 0
        for row in rows:
            if not isinstance(row, dict):
                skipped += 1
                continue
            try:
                out.append(Question.model_validate({k: v for k, v in row.items() if k != "category"}))
            except ValidationError:
                skipped += 1
        if skipped:
            logger.warning("pack %s: skipped %d invalid question(s)", source, skipped)
        logger.debug("pack %s: %d question(s)", source, len(out))
        return out
