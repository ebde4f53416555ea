# partyhub/domain/common/types.py
from __future__ import annotations

from typing import Literal

OptionLabel = Literal["A", "B", "C", "D"]
Phase = Literal["idle", "question", "reveal"]
PhaseFlag = Literal["self", "guess"]

ROOM_SLOTS = 4
NAME_MAX_LEN = 16
DEFAULT_NAME = "Player"
