# partyhub/store/models.py
from __future__ import annotations

from typing import List, Optional
from pydantic import BaseModel, Field

from partyhub.domain.common.types import OptionLabel, ROOM_SLOTS


class RoomStore(BaseModel):
    """
    Pong room. slots[i] holds the connection id of player i+1.
    """
    code: str
    display: Optional[str] = None
    slots: List[Optional[str]] = Field(default_factory=lambda: [None] * ROOM_SLOTS)
    created_at: int


class HubPlayerStore(BaseModel):
    pid: str
    name: str
    ready: bool = False
    seq: int  # join order, host tie-break


class Question(BaseModel):
    q: str
    A: str
    B: str
    C: str
    D: str
    correct: OptionLabel

    def public(self) -> dict:
        """Question without the answer key."""
        return self.model_dump(exclude={"correct"})


class SubmittedAnswer(BaseModel):
    choice: OptionLabel
    at: int  # ms


class AvailabilityRule(BaseModel):
    min: int
    max: int
    label: str
