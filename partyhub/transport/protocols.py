# partyhub/transport/protocols.py
from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional, Union
from pydantic import BaseModel, Field

from partyhub.domain.common.types import OptionLabel, PhaseFlag


# =========================
# Shared
# =========================

class InBase(BaseModel):
    type: str


class OutBase(BaseModel):
    type: str


class OutError(OutBase):
    type: Literal["error"] = "error"
    code: str
    message: str


# =========================
# Pong: Incoming (Client -> Server)
# =========================

class PongInput(BaseModel):
    left: bool = False
    right: bool = False
    up: bool = False
    down: bool = False
    action: bool = False


class InCreateRoom(InBase):
    type: Literal["createRoom"] = "createRoom"


class InJoinRoom(InBase):
    type: Literal["joinRoom"] = "joinRoom"
    room: str = Field(min_length=1, max_length=12)


class InLeaveRoom(InBase):
    type: Literal["leaveRoom"] = "leaveRoom"
    room: str = Field(min_length=1, max_length=12)


class InPongStartGame(InBase):
    type: Literal["startGame"] = "startGame"
    room: str = Field(min_length=1, max_length=12)
    mode: str = Field(default="classic", max_length=32)


class InInput(InBase):
    """
    Any client-side player number is ignored; the server stamps its own.
    """
    type: Literal["input"] = "input"
    room: str = Field(min_length=1, max_length=12)
    input: PongInput = Field(default_factory=PongInput)


PongIncoming = Union[
    InCreateRoom,
    InJoinRoom,
    InLeaveRoom,
    InPongStartGame,
    InInput,
]


# =========================
# Pong: Outgoing (Server -> Client)
# =========================

class OutRoomCreated(OutBase):
    type: Literal["roomCreated"] = "roomCreated"
    room: str


class OutJoinRoomResult(OutBase):
    type: Literal["joinRoomResult"] = "joinRoomResult"
    ok: bool
    room: Optional[str] = None
    player: Optional[int] = None
    error: Optional[str] = None


class OutRoomUpdate(OutBase):
    type: Literal["roomUpdate"] = "roomUpdate"
    slots: List[bool]


class OutRoomClosed(OutBase):
    type: Literal["roomClosed"] = "roomClosed"
    room: str


class OutPongStartGame(OutBase):
    type: Literal["startGame"] = "startGame"
    mode: str


class OutPlayerInput(OutBase):
    type: Literal["playerInput"] = "playerInput"
    player: int
    input: PongInput


PongOutgoing = Union[
    OutError,
    OutRoomCreated,
    OutJoinRoomResult,
    OutRoomUpdate,
    OutRoomClosed,
    OutPongStartGame,
    OutPlayerInput,
]


# =========================
# Hub: Incoming (Client -> Server)
# =========================

# ---- Presence ----

class InRegisterTV(InBase):
    type: Literal["registerTV"] = "registerTV"


class InJoinHub(InBase):
    type: Literal["joinHub"] = "joinHub"
    name: Optional[str] = None  # capped by clean_name
    pid: Optional[str] = Field(default=None, max_length=64)


class InSetName(InBase):
    type: Literal["setName"] = "setName"
    pid: Optional[str] = None
    name: Optional[str] = None


class InSetReady(InBase):
    type: Literal["setReady"] = "setReady"
    pid: Optional[str] = None
    ready: bool = True


class InLeave(InBase):
    type: Literal["leave"] = "leave"
    pid: Optional[str] = None


# ---- Host controls ----

class InChooseGame(InBase):
    type: Literal["chooseGame"] = "chooseGame"
    id: str = Field(min_length=1, max_length=64)


class InHubStartGame(InBase):
    type: Literal["startGame"] = "startGame"
    rounds: Optional[int] = Field(default=None, ge=1, le=100)


class InRefreshHub(InBase):
    type: Literal["refreshHub"] = "refreshHub"


class InLeaveGame(InBase):
    type: Literal["leaveGame"] = "leaveGame"


class InTvControl(InBase):
    type: Literal["tvControl"] = "tvControl"
    action: str = Field(min_length=1, max_length=32)
    data: Any = None
    pid: Optional[str] = None


# ---- Answers ----

class InAnswer(InBase):
    type: Literal["answer"] = "answer"
    pid: Optional[str] = None
    choice: OptionLabel


class InAnswerCouplesPhase(InBase):
    type: Literal["answerCouplesPhase"] = "answerCouplesPhase"
    pid: Optional[str] = None
    choice: OptionLabel


HubIncoming = Union[
    InRegisterTV,
    InJoinHub,
    InSetName,
    InSetReady,
    InLeave,
    InChooseGame,
    InHubStartGame,
    InRefreshHub,
    InLeaveGame,
    InTvControl,
    InAnswer,
    InAnswerCouplesPhase,
]


# =========================
# Hub: Outgoing (Server -> Client)
# =========================

class OutHubState(OutBase):
    type: Literal["hubState"] = "hubState"
    code: str
    players: List[Dict[str, Any]]
    currentGame: Optional[str] = None
    availability: Dict[str, Dict[str, Any]]
    host: Optional[str] = None


class OutJoined(OutBase):
    type: Literal["joined"] = "joined"
    pid: str
    name: str
    code: str


class OutGameSelected(OutBase):
    type: Literal["gameSelected"] = "gameSelected"
    id: str
    meta: Optional[Dict[str, Any]] = None


class OutRestoreSnapshot(OutBase):
    type: Literal["restoreSnapshot"] = "restoreSnapshot"
    snapshot: Dict[str, Any]


class OutToast(OutBase):
    type: Literal["toast"] = "toast"
    msg: str


class OutGameEnded(OutBase):
    type: Literal["gameEnded"] = "gameEnded"
    reason: str


class OutTvNavigate(OutBase):
    type: Literal["tvNavigate"] = "tvNavigate"
    action: str
    data: Any = None


# ---- Round ----

class OutPreQuestion(OutBase):
    type: Literal["preQuestion"] = "preQuestion"
    title: str
    idx: int
    total: int
    timerSec: int


class OutQuestionBase(OutBase):
    q: Dict[str, Any]  # question without the answer key
    idx: int
    total: int
    endsAt: int
    timerSec: int
    title: Optional[str] = None


class OutLbQuestion(OutQuestionBase):
    type: Literal["lbQuestion"] = "lbQuestion"


class OutCsSelf(OutQuestionBase):
    type: Literal["csSelf"] = "csSelf"


class OutCsGuess(OutQuestionBase):
    type: Literal["csGuess"] = "csGuess"


class OutYouAreJinxed(OutBase):
    """Sent only to the jinxed player; their pick will be swapped for a wrong one."""
    type: Literal["youAreJinxed"] = "youAreJinxed"
    jinxed: bool = True


class OutTimer(OutBase):
    type: Literal["timer"] = "timer"
    left: int
    total: int


class OutLbReveal(OutBase):
    type: Literal["lbReveal"] = "lbReveal"
    correct: str
    scores: Dict[str, int]
    picks: Dict[str, Optional[str]]
    scoreChanges: Dict[str, int] = Field(default_factory=dict)
    afk: Dict[str, int] = Field(default_factory=dict)


class OutCsReveal(OutBase):
    type: Literal["csReveal"] = "csReveal"
    correct: str
    scores: Dict[str, int]
    picks: Dict[str, Dict[str, Optional[str]]]
    scoreChanges: Dict[str, int] = Field(default_factory=dict)
    phaseFlag: Optional[PhaseFlag] = None


class OutLbGameOver(OutBase):
    type: Literal["lbGameOver"] = "lbGameOver"
    scores: Dict[str, int]


class OutCsGameOver(OutBase):
    type: Literal["csGameOver"] = "csGameOver"
    scores: Dict[str, int]


HubOutgoing = Union[
    OutError,
    OutHubState,
    OutJoined,
    OutGameSelected,
    OutRestoreSnapshot,
    OutToast,
    OutGameEnded,
    OutTvNavigate,
    OutPreQuestion,
    OutLbQuestion,
    OutCsSelf,
    OutCsGuess,
    OutYouAreJinxed,
    OutTimer,
    OutLbReveal,
    OutCsReveal,
    OutLbGameOver,
    OutCsGameOver,
]

OutgoingEvent = Union[PongOutgoing, HubOutgoing]


# =========================
# Parser helpers
# =========================

_PONG_BY_TYPE = {
    "createRoom": InCreateRoom,
    "joinRoom": InJoinRoom,
    "leaveRoom": InLeaveRoom,
    "startGame": InPongStartGame,
    "input": InInput,
}

_HUB_BY_TYPE = {
    "registerTV": InRegisterTV,
    "joinHub": InJoinHub,
    "setName": InSetName,
    "setReady": InSetReady,
    "leave": InLeave,
    "chooseGame": InChooseGame,
    "startGame": InHubStartGame,
    "refreshHub": InRefreshHub,
    "leaveGame": InLeaveGame,
    "tvControl": InTvControl,
    "answer": InAnswer,
    "answerCouplesPhase": InAnswerCouplesPhase,
}


def _parse(payload: Any, table: Dict[str, type]):
    if not isinstance(payload, dict):
        raise ValueError("Message must be a JSON object")

    t = payload.get("type")
    if not isinstance(t, str):
        raise ValueError("Missing/invalid type")

    cls = table.get(t)
    if cls is None:
        raise ValueError(f"Unknown message type: {t}")

    return cls.model_validate(payload)


def parse_pong_incoming(payload: Dict[str, Any]) -> PongIncoming:
    """
    Convert raw dict -> validated pong message model.
    Raises ValueError (pydantic ValidationError included) if invalid.
    """
    return _parse(payload, _PONG_BY_TYPE)


def parse_hub_incoming(payload: Dict[str, Any]) -> HubIncoming:
    """
    Convert raw dict -> validated hub message model.
    Raises ValueError (pydantic ValidationError included) if invalid.
    """
    return _parse(payload, _HUB_BY_TYPE)
