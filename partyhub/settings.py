# partyhub/settings.py
from __future__ import annotations

from pydantic import BaseModel
import os


class Settings(BaseModel):
    APP_NAME: str = "party-hub"

    # Server
    HOST: str = "0.0.0.0"
    PONG_PORT: int = 3000
    HUB_PORT: int = 3001

    # Dev
    LOG_LEVEL: str = "INFO"

    # WebSocket origin policy (comma-separated)
    WS_ALLOWED_ORIGINS: str = "http://localhost:3000,http://127.0.0.1:3000,http://localhost:3001,http://127.0.0.1:3001,null"
    # Phones join over the LAN: allow any private IP origin
    WS_ALLOW_LAN_ORIGINS: bool = True

    # Trivia content
    PACKS_DIR: str = "data/packs"
    DEFAULT_ROUNDS: int = 10

    # Round pacing (milliseconds unless noted)
    PRE_QUESTION_MS: int = 1000
    TICK_MS: int = 120
    SUSPENSE_MS: int = 800
    COUPLES_SWITCH_MS: int = 500
    POST_REVEAL_MS: int = 2400
    SINGLE_TIMER_SEC: int = 12
    COUPLES_TIMER_SEC: int = 20


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes", "y", "on")


def get_settings() -> Settings:
    return Settings(
        APP_NAME=os.getenv("APP_NAME", "party-hub"),
        HOST=os.getenv("HOST", "0.0.0.0"),
        PONG_PORT=int(os.getenv("PONG_PORT", "3000")),
        HUB_PORT=int(os.getenv("HUB_PORT", "3001")),
        LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO"),

        WS_ALLOWED_ORIGINS=os.getenv(
            "WS_ALLOWED_ORIGINS",
            "http://localhost:3000,http://127.0.0.1:3000,http://localhost:3001,http://127.0.0.1:3001,null",
        ),
        WS_ALLOW_LAN_ORIGINS=_flag("WS_ALLOW_LAN_ORIGINS", "true"),

        PACKS_DIR=os.getenv("PACKS_DIR", "data/packs"),
        DEFAULT_ROUNDS=int(os.getenv("DEFAULT_ROUNDS", "10")),

        PRE_QUESTION_MS=int(os.getenv("PRE_QUESTION_MS", "1000")),
        TICK_MS=int(os.getenv("TICK_MS", "120")),
        SUSPENSE_MS=int(os.getenv("SUSPENSE_MS", "800")),
        COUPLES_SWITCH_MS=int(os.getenv("COUPLES_SWITCH_MS", "500")),
        POST_REVEAL_MS=int(os.getenv("POST_REVEAL_MS", "2400")),
        SINGLE_TIMER_SEC=int(os.getenv("SINGLE_TIMER_SEC", "12")),
        COUPLES_TIMER_SEC=int(os.getenv("COUPLES_TIMER_SEC", "20")),
    )
