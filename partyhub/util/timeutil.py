from __future__ import annotations

import time


def now_ts() -> int:
    """Wall-clock seconds."""
    return int(time.time())


def now_ms() -> int:
    """Wall-clock milliseconds; round deadlines and answer stamps use this."""
    return int(time.time() * 1000)
