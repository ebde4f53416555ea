# partyhub/domain/common/events.py
from __future__ import annotations

"""
Common event helpers.
Events are defined in partyhub/transport/protocols.py as OutgoingEvent types.
Handlers return events; timer-driven code pushes them through a Broadcaster.
"""

from typing import Any, Dict, Iterable, List, Protocol


class Broadcaster(Protocol):
    async def broadcast(self, event: Dict[str, Any], exclude: str | None = None) -> None: ...

    async def send_to(self, conn_id: str, event: Dict[str, Any]) -> None: ...


def dump(events: Iterable[Any]) -> List[Dict[str, Any]]:
    """
    Convert pydantic events -> JSON dicts. Plain dicts pass through.
    """
    return [e.model_dump() if hasattr(e, "model_dump") else e for e in events]


def targeted(event: Any, conn_ids: Iterable[str]) -> Dict[str, Any]:
    """
    Room/hub event delivered only to the given connections.
    The transport strips `targets` before sending.
    """
    return {**event.model_dump(), "targets": [c for c in conn_ids if c]}
