# partyhub/__main__.py
from __future__ import annotations

import asyncio

import uvicorn

from partyhub.settings import get_settings


async def _serve() -> None:
    settings = get_settings()
    servers = [
        uvicorn.Server(uvicorn.Config("partyhub.main:pong_app", host=settings.HOST, port=settings.PONG_PORT,
                                      log_level=settings.LOG_LEVEL.lower())),
        uvicorn.Server(uvicorn.Config("partyhub.main:hub_app", host=settings.HOST, port=settings.HUB_PORT,
                                      log_level=settings.LOG_LEVEL.lower())),
    ]
    await asyncio.gather(*(s.serve() for s in servers))


if __name__ == "__main__":
    asyncio.run(_serve())
