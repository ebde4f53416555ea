# partyhub/main.py
from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from partyhub.settings import Settings, get_settings
from partyhub.domain.hub.service import HubService
from partyhub.domain.trivia.runner import RoundTimings
from partyhub.store.hub import HubState
from partyhub.store.packs import PackLoader
from partyhub.store.rooms import RoomRegistry
from partyhub.transport.admin import hub_admin_router, pong_admin_router
from partyhub.transport.ws import hub_router, pong_router
from partyhub.transport.ws_manager import WSManager


def _base_app(settings: Settings, title: str) -> FastAPI:
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(title=title)
    allowed_origins = [o.strip() for o in settings.WS_ALLOWED_ORIGINS.split(",") if o.strip()]
    if "null" not in allowed_origins:
        allowed_origins.append("null")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    return app


def create_pong_app() -> FastAPI:
    settings = get_settings()
    app = _base_app(settings, f"{settings.APP_NAME} pong")

    @app.on_event("startup")
    async def _startup() -> None:
        app.state.rooms = RoomRegistry()
        app.state.wsman = WSManager()

    @app.get("/health")
    async def health():
        return {"ok": True, "rooms": len(app.state.rooms.list_rooms())}

    app.include_router(pong_router)
    app.include_router(pong_admin_router)
    return app


def create_hub_app() -> FastAPI:
    settings = get_settings()
    app = _base_app(settings, f"{settings.APP_NAME} hub")

    @app.on_event("startup")
    async def _startup() -> None:
        wsman = WSManager()
        app.state.wsman = wsman
        app.state.hub = HubService(
            state=HubState(),
            packs=PackLoader(settings.PACKS_DIR),
            timings=RoundTimings.from_settings(settings),
            out=wsman,
            default_rounds=settings.DEFAULT_ROUNDS,
        )
        logging.getLogger(__name__).info("hub ready, code %s", app.state.hub.state.code)

    @app.on_event("shutdown")
    async def _shutdown() -> None:
        await app.state.hub.close()

    @app.get("/health")
    async def health():
        return {"ok": True, "hub": app.state.hub.state.code}

    app.include_router(hub_router)
    app.include_router(hub_admin_router)
    return app


pong_app = create_pong_app()
hub_app = create_hub_app()
