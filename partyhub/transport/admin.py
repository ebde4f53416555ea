from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request

pong_admin_router = APIRouter(prefix="/admin", tags=["admin"])
hub_admin_router = APIRouter(prefix="/admin", tags=["admin"])


@pong_admin_router.get("/rooms")
async def list_rooms(request: Request):
    """
    List all active pong rooms (debug/admin).
    """
    rooms = request.app.state.rooms
    out = []
    for room in rooms.list_rooms():
        occupied = rooms.occupancy(room.code)
        out.append(
            {
                "room_code": room.code,
                "slots": occupied,
                "players": sum(occupied),
                "has_display": room.display is not None,
                "created_at": room.created_at,
            }
        )
    return {"rooms": out}


@pong_admin_router.post("/rooms/{room_code}/close")
async def close_room(room_code: str, request: Request):
    """
    Force close a room (debug/admin). Deletes the room and closes its websockets.
    """
    rooms = request.app.state.rooms
    wsman = request.app.state.wsman

    members = rooms.members(room_code)
    room = rooms.delete(room_code)
    if room is None:
        raise HTTPException(status_code=404, detail="Room not found")

    for conn_id in members:
        await wsman.close(conn_id, code=4000)

    return {"ok": True, "room_code": room.code}


@hub_admin_router.get("/hub")
async def hub_status(request: Request):
    """
    Hub code, players, host and the running round (debug/admin).
    """
    return request.app.state.hub.status()
