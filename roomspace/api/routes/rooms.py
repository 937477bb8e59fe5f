from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends

from roomspace.api.deps import CurrentUser, get_current_user, get_store
from roomspace.domain.models import RoomScanIn
from roomspace.repos.base_repo import ResourceStore
from roomspace.services.shaper import room_record, shape_room

log = logging.getLogger(__name__)

router = APIRouter()


@router.post("", status_code=201)
async def create_room(
    req: RoomScanIn,
    user: CurrentUser = Depends(get_current_user),
    store: ResourceStore = Depends(get_store),
) -> Dict[str, Any]:
    row = await store.rooms.create(user.id, room_record(req))
    log.info("room saved", extra={"owner_id": user.id, "resource_id": row["id"], "room_type": row.get("room_type")})
    return {"message": "Room scan saved successfully", "room": shape_room(row)}


@router.get("")
async def list_rooms(
    user: CurrentUser = Depends(get_current_user),
    store: ResourceStore = Depends(get_store),
) -> Dict[str, Any]:
    rows = await store.rooms.list(user.id)
    return {"rooms": [shape_room(r) for r in rows]}


@router.get("/{room_id}")
async def get_room(
    room_id: str,
    user: CurrentUser = Depends(get_current_user),
    store: ResourceStore = Depends(get_store),
) -> Dict[str, Any]:
    row = await store.rooms.get(user.id, room_id)
    return {"room": shape_room(row)}


@router.put("/{room_id}")
async def update_room(
    room_id: str,
    req: RoomScanIn,
    user: CurrentUser = Depends(get_current_user),
    store: ResourceStore = Depends(get_store),
) -> Dict[str, Any]:
    # full replacement: the body is the same shape as on create
    row = await store.rooms.update(user.id, room_id, room_record(req))
    return {"message": "Room updated successfully", "room": shape_room(row)}


@router.delete("/{room_id}")
async def delete_room(
    room_id: str,
    user: CurrentUser = Depends(get_current_user),
    store: ResourceStore = Depends(get_store),
) -> Dict[str, Any]:
    await store.rooms.delete(user.id, room_id)
    log.info("room deleted", extra={"owner_id": user.id, "resource_id": room_id})
    return {"message": "Room deleted successfully"}
