from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends

from roomspace.api.deps import CurrentUser, get_current_user, get_design_generator, get_store
from roomspace.domain.enums import RoomType
from roomspace.domain.models import DesignCopyIn, DesignGenerateIn, DesignUpdateIn
from roomspace.repos.base_repo import Record, ResourceStore
from roomspace.services.design_generator import DesignGenerator
from roomspace.services.shaper import design_record, design_update_patch, shape_design, shape_room

log = logging.getLogger(__name__)

router = APIRouter()

STYLE_SUGGESTIONS: Dict[str, List[Dict[str, str]]] = {
    RoomType.living_room.value: [
        {"name": "Modern", "description": "Clean lines, neutral colors, minimalist furniture"},
        {"name": "Scandinavian", "description": "Light woods, whites, cozy textiles"},
        {"name": "Industrial", "description": "Metal accents, exposed brick, dark colors"},
        {"name": "Bohemian", "description": "Rich colors, patterns, eclectic mix"},
        {"name": "Traditional", "description": "Classic furniture, warm colors, formal layout"},
    ],
    RoomType.bedroom.value: [
        {"name": "Minimalist", "description": "Simple, uncluttered, neutral palette"},
        {"name": "Romantic", "description": "Soft colors, flowing fabrics, vintage touches"},
        {"name": "Modern", "description": "Sleek furniture, bold accents, functional design"},
        {"name": "Rustic", "description": "Natural materials, warm tones, cozy atmosphere"},
    ],
    RoomType.kitchen.value: [
        {"name": "Modern", "description": "Sleek appliances, clean surfaces, functional layout"},
        {"name": "Farmhouse", "description": "Natural materials, vintage elements, warm colors"},
        {"name": "Contemporary", "description": "Latest trends, innovative storage, bold features"},
        {"name": "Traditional", "description": "Classic cabinetry, timeless colors, formal design"},
    ],
}


async def _own_room(store: ResourceStore, owner_id: str, room_id: Optional[str]) -> Optional[Record]:
    """The design's room if it still exists; rooms can be deleted independently."""
    if not room_id:
        return None
    rows = await store.rooms.list(owner_id, filters={"id": str(room_id)}, order_by=None, limit=1)
    return rows[0] if rows else None


# -------------------------
# Generation
# -------------------------
@router.post("/generate")
async def generate_design(
    req: DesignGenerateIn,
    user: CurrentUser = Depends(get_current_user),
    store: ResourceStore = Depends(get_store),
    generator: DesignGenerator = Depends(get_design_generator),
) -> Dict[str, Any]:
    room = await store.rooms.get(user.id, req.room_id)

    payload = await generator.generate_design(
        shape_room(room, include_scan=False), req.style, req.budget, req.preferences
    )
    row = await store.designs.create(
        user.id,
        design_record(room_id=room["id"], style=req.style.value, budget=req.budget, payload=payload),
    )
    log.info(
        "design generated",
        extra={
            "owner_id": user.id,
            "resource_id": row["id"],
            "room_id": room["id"],
            "fallback": payload.error is not None,
        },
    )
    return {"message": "Design generated successfully", "design": shape_design(row, room=room)}


# -------------------------
# Collection views
# -------------------------
@router.get("")
async def list_designs(
    user: CurrentUser = Depends(get_current_user),
    store: ResourceStore = Depends(get_store),
) -> Dict[str, Any]:
    rows = await store.designs.list(user.id)
    rooms = {r["id"]: r for r in await store.rooms.list(user.id, order_by=None)}
    return {"designs": [shape_design(d, room=rooms.get(d.get("room_id"))) for d in rows]}


@router.get("/favorites")
async def list_favorite_designs(
    user: CurrentUser = Depends(get_current_user),
    store: ResourceStore = Depends(get_store),
) -> Dict[str, Any]:
    rows = await store.designs.list(user.id, filters={"is_favorite": True}, order_by="updated_at")
    rooms = {r["id"]: r for r in await store.rooms.list(user.id, order_by=None)}
    return {"designs": [shape_design(d, room=rooms.get(d.get("room_id"))) for d in rows]}


@router.get("/styles/{room_type}")
async def style_suggestions(room_type: str) -> Dict[str, Any]:
    styles = STYLE_SUGGESTIONS.get(room_type, STYLE_SUGGESTIONS[RoomType.living_room.value])
    return {"roomType": room_type, "styles": styles}


# -------------------------
# Single design
# -------------------------
@router.get("/{design_id}")
async def get_design(
    design_id: str,
    user: CurrentUser = Depends(get_current_user),
    store: ResourceStore = Depends(get_store),
) -> Dict[str, Any]:
    row = await store.designs.get(user.id, design_id)
    room = await _own_room(store, user.id, row.get("room_id"))
    return {"design": shape_design(row, room=room, include_scan=True)}


@router.put("/{design_id}")
async def update_design(
    design_id: str,
    req: DesignUpdateIn,
    user: CurrentUser = Depends(get_current_user),
    store: ResourceStore = Depends(get_store),
) -> Dict[str, Any]:
    current = await store.designs.get(user.id, design_id)
    patch = design_update_patch(req, current)
    row = await store.designs.update(user.id, design_id, patch)
    room = await _own_room(store, user.id, row.get("room_id"))
    return {"message": "Design updated successfully", "design": shape_design(row, room=room)}


@router.delete("/{design_id}")
async def delete_design(
    design_id: str,
    user: CurrentUser = Depends(get_current_user),
    store: ResourceStore = Depends(get_store),
) -> Dict[str, Any]:
    await store.designs.delete(user.id, design_id)
    log.info("design deleted", extra={"owner_id": user.id, "resource_id": design_id})
    return {"message": "Design deleted successfully"}


@router.post("/{design_id}/copy", status_code=201)
async def copy_design(
    design_id: str,
    req: Optional[DesignCopyIn] = Body(default=None),
    user: CurrentUser = Depends(get_current_user),
    store: ResourceStore = Depends(get_store),
) -> Dict[str, Any]:
    src = await store.designs.get(user.id, design_id)
    req = req or DesignCopyIn()

    record: Record = {
        "room_id": src.get("room_id"),
        "style": req.new_style.value if req.new_style else src.get("style"),
        "budget_min": req.new_budget.min if req.new_budget else src.get("budget_min"),
        "budget_max": req.new_budget.max if req.new_budget else src.get("budget_max"),
        "design_data": src.get("design_data"),
        "furniture_items": src.get("furniture_items"),
        "total_cost": src.get("total_cost"),
        "custom_layout": src.get("custom_layout"),
        "is_favorite": False,
        "notes": f"Copy of design #{design_id}",
    }
    row = await store.designs.create(user.id, record)
    room = await _own_room(store, user.id, row.get("room_id"))
    log.info("design copied", extra={"owner_id": user.id, "resource_id": row["id"], "source_id": design_id})
    return {"message": "Design copied successfully", "design": shape_design(row, room=room)}
