from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional

from pydantic import ValidationError as PydanticValidationError

from roomspace.domain.models import (
    Budget,
    DesignPayload,
    DesignUpdateIn,
    FavoriteIn,
    FurnitureItem,
    RoomScanIn,
)
from roomspace.errors import ValidationError, format_validation_error
from roomspace.repos.base_repo import Record, decode_blob, encode_blob, iso

# -----------------------------------------------------------------------------
# Write side: validated input -> stored record
# -----------------------------------------------------------------------------


def room_record(req: RoomScanIn) -> Record:
    return {
        "name": req.name,
        "dimensions": encode_blob(req.dimensions.model_dump()),
        "scan_data": encode_blob(req.scan_data),
        "room_type": req.room_type.value,
        "budget_min": req.budget.min,
        "budget_max": req.budget.max,
        "style": req.style.value,
    }


def compute_total_cost(items: Iterable[Mapping[str, Any]]) -> float:
    total = 0.0
    for it in items:
        price = it.get("estimatedPrice", it.get("estimated_price", 0)) or 0
        total += float(price)
    return round(total, 2)


def _items_to_wire(items: Iterable[FurnitureItem]) -> List[Dict[str, Any]]:
    return [i.model_dump(mode="json", by_alias=True, exclude_none=True) for i in items]


def design_record(*, room_id: str, style: str, budget: Budget, payload: DesignPayload) -> Record:
    wire = payload.to_wire()
    return {
        "room_id": room_id,
        "style": style,
        "budget_min": budget.min,
        "budget_max": budget.max,
        "design_data": encode_blob(wire),
        "furniture_items": encode_blob(wire.get("furnitureItems", [])),
        "total_cost": payload.total_cost,
        "is_favorite": False,
        "notes": None,
        "custom_layout": None,
    }


def design_update_patch(req: DesignUpdateIn, current: Optional[Record] = None) -> Record:
    """
    Only fields the caller actually sent are written. Whenever the furniture
    list changes (directly or via customLayout.furnitureItems) total_cost is
    recomputed from it, and design_data.furnitureItems / design_data.totalCost
    are rewritten to match.
    """
    sent = req.model_fields_set
    patch: Record = {}

    if "notes" in sent:
        patch["notes"] = req.notes
    if "is_favorite" in sent:
        patch["is_favorite"] = bool(req.is_favorite)
    if "design_data" in sent:
        patch["design_data"] = encode_blob(req.design_data or {})

    items: Optional[List[Dict[str, Any]]] = None
    if "custom_layout" in sent:
        layout = req.custom_layout
        patch["custom_layout"] = encode_blob(layout)
        if isinstance(layout, dict) and "furnitureItems" in layout:
            items = _validate_items(layout.get("furnitureItems"), prefix="customLayout.furnitureItems")
    if "furniture_items" in sent:
        items = _items_to_wire(req.furniture_items or [])

    if items is not None:
        total = compute_total_cost(items)
        patch["furniture_items"] = encode_blob(items)
        patch["total_cost"] = total

        if "design_data" in sent:
            data = dict(req.design_data or {})
        else:
            data = decode_blob((current or {}).get("design_data"), default={})
            data = dict(data) if isinstance(data, dict) else {}
        data["furnitureItems"] = items
        data["totalCost"] = total
        patch["design_data"] = encode_blob(data)
    return patch


def _validate_items(raw: Any, *, prefix: str) -> List[Dict[str, Any]]:
    if not isinstance(raw, list):
        raise ValidationError(f'"{prefix}" must be an array')
    out: List[FurnitureItem] = []
    for i, entry in enumerate(raw):
        try:
            out.append(FurnitureItem.model_validate(entry))
        except PydanticValidationError as e:
            inner = format_validation_error(e.errors())
            raise ValidationError(f'"{prefix}.{i}": {inner}') from e
    return _items_to_wire(out)


def favorite_record(req: FavoriteIn) -> Record:
    return {
        "product_asin": req.asin,
        "product_title": req.title,
        "product_price": req.price,
        "product_image_url": req.image_url,
        "design_id": str(req.design_id) if req.design_id else None,
    }


# -----------------------------------------------------------------------------
# Read side: stored record -> wire
# -----------------------------------------------------------------------------


def shape_room(row: Record, *, include_scan: bool = True) -> Dict[str, Any]:
    out: Dict[str, Any] = {
        "id": row.get("id"),
        "user_id": row.get("user_id"),
        "name": row.get("name"),
        "room_type": row.get("room_type"),
        "style": row.get("style"),
        "dimensions": decode_blob(row.get("dimensions"), default={}),
        "budget_min": row.get("budget_min"),
        "budget_max": row.get("budget_max"),
        "budget": {"min": row.get("budget_min"), "max": row.get("budget_max")},
        "created_at": iso(row.get("created_at")),
        "updated_at": iso(row.get("updated_at")),
    }
    if include_scan:
        out["scan_data"] = decode_blob(row.get("scan_data"))
    return out


def _room_summary(room: Optional[Record], *, include_scan: bool) -> Optional[Dict[str, Any]]:
    if not room:
        return None
    out = {
        "id": room.get("id"),
        "name": room.get("name"),
        "room_type": room.get("room_type"),
        "dimensions": decode_blob(room.get("dimensions"), default={}),
    }
    if include_scan:
        out["scan_data"] = decode_blob(room.get("scan_data"))
    return out


def shape_design(
    row: Record,
    *,
    room: Optional[Record] = None,
    include_scan: bool = False,
) -> Dict[str, Any]:
    # a nested room is only ever the caller's own
    if room and room.get("user_id") != row.get("user_id"):
        room = None
    return {
        "id": row.get("id"),
        "user_id": row.get("user_id"),
        "room_id": row.get("room_id"),
        "style": row.get("style"),
        "budget_min": row.get("budget_min"),
        "budget_max": row.get("budget_max"),
        "design_data": decode_blob(row.get("design_data"), default={}),
        "furniture_items": decode_blob(row.get("furniture_items"), default=[]),
        "total_cost": row.get("total_cost"),
        "is_favorite": bool(row.get("is_favorite")),
        "notes": row.get("notes"),
        "custom_layout": decode_blob(row.get("custom_layout")),
        "room_scans": _room_summary(room, include_scan=include_scan),
        "created_at": iso(row.get("created_at")),
        "updated_at": iso(row.get("updated_at")),
    }


def shape_favorite(row: Record) -> Dict[str, Any]:
    return {
        "id": row.get("id"),
        "user_id": row.get("user_id"),
        "product_asin": row.get("product_asin"),
        "product_title": row.get("product_title"),
        "product_price": row.get("product_price"),
        "product_image_url": row.get("product_image_url"),
        "design_id": row.get("design_id"),
        "created_at": iso(row.get("created_at")),
    }


def shape_account(row: Record) -> Dict[str, Any]:
    # never includes password_hash
    return {
        "id": row.get("id"),
        "email": row.get("email"),
        "firstName": row.get("first_name"),
        "lastName": row.get("last_name"),
        "createdAt": iso(row.get("created_at")),
    }
