from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request

from roomspace.api.deps import CurrentUser, get_current_user, get_product_search, get_store
from roomspace.domain.models import FavoriteIn, ProductSearchQuery, RecommendationsIn
from roomspace.domain.validators import parse_query
from roomspace.repos.base_repo import ResourceStore, decode_blob
from roomspace.services.product_search import ProductSearch, to_wire
from roomspace.services.shaper import favorite_record, shape_favorite

log = logging.getLogger(__name__)

router = APIRouter()


@router.get("/search")
async def search_products(
    request: Request,
    user: CurrentUser = Depends(get_current_user),
    search: ProductSearch = Depends(get_product_search),
) -> Dict[str, Any]:
    q = parse_query(ProductSearchQuery, request.query_params)
    products = await search.search_products(
        q.keywords,
        category=q.category,
        min_price=q.min_price,
        max_price=q.max_price,
        sort_by=q.sort_by,
    )
    return {"products": [to_wire(p) for p in products], "total": len(products)}


@router.get("/details/{asin}")
async def product_details(asin: str, user: CurrentUser = Depends(get_current_user)) -> Dict[str, Any]:
    # no live catalogue lookup yet
    return {"message": "Product details endpoint - implementation pending", "asin": asin, "placeholder": True}


@router.post("/recommendations")
async def recommendations(
    req: RecommendationsIn,
    user: CurrentUser = Depends(get_current_user),
    store: ResourceStore = Depends(get_store),
    search: ProductSearch = Depends(get_product_search),
) -> Dict[str, Any]:
    if req.design_id:
        design = await store.designs.get(user.id, req.design_id)
        items = decode_blob(design.get("furniture_items"), default=[]) or []
    else:
        items = req.furniture_items or []

    recs = await search.recommend_for_items(items)
    return {"message": "Furniture recommendations generated", "recommendations": recs, "total": len(recs)}


# -------------------------
# Product favourites
# -------------------------
@router.post("/favorites", status_code=201)
async def add_favorite(
    req: FavoriteIn,
    user: CurrentUser = Depends(get_current_user),
    store: ResourceStore = Depends(get_store),
) -> Dict[str, Any]:
    row = await store.favorites.create(user.id, favorite_record(req))
    log.info("favorite saved", extra={"owner_id": user.id, "resource_id": row["id"], "asin": req.asin})
    return {"message": "Product saved to favorites", "favorite": shape_favorite(row)}


@router.get("/favorites")
async def list_favorites(
    user: CurrentUser = Depends(get_current_user),
    store: ResourceStore = Depends(get_store),
) -> Dict[str, Any]:
    rows = await store.favorites.list(user.id)
    return {"favorites": [shape_favorite(r) for r in rows]}


@router.delete("/favorites/{asin}")
async def remove_favorite(
    asin: str,
    user: CurrentUser = Depends(get_current_user),
    store: ResourceStore = Depends(get_store),
) -> Dict[str, Any]:
    removed = await store.favorites.delete_where(user.id, {"product_asin": asin})
    log.info("favorite removed", extra={"owner_id": user.id, "asin": asin, "removed": removed})
    return {"message": "Product removed from favorites"}
