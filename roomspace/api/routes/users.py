from __future__ import annotations

from fastapi import APIRouter, Depends

from roomspace.api.deps import CurrentUser, get_current_user, get_store
from roomspace.errors import NotConfiguredError, NotFoundError
from roomspace.repos.base_repo import ResourceStore
from roomspace.services.shaper import shape_account

router = APIRouter()


@router.get("/profile")
async def get_profile(
    user: CurrentUser = Depends(get_current_user),
    store: ResourceStore = Depends(get_store),
):
    account = await store.get_account(user.id)
    if not account:
        raise NotFoundError("User not found")
    return {"user": shape_account(account)}


@router.put("/profile")
async def update_profile(user: CurrentUser = Depends(get_current_user)):
    raise NotConfiguredError("Profile editing not implemented yet")
