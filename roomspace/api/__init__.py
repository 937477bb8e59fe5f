from __future__ import annotations

from fastapi import APIRouter

from .health import router as health_router
from .routes.auth import router as auth_router
from .routes.designs import router as designs_router
from .routes.products import router as products_router
from .routes.rooms import router as rooms_router
from .routes.users import router as users_router


def build_router() -> APIRouter:
    router = APIRouter()
    router.include_router(health_router, prefix="/api/health", tags=["health"])
    router.include_router(auth_router, prefix="/api/auth", tags=["auth"])
    router.include_router(users_router, prefix="/api/users", tags=["users"])
    router.include_router(rooms_router, prefix="/api/rooms", tags=["rooms"])
    router.include_router(designs_router, prefix="/api/designs", tags=["designs"])
    router.include_router(products_router, prefix="/api/products", tags=["products"])

    return router
