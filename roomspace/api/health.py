from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends

from roomspace.api.deps import get_settings, get_store
from roomspace.config import Settings
from roomspace.repos.base_repo import ResourceStore

router = APIRouter()

_STARTED_AT = time.time()


@router.get("")
async def health(settings: Settings = Depends(get_settings)) -> Dict[str, Any]:
    now = datetime.now(timezone.utc)
    return {
        "status": "ok",
        "service": settings.SERVICE_NAME,
        "version": settings.SERVICE_VERSION,
        "environment": settings.ENVIRONMENT,
        "mock_mode": settings.mock_mode,
        "services": settings.integrations(),
        "time_utc": now.isoformat(),
        "uptime_s": round(time.time() - _STARTED_AT, 3),
    }


@router.get("/ready")
async def ready(store: ResourceStore = Depends(get_store)) -> Dict[str, Any]:
    ok = await store.ping()
    return {"status": "ready" if ok else "degraded", "store": ok}
