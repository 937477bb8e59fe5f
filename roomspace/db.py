from __future__ import annotations

import logging
from typing import Optional

import asyncpg

from roomspace.config import Settings, settings as default_settings

log = logging.getLogger(__name__)

_pool: Optional[asyncpg.Pool] = None


class DatabaseNotConfiguredError(RuntimeError):
    """DATABASE_URL is missing; raised lazily on first pool use."""


async def get_pool(settings: Optional[Settings] = None) -> asyncpg.Pool:
    global _pool
    if _pool is not None:
        return _pool

    cfg = settings or default_settings
    db_url = (cfg.DATABASE_URL or "").strip()
    if not db_url:
        raise DatabaseNotConfiguredError("DATABASE_URL is not set")

    _pool = await asyncpg.create_pool(
        dsn=db_url,
        min_size=cfg.DB_POOL_MIN_SIZE,
        max_size=cfg.DB_POOL_MAX_SIZE,
        command_timeout=cfg.DB_COMMAND_TIMEOUT,
    )
    log.info("db pool ready", extra={"min_size": cfg.DB_POOL_MIN_SIZE, "max_size": cfg.DB_POOL_MAX_SIZE})
    return _pool


async def close_pool() -> None:
    global _pool
    if _pool is not None:
        await _pool.close()
        _pool = None
