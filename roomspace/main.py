from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from roomspace.api import build_router
from roomspace.config import Settings, settings as default_settings
from roomspace.db import close_pool, get_pool
from roomspace.errors import install_error_handlers
from roomspace.logging import configure_logging
from roomspace.middleware import RequestIdMiddleware
from roomspace.repos.base_repo import ResourceStore
from roomspace.repos.memory_store import InMemoryStore
from roomspace.repos.pg_store import PostgresStore
from roomspace.services.design_generator import DesignGenerator
from roomspace.services.product_search import ProductSearch

log = logging.getLogger(__name__)


def create_app(
    *,
    settings: Optional[Settings] = None,
    store: Optional[ResourceStore] = None,
    design_generator: Optional[DesignGenerator] = None,
    product_search: Optional[ProductSearch] = None,
) -> FastAPI:
    cfg = settings or default_settings
    configure_logging(cfg.LOG_LEVEL)
    cfg.warn_missing()

    app = FastAPI(
        title="RoomSpace API",
        version=cfg.SERVICE_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    use_db = store is None and not cfg.mock_mode
    app.state.settings = cfg
    app.state.store = store or (PostgresStore(lambda: get_pool(cfg)) if use_db else InMemoryStore())
    app.state.design_generator = design_generator or DesignGenerator(settings=cfg)
    app.state.product_search = product_search or ProductSearch(settings=cfg)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestIdMiddleware)
    install_error_handlers(app)

    # Include API routes
    app.include_router(build_router())

    @app.on_event("startup")
    async def startup():
        log.info(
            "service starting",
            extra={"environment": cfg.ENVIRONMENT, "mock_mode": cfg.mock_mode, "services": cfg.integrations()},
        )
        if use_db:
            await get_pool(cfg)

    @app.on_event("shutdown")
    async def shutdown():
        await app.state.store.close()
        if use_db:
            await close_pool()

    @app.get("/")
    async def root():
        return {"service": cfg.SERVICE_NAME, "status": "ok", "version": cfg.SERVICE_VERSION}

    return app


app = create_app()
