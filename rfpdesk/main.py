"""ASGI entrypoint: ``uvicorn rfpdesk.main:app``."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from rfpdesk.api.errors import register_exception_handlers
from rfpdesk.api.v1.router import get_api_router
from rfpdesk.core.config import get_config
from rfpdesk.core.dependencies import get_poller
from rfpdesk.database.init_db import init_db

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    cfg = get_config()
    init_db()
    poller = get_poller()
    if cfg.polling().enabled and cfg.transport().imap_configured:
        poller.start()
    else:
        logger.info("inbox.poller.disabled", extra={"event": "inbox.poller.disabled"})
    try:
        yield
    finally:
        poller.stop()


def create_app() -> FastAPI:
    cfg = get_config()
    app = FastAPI(title=cfg.APP_NAME, version=cfg.APP_VERSION, lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(cfg.CORS_ORIGINS),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)
    app.include_router(get_api_router(), prefix=f"{cfg.API_PREFIX.rstrip('/')}/v1")

    @app.get("/")
    def root() -> dict:
        return {"service": cfg.APP_NAME, "version": cfg.APP_VERSION, "api_prefix": cfg.API_PREFIX}

    return app


app = create_app()
