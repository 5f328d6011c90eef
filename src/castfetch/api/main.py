from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from castfetch.api.middleware import RequestIdMiddleware
from castfetch.api.routes import api_router
from castfetch.config import Settings
from castfetch.integrations.delivery_paths import build_delivery_paths
from castfetch.integrations.path_client import HttpPathClient
from castfetch.shared.logging import configure_logging


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    try:
        yield
    finally:
        await app.state.relay_client.aclose()


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or Settings()
    app = FastAPI(title=settings.app_name, version="0.1.0", lifespan=_lifespan)
    app.state.settings = settings
    app.state.delivery_paths = build_delivery_paths(settings)
    app.state.relay_client = HttpPathClient(settings.user_agent, timeout=settings.race_deadline_sec)
    app.add_middleware(RequestIdMiddleware)
    app.include_router(api_router)
    return app


app = create_app()


def run() -> None:
    settings = Settings()
    configure_logging(settings.log_level)
    uvicorn.run(
        "castfetch.api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.reload,
        log_level=settings.log_level,
    )
