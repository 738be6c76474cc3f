from __future__ import annotations

import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.responses import HTMLResponse
from fastapi.staticfiles import StaticFiles

from superside import __version__
from superside import settings as settings_module
from superside.api import router
from superside.api_logging import ApiRequestLoggingMiddleware
from superside.relay import EventRelay
from superside.settings import Settings


def _index_page(static_dir: str) -> str:
    """Index page contents, read once per app."""
    index_path = os.path.join(static_dir, "index.html")
    if os.path.isfile(index_path):
        with open(index_path, "r", encoding="utf-8") as f:
            return f.read()
    return "<html><body>Superside is running</body></html>"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """One relay per application; its ingest task lives as long as the app."""
    cfg: Settings = app.state.settings
    relay = EventRelay(
        history_size=cfg.history_size,
        inbound_queue_size=cfg.inbound_queue_size,
        mailbox_size=cfg.mailbox_size,
    )
    relay.start()
    app.state.relay = relay
    try:
        yield
    finally:
        await relay.stop()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    cfg = settings or settings_module.settings

    app = FastAPI(title="Superside", version=__version__, lifespan=lifespan)
    app.state.settings = cfg
    app.add_middleware(ApiRequestLoggingMiddleware)

    # Agents post to /update, older clients use /api/*
    app.include_router(router)
    app.include_router(router, prefix="/api")

    static_dir = cfg.static_dir
    if os.path.isdir(static_dir):
        app.mount("/static", StaticFiles(directory=static_dir), name="static")

    page = _index_page(static_dir)

    @app.get("/", response_class=HTMLResponse)
    async def index():
        return page

    return app


app = create_app()
