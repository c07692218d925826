"""FastAPI HTTP server exposing the latest command output.

Serves the full page at ``/`` and a JSON-wrapped content fragment at
``/update`` for the page's polling script. Both routes only read the
WatchState; the watch loop is started and cancelled by the app lifespan.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, Field

from httpwatch import __version__
from httpwatch.config.settings import ConfigurationError, Settings
from httpwatch.watcher.loop import WatchLoop
from httpwatch.watcher.models import CommandSpec
from httpwatch.watcher.state import WatchState
from httpwatch.web.render import PageRenderer

logger = logging.getLogger(__name__)


class UpdateResponse(BaseModel):
    interval: int = Field(description="Refresh interval in milliseconds")
    content: str = Field(description="Rendered output fragment")


def create_app(
    settings: Settings,
    state: WatchState | None = None,
    watch_loop: WatchLoop | None = None,
    renderer: PageRenderer | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Raises ConfigurationError if no command is configured and
    TemplateLoadError if the templates cannot be loaded.
    """
    if state is None:
        if not settings.watch.command:
            raise ConfigurationError("No command specified")
        command = CommandSpec(argv=settings.watch.command)
        state = WatchState(command, settings.watch.interval)
    if watch_loop is None:
        watch_loop = WatchLoop(state, settings.watch)
    if renderer is None:
        renderer = PageRenderer(state, settings.watch)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        loop: WatchLoop = app.state.watch_loop
        loop.start()
        logger.info("Watch loop started")
        yield
        await loop.stop()
        logger.info("Watch loop stopped")

    app = FastAPI(
        title="httpwatch",
        description="Watch a command's output from the browser",
        version=__version__,
        lifespan=lifespan,
        redirect_slashes=False,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )

    app.state.watch_state = state
    app.state.watch_loop = watch_loop
    app.state.renderer = renderer

    @app.get("/", response_class=HTMLResponse)
    def index() -> HTMLResponse:
        r: PageRenderer = app.state.renderer
        return HTMLResponse(r.render_index())

    @app.get("/update")
    def update() -> UpdateResponse:
        r: PageRenderer = app.state.renderer
        s: WatchState = app.state.watch_state
        return UpdateResponse(interval=s.interval_ms, content=r.render_content())

    return app
