"""FastAPI application assembly."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from planboard.api.routers import dashboard, projects, settings, tasks
from planboard.config import Settings
from planboard.logs import setup_logging
from planboard.session import Session, build_session

logger = logging.getLogger(__name__)


def create_app(config: Settings | None = None, session: Session | None = None) -> FastAPI:
    """Build the app. The session is opened on startup and closed on shutdown."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        current = session
        if current is None:
            settings = config or Settings.from_env()
            setup_logging(settings.log_level)
            current = build_session(settings)
        app.state.session = current
        await current.start()
        logger.info("Session started")
        try:
            yield
        finally:
            await current.close()
            logger.info("Session closed")

    app = FastAPI(title="planboard API", version="0.1.0", lifespan=lifespan)

    @app.get("/health")
    def health():
        return {"status": "ok", "service": "planboard"}

    app.include_router(projects.router)
    app.include_router(tasks.router)
    app.include_router(settings.router)
    app.include_router(dashboard.router)
    return app


app = create_app()
