"""
FastAPI application entry point for the site backend.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from gpevim.config import Settings, get_settings
from gpevim.dependencies import get_record_store
from gpevim.errors import BackendUnavailableError, register_exception_handlers
from gpevim.pages import router as pages_router
from gpevim.routes import router

logger = logging.getLogger(__name__)


def initialize_record_store(app: FastAPI, settings: Settings) -> None:
    """Create tables and seed the admin user; a failure is logged, not fatal."""
    store_factory = app.dependency_overrides.get(get_record_store, get_record_store)
    try:
        store_factory().initialize(settings.admin_username, settings.admin_password)
        logger.info("Record store initialized")
    except BackendUnavailableError as exc:
        logger.error("Could not initialize record store: %s", exc)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        initialize_record_store(app, settings)
        yield

    app = FastAPI(title="GPEVIM site backend", version="0.1.0", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    app.include_router(router, prefix=settings.api_prefix)
    app.mount(
        "/uploads",
        StaticFiles(directory=settings.uploads_dir, check_dir=False),
        name="uploads",
    )
    app.include_router(pages_router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(app, host="0.0.0.0", port=settings.port)
