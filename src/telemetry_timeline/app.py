import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from .app_settings import app_settings
from .dependencies.sessions import get_session_repository
from .routes import data_windows, health, selection, telemetry

logging.basicConfig(level=getattr(logging, app_settings.log_level.upper(), logging.INFO))
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logger.info("Starting Telemetry Timeline Service")
    yield
    get_session_repository().close_all()
    logger.info("Shutting down Telemetry Timeline Service")


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    app = FastAPI(
        title="Telemetry Timeline API",
        version="0.1.0",
        description="Windowing, decimation and cursor/selection service for vehicle telemetry",
        lifespan=lifespan,
        debug=app_settings.debug,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.get_allowed_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # GZip middleware
    if app_settings.gzip_enabled:
        app.add_middleware(
            GZipMiddleware,
            minimum_size=app_settings.gzip_min_size,
            compresslevel=app_settings.gzip_level,
        )

    # Include routers
    app.include_router(health.router, tags=["Health"])
    app.include_router(telemetry.router, tags=["Telemetry"])
    app.include_router(data_windows.router, tags=["Data Windows"])
    app.include_router(selection.router, tags=["Selection"])

    return app


# Application instance
app = create_app()
