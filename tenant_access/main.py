"""
FastAPI application for the tenant access engine.
"""

from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from tenant_access import __version__
from tenant_access.api import api_router
from tenant_access.core.config import Settings, get_settings
from tenant_access.core.container import AccessEngineContainer
from tenant_access.core.logging import configure_logging

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the engine container on startup and tear it down on shutdown."""
    settings: Settings = app.state.settings
    owns_container = getattr(app.state, "container", None) is None

    if owns_container:
        logger.info("Starting tenant access engine", version=app.version)
        app.state.container = await AccessEngineContainer.create(settings)
    container: AccessEngineContainer = app.state.container
    container.start_background_tasks()

    yield

    logger.info("Shutting down tenant access engine")
    if owns_container:
        await container.shutdown()
        app.state.container = None
    else:
        await container.monitor.shutdown()
        await container.sweeper.shutdown()


def create_app(
    settings: Optional[Settings] = None,
    container: Optional[AccessEngineContainer] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    A pre-built ``container`` is used as is and left open on shutdown.
    """
    settings = settings or (container.settings if container else get_settings())
    configure_logging(settings)

    app = FastAPI(
        title=settings.APP_NAME,
        description="Tenant access-status resolution, trial lifecycle and enforcement",
        version=__version__,
        docs_url="/docs" if not settings.is_production() else None,
        redoc_url="/redoc" if not settings.is_production() else None,
        openapi_url="/openapi.json" if not settings.is_production() else None,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.container = container

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router)

    @app.get("/health")
    async def health_check():
        """Basic health check endpoint"""
        return {
            "status": "healthy",
            "version": app.version,
            "environment": settings.ENVIRONMENT,
        }

    return app


# Create app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "tenant_access.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.ENVIRONMENT == "development",
        log_config=None,
    )
