"""
FastAPI application entry point.
"""
import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from yieldlens.api import admin_cache, admin_services, health, platforms
from yieldlens.core.config import get_settings
from yieldlens.core.context import AppContext, build_context
from yieldlens.core.database import init_db
from yieldlens.core.logging_config import setup_logging
from yieldlens.services.platforms.registry import DEFAULT_PLATFORM_API_CONFIGS
from yieldlens.services.service_config.catalog import DEFAULT_SERVICE_CONFIGS

logger = logging.getLogger(__name__)


def create_app(context: Optional[AppContext] = None, settings=None) -> FastAPI:
    """Build the application.

    Args:
        context: Shared services; built from settings when omitted
        settings: Settings object (defaults to ``get_settings()``)
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="YieldLens API",
        description="DeFi yield data ingestion, caching and admin API",
        version="0.1.0",
    )
    app.state.context = context or build_context(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(health.router, tags=["health"])
    app.include_router(admin_cache.router, prefix="/api/admin/cache", tags=["admin-cache"])
    app.include_router(admin_services.router, prefix="/api/admin/services", tags=["admin-services"])
    app.include_router(platforms.router, prefix="/api/platforms", tags=["platforms"])

    @app.on_event("startup")
    async def startup_event():
        """Initialize database, catalogs and the scheduler."""
        setup_logging(settings.log_level)
        ctx: AppContext = app.state.context

        if settings.auto_create_tables:
            init_db()

        ctx.service_config.initialize_configurations(DEFAULT_SERVICE_CONFIGS)
        ctx.platform_manager.initialize_api_configs(DEFAULT_PLATFORM_API_CONFIGS)

        if settings.enable_scheduler:
            ctx.scheduler.start()
        else:
            logger.info("Scheduler disabled (ENABLE_SCHEDULER=false)")

    @app.on_event("shutdown")
    async def shutdown_event():
        """Cleanup on shutdown."""
        app.state.context.scheduler.shutdown()

    return app


app = create_app()
