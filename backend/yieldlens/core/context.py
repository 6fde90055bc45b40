"""
Application context: the shared state of one running app.

Built once by the app factory and stored on ``app.state.context``; routers get
it through the ``get_*`` dependencies below. Tests build a fresh one per test.
"""
import logging
from dataclasses import dataclass
from typing import Callable, Optional

import httpx
from fastapi import Request
from sqlalchemy.orm import Session

from yieldlens.core.config import get_platform_credentials, get_settings
from yieldlens.core.database import SessionLocal
from yieldlens.services.cache.cache_service import CacheService
from yieldlens.services.platforms.manager import PlatformApiManager
from yieldlens.services.platforms.registry import AdapterRegistry, create_default_registry
from yieldlens.services.ratelimit.rate_limiter import RateLimiter
from yieldlens.services.scheduler.scheduler_service import SyncScheduler
from yieldlens.services.service_config.service_configuration_service import ServiceConfigurationService
from yieldlens.services.sync.jobs import SyncContext

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    cache: CacheService
    rate_limiter: RateLimiter
    registry: AdapterRegistry
    platform_manager: PlatformApiManager
    service_config: ServiceConfigurationService
    scheduler: SyncScheduler

    @property
    def sync_context(self) -> SyncContext:
        return self.scheduler.context


def build_context(
    settings=None,
    session_factory: Callable[[], Session] = SessionLocal,
    credentials: Optional[dict] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    cache: Optional[CacheService] = None,
    rate_limiter: Optional[RateLimiter] = None,
    run_due_immediately: bool = True,
) -> AppContext:
    """Construct and wire every shared service.

    Args:
        settings: Settings object (defaults to ``get_settings()``)
        session_factory: Returns a new database session
        credentials: Per-platform credentials (defaults to process configuration)
        transport: httpx transport for every adapter (tests)
        cache: Pre-built cache (tests inject one with a fake clock)
        rate_limiter: Pre-built rate limiter
        run_due_immediately: Fire due services as soon as the scheduler arms them
    """
    settings = settings or get_settings()

    cache = cache or CacheService(
        default_ttl=settings.cache_default_ttl_seconds,
        max_size=settings.cache_max_entries,
        eviction_policy=settings.cache_eviction_policy,
    )
    rate_limiter = rate_limiter or RateLimiter()
    registry = create_default_registry()
    platform_manager = PlatformApiManager(
        session_factory,
        registry,
        rate_limiter,
        credentials=get_platform_credentials() if credentials is None else credentials,
        default_timeout_ms=int(settings.adapter_timeout_seconds * 1000),
        transport=transport,
    )
    service_config = ServiceConfigurationService(session_factory)
    scheduler = SyncScheduler(
        service_config,
        SyncContext(cache=cache, platform_manager=platform_manager),
        cleanup_interval_seconds=settings.cache_cleanup_interval_seconds,
        run_due_immediately=run_due_immediately,
    )

    logger.debug(f"Application context built (adapters: {registry.list_supported_types()})")
    return AppContext(
        cache=cache,
        rate_limiter=rate_limiter,
        registry=registry,
        platform_manager=platform_manager,
        service_config=service_config,
        scheduler=scheduler,
    )


def get_context(request: Request) -> AppContext:
    return request.app.state.context


def get_cache(request: Request) -> CacheService:
    return get_context(request).cache


def get_service_config(request: Request) -> ServiceConfigurationService:
    return get_context(request).service_config


def get_scheduler(request: Request) -> SyncScheduler:
    return get_context(request).scheduler


def get_platform_manager(request: Request) -> PlatformApiManager:
    return get_context(request).platform_manager
