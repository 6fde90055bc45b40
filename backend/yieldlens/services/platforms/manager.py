"""
Platform API manager.

Builds adapters from the ``platform_api_configs`` rows plus credentials held in
process configuration, keeps one adapter instance per platform and persists
health check outcomes.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional

import httpx
from sqlalchemy.orm import Session

from yieldlens.core.errors import InvalidConfigurationError, PlatformNotFoundError
from yieldlens.models.platform_api_config import PlatformApiConfig
from yieldlens.services.platforms.base import (
    UNHEALTHY,
    AdapterConfig,
    AdapterResult,
    BasePlatformAdapter,
)
from yieldlens.services.platforms.registry import AdapterRegistry
from yieldlens.services.ratelimit.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

# Columns an operator may change through update_api_config
UPDATABLE_FIELDS = ("name", "base_url", "endpoints", "headers", "rate_limit_rpm", "timeout_ms", "is_enabled")


class PlatformApiManager:
    """Configured adapters for every known platform."""

    def __init__(
        self,
        session_factory: Callable[[], Session],
        registry: AdapterRegistry,
        rate_limiter: RateLimiter,
        credentials: Optional[Dict[str, Dict[str, str]]] = None,
        default_timeout_ms: Optional[int] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the manager.

        Args:
            session_factory: Returns a new database session
            registry: Adapter classes by type
            rate_limiter: Limiter shared by all adapters
            credentials: Per-platform credentials, e.g. {"etherscan": {"query_api_key": "..."}}
            default_timeout_ms: Timeout for rows that have none
            transport: httpx transport handed to every adapter (tests)
        """
        self.session_factory = session_factory
        self.registry = registry
        self.rate_limiter = rate_limiter
        self.credentials = credentials or {}
        self.default_timeout_ms = default_timeout_ms
        self.transport = transport
        self._adapters: Dict[str, BasePlatformAdapter] = {}

    def initialize_api_configs(self, defaults: Iterable[Dict[str, Any]]) -> int:
        """Insert configs for platforms that have none. Existing rows are left alone.

        Returns:
            Number of rows added
        """
        added = 0
        db = self.session_factory()
        try:
            for default in defaults:
                exists = db.query(PlatformApiConfig).filter(
                    PlatformApiConfig.platform_id == default["platform_id"]
                ).first()
                if exists:
                    continue
                db.add(PlatformApiConfig(**default))
                added += 1
                logger.info(f"Added platform API config: {default['platform_id']}")
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()
        return added

    def get_all_api_configs(self) -> List[PlatformApiConfig]:
        db = self.session_factory()
        try:
            return db.query(PlatformApiConfig).order_by(PlatformApiConfig.platform_id.asc()).all()
        finally:
            db.close()

    def get_api_config(self, platform_id: str) -> Optional[PlatformApiConfig]:
        db = self.session_factory()
        try:
            return db.query(PlatformApiConfig).filter(PlatformApiConfig.platform_id == platform_id).first()
        finally:
            db.close()

    def get_adapter(self, platform_id: str) -> Optional[BasePlatformAdapter]:
        """Adapter for an enabled platform, built once and then reused.

        Returns:
            The adapter, or None if the platform is unknown, disabled or its
            adapter type is not registered
        """
        adapter = self._adapters.get(platform_id)
        if adapter is not None:
            return adapter

        row = self.get_api_config(platform_id)
        if row is None:
            logger.warning(f"No API config for platform {platform_id}")
            return None
        if not row.is_enabled:
            logger.debug(f"Platform {platform_id} is disabled")
            return None

        config = AdapterConfig(
            api_type=row.api_type,
            base_url=row.base_url,
            endpoints=row.endpoints or {},
            headers=row.headers or {},
            credentials=self.credentials.get(platform_id, {}),
            rate_limit_rpm=row.rate_limit_rpm or 60,
            timeout_ms=row.timeout_ms or self.default_timeout_ms or 30000,
        )
        adapter = self.registry.create(
            config,
            row.platform_id,
            row.name,
            rate_limiter=self.rate_limiter,
            transport=self.transport,
        )
        if adapter is not None:
            self._adapters[platform_id] = adapter
        return adapter

    def update_api_config(self, platform_id: str, **fields) -> PlatformApiConfig:
        """Update a platform's connection settings and drop its cached adapter.

        Raises:
            PlatformNotFoundError: Unknown platform
            InvalidConfigurationError: Unknown field or out-of-range value
        """
        unknown = set(fields) - set(UPDATABLE_FIELDS)
        if unknown:
            raise InvalidConfigurationError(f"Cannot update fields: {sorted(unknown)}")
        for field in ("rate_limit_rpm", "timeout_ms"):
            if fields.get(field) is not None and fields[field] <= 0:
                raise InvalidConfigurationError(f"{field} must be positive, got {fields[field]}")

        db = self.session_factory()
        try:
            row = db.query(PlatformApiConfig).filter(PlatformApiConfig.platform_id == platform_id).first()
            if row is None:
                raise PlatformNotFoundError(platform_id)
            for field, value in fields.items():
                if value is not None:
                    setattr(row, field, value)
            db.commit()
            db.refresh(row)
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

        self._adapters.pop(platform_id, None)
        logger.info(f"Platform API config updated: {platform_id}")
        return row

    async def execute_platform_api_call(self, platform_id: str) -> AdapterResult:
        """Fetch live data from a platform through its adapter."""
        adapter = self.get_adapter(platform_id)
        if adapter is None:
            return AdapterResult(success=False, error=f"No adapter available for platform {platform_id}")
        result = await adapter.fetch_live_data()
        if result.success:
            logger.info(f"{platform_id} API call succeeded in {result.response_time_ms:.0f}ms")
        else:
            logger.warning(f"{platform_id} API call failed: {result.error}")
        return result

    async def update_health_status(self, platform_id: str) -> str:
        """Run a health check for one platform and store the outcome.

        Raises:
            PlatformNotFoundError: Unknown platform
        """
        if self.get_api_config(platform_id) is None:
            raise PlatformNotFoundError(platform_id)

        adapter = self.get_adapter(platform_id)
        status = await adapter.get_health_status() if adapter is not None else UNHEALTHY

        db = self.session_factory()
        try:
            db.query(PlatformApiConfig).filter(PlatformApiConfig.platform_id == platform_id).update(
                {
                    PlatformApiConfig.health_status: status,
                    PlatformApiConfig.last_health_check: datetime.now(timezone.utc),
                },
                synchronize_session=False,
            )
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

        logger.info(f"Health status of {platform_id}: {status}")
        return status

    async def run_health_checks(self) -> Dict[str, str]:
        """Health-check every enabled platform. Returns status by platform id."""
        results: Dict[str, str] = {}
        for row in self.get_all_api_configs():
            if not row.is_enabled:
                continue
            results[row.platform_id] = await self.update_health_status(row.platform_id)
        return results
