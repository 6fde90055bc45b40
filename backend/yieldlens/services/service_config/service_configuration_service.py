"""
Service configuration and run tracking.

One ``ServiceConfiguration`` row per sync job holds its schedule settings and
run history. Run results are recorded with a single atomic UPDATE so they
never race with configuration edits made through the admin API.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from sqlalchemy.orm import Session

from yieldlens.core.errors import InvalidConfigurationError, ServiceNotFoundError
from yieldlens.models.service_configuration import ServiceConfiguration

logger = logging.getLogger(__name__)

# Catalog fields refreshed on every bootstrap; the rest belongs to the operator
CATALOG_FIELDS = ("display_name", "description", "category", "priority")

# Interval timers fire slightly early now and then
DUE_TOLERANCE = timedelta(seconds=5)


def _utc(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite hands back naive datetimes; they are stored as UTC."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


class ServiceConfigurationService:
    """Reads and updates service configurations."""

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def initialize_configurations(self, defaults: Iterable[Dict[str, Any]]) -> Tuple[int, int]:
        """Insert missing configurations and refresh catalog metadata of existing ones.

        Operator settings (interval, enabled flag) and run history of existing
        rows are left untouched, so this is safe to run on every startup.

        Returns:
            (added, updated) counts
        """
        added = 0
        updated = 0
        db = self.session_factory()
        try:
            for default in defaults:
                name = default["service_name"]
                config = db.query(ServiceConfiguration).filter(
                    ServiceConfiguration.service_name == name
                ).first()

                if config is None:
                    db.add(ServiceConfiguration(
                        service_name=name,
                        display_name=default.get("display_name", name),
                        description=default.get("description"),
                        category=default.get("category", "sync"),
                        priority=default.get("priority", 2),
                        interval_minutes=default.get("interval_minutes", 0),
                        is_enabled=default.get("is_enabled", True),
                    ))
                    added += 1
                    logger.info(f"Added service configuration: {name}")
                    continue

                changed = False
                for field in CATALOG_FIELDS:
                    if field in default and getattr(config, field) != default[field]:
                        setattr(config, field, default[field])
                        changed = True
                if changed:
                    updated += 1
                    logger.info(f"Updated service configuration metadata: {name}")

            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

        logger.info(f"Service configurations initialized: {added} added, {updated} updated")
        return added, updated

    def get_configuration(self, service_name: str) -> Optional[ServiceConfiguration]:
        db = self.session_factory()
        try:
            return db.query(ServiceConfiguration).filter(
                ServiceConfiguration.service_name == service_name
            ).first()
        finally:
            db.close()

    def get_all_configurations(self) -> List[ServiceConfiguration]:
        """All configurations, highest priority first, then by name."""
        db = self.session_factory()
        try:
            return db.query(ServiceConfiguration).order_by(
                ServiceConfiguration.priority.asc(),
                ServiceConfiguration.service_name.asc(),
            ).all()
        finally:
            db.close()

    def update_configuration(
        self,
        service_name: str,
        interval_minutes: Optional[int] = None,
        is_enabled: Optional[bool] = None,
    ) -> ServiceConfiguration:
        """Partially update the operator settings of a service.

        Run counters and ``last_error`` are not touched.

        Raises:
            ServiceNotFoundError: Unknown service name
            InvalidConfigurationError: Negative interval
        """
        if interval_minutes is not None and interval_minutes < 0:
            raise InvalidConfigurationError(
                f"interval_minutes must be >= 0 for {service_name}, got {interval_minutes}"
            )

        db = self.session_factory()
        try:
            config = db.query(ServiceConfiguration).filter(
                ServiceConfiguration.service_name == service_name
            ).first()
            if config is None:
                raise ServiceNotFoundError(service_name)

            if interval_minutes is not None:
                config.interval_minutes = interval_minutes
            if is_enabled is not None:
                config.is_enabled = is_enabled

            db.commit()
            db.refresh(config)
            logger.info(
                f"Service configuration updated: {service_name} "
                f"(interval={config.interval_minutes}min, enabled={config.is_enabled})"
            )
            return config
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def record_run_result(
        self,
        service_name: str,
        success: bool,
        error: Optional[str] = None,
        started_at: Optional[datetime] = None,
    ) -> None:
        """Record the outcome of one completed run attempt.

        ``last_run`` is the time the run started (``started_at``, defaulting to
        now), so the next interval counts from the same instant as the timer.

        Raises:
            ServiceNotFoundError: Unknown service name
        """
        now = datetime.now(timezone.utc)
        values: Dict[Any, Any] = {
            ServiceConfiguration.run_count: ServiceConfiguration.run_count + 1,
            ServiceConfiguration.last_run: started_at or now,
            ServiceConfiguration.updated_at: now,
        }
        if success:
            values[ServiceConfiguration.last_error] = None
            values[ServiceConfiguration.last_error_at] = None
        else:
            values[ServiceConfiguration.error_count] = ServiceConfiguration.error_count + 1
            values[ServiceConfiguration.last_error] = error or "Unknown error"
            values[ServiceConfiguration.last_error_at] = now

        db = self.session_factory()
        try:
            matched = db.query(ServiceConfiguration).filter(
                ServiceConfiguration.service_name == service_name
            ).update(values, synchronize_session=False)
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

        if not matched:
            raise ServiceNotFoundError(service_name)
        if success:
            logger.debug(f"Recorded successful run of {service_name}")
        else:
            logger.warning(f"Recorded failed run of {service_name}: {error or 'Unknown error'}")

    @staticmethod
    def is_due(config: ServiceConfiguration, now: Optional[datetime] = None) -> bool:
        """Whether a scheduled tick should run the service."""
        if not config.is_enabled or not config.interval_minutes or config.interval_minutes <= 0:
            return False
        last_run = _utc(config.last_run)
        if last_run is None:
            return True
        now = now or datetime.now(timezone.utc)
        return now - last_run >= timedelta(minutes=config.interval_minutes) - DUE_TOLERANCE
