"""
Script to seed the default service catalog and platform API configs.
Run this after migrations; safe to run again (operator settings are kept).
"""
import sys
import logging
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from yieldlens.core.database import SessionLocal
from yieldlens.core.logging_config import setup_logging
from yieldlens.services.platforms.manager import PlatformApiManager
from yieldlens.services.platforms.registry import DEFAULT_PLATFORM_API_CONFIGS, create_default_registry
from yieldlens.services.ratelimit.rate_limiter import RateLimiter
from yieldlens.services.service_config.catalog import DEFAULT_SERVICE_CONFIGS
from yieldlens.services.service_config.service_configuration_service import ServiceConfigurationService

logger = logging.getLogger(__name__)


def seed(include_platforms: bool = True):
    """Seed service configurations (and platform API configs)."""
    added, updated = ServiceConfigurationService(SessionLocal).initialize_configurations(DEFAULT_SERVICE_CONFIGS)
    logger.info(f"Service configurations: {added} added, {updated} updated")

    if include_platforms:
        manager = PlatformApiManager(
            SessionLocal,
            create_default_registry(),
            RateLimiter(),
        )
        platforms_added = manager.initialize_api_configs(DEFAULT_PLATFORM_API_CONFIGS)
        logger.info(f"Platform API configs: {platforms_added} added")


if __name__ == "__main__":
    import argparse
    parser = argparse.ArgumentParser(description='Seed default service configurations')
    parser.add_argument('--skip-platforms', action='store_true', help='Only seed service configurations')
    args = parser.parse_args()

    setup_logging("INFO")
    seed(include_platforms=not args.skip_platforms)
