"""
Sync jobs run by the scheduler.

A job is an async callable taking a ``SyncContext``. It returns normally on
success and raises ``SyncError`` when the platform call failed; the scheduler
turns either outcome into a run record.
"""
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional

from yieldlens.services.cache.cache_service import CacheService
from yieldlens.services.platforms.manager import PlatformApiManager

logger = logging.getLogger(__name__)

PLATFORM_DATA_KEY = "platform-data"

# Freshness per adapter type, in seconds
SOURCE_TTL_SECONDS: Dict[str, int] = {
    "defillama": 10 * 60,
    "morpho": 5 * 60,
    "lido": 30 * 60,
    "etherscan": 5 * 60,
}


class SyncError(Exception):
    """A sync job could not produce fresh data."""


@dataclass
class SyncContext:
    """What a job may touch."""
    cache: CacheService
    platform_manager: PlatformApiManager


def platform_data_key(platform_id: str) -> str:
    return CacheService.generate_key(PLATFORM_DATA_KEY, platform_id)


def eth_supply_key() -> str:
    return CacheService.generate_key(PLATFORM_DATA_KEY, "etherscan", "supply")


async def refresh_platform_data(ctx: SyncContext, platform_id: str) -> Dict[str, Any]:
    """Fetch a platform's live data and overwrite its cache entry.

    On failure the previous entry is left in place.

    Raises:
        SyncError: No adapter, or the call failed
    """
    adapter = ctx.platform_manager.get_adapter(platform_id)
    if adapter is None:
        raise SyncError(f"No adapter available for platform {platform_id}")

    result = await adapter.fetch_live_data()
    if not result.success or result.data is None:
        raise SyncError(result.error or "Unknown error")

    source = adapter.config.api_type
    data = result.data.model_dump()
    ctx.cache.set(platform_data_key(platform_id), data, source, ttl=SOURCE_TTL_SECONDS.get(source))
    logger.info(f"Synced {platform_id} in {result.response_time_ms:.0f}ms (apy={data['apy']}, tvl={data['tvl']})")
    return data


async def get_platform_data(ctx: SyncContext, platform_id: str) -> Optional[Dict[str, Any]]:
    """Read-through access to a platform's data.

    Concurrent misses share one upstream call. Returns None when there is no
    fresh entry and the platform could not be reached.
    """
    async def fetch() -> Optional[Dict[str, Any]]:
        result = await ctx.platform_manager.execute_platform_api_call(platform_id)
        if not result.success or result.data is None:
            return None
        return result.data.model_dump()

    adapter = ctx.platform_manager.get_adapter(platform_id)
    source = adapter.config.api_type if adapter is not None else platform_id
    return await ctx.cache.get_or_fetch(
        platform_data_key(platform_id),
        source,
        fetch,
        ttl=SOURCE_TTL_SECONDS.get(source),
    )


async def sync_pool_data(ctx: SyncContext) -> None:
    await refresh_platform_data(ctx, "defillama")


async def sync_morpho(ctx: SyncContext) -> None:
    await refresh_platform_data(ctx, "morpho")


async def sync_lido(ctx: SyncContext) -> None:
    await refresh_platform_data(ctx, "lido")


async def sync_token_prices(ctx: SyncContext) -> None:
    """Refresh the ETH price, then the ETH supply.

    The price lands in the usual platform entry, the supply under
    ``platform-data:etherscan:supply``.
    """
    await refresh_platform_data(ctx, "etherscan")

    adapter = ctx.platform_manager.get_adapter("etherscan")
    result = await adapter.fetch_eth_supply()
    if not result.success or result.data is None:
        raise SyncError(f"ETH supply: {result.error or 'Unknown error'}")
    ctx.cache.set(eth_supply_key(), result.data.model_dump(), "etherscan", ttl=SOURCE_TTL_SECONDS["etherscan"])
    logger.info(f"Synced ETH supply ({result.data.vault_info['eth_supply_wei']:.0f} wei)")


async def check_platform_health(ctx: SyncContext) -> None:
    """Health-check every enabled platform.

    Unhealthy platforms are a finding, not a failure of the job itself.
    """
    statuses = await ctx.platform_manager.run_health_checks()
    unhealthy = [platform_id for platform_id, status in statuses.items() if status != "healthy"]
    if unhealthy:
        logger.warning(f"Unhealthy platforms: {', '.join(unhealthy)}")
    logger.info(f"Health checked {len(statuses)} platforms")


Job = Callable[[SyncContext], Awaitable[None]]

JOBS: Dict[str, Job] = {
    "poolDataSync": sync_pool_data,
    "morphoApiSync": sync_morpho,
    "lidoApiSync": sync_lido,
    "tokenPriceSync": sync_token_prices,
    "platformHealthCheck": check_platform_health,
}
