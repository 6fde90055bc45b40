"""
DefiLlama yields adapter.

Reads the public pools listing (``/pools``) of the yields API. No API key.
"""
import logging
from typing import Any, Dict, List, Optional

from yieldlens.services.platforms.base import (
    AdapterData,
    AdapterResult,
    BasePlatformAdapter,
    ResponseShapeError,
    to_float,
)

logger = logging.getLogger(__name__)

# Pools kept in vault_info, largest TVL first
MAX_POOLS = 50


class DefiLlamaAdapter(BasePlatformAdapter):
    """Adapter for the DefiLlama yields API."""

    primary_endpoint = "pools"

    async def fetch_live_data(self) -> AdapterResult:
        return await self.call("pools", self.normalize_pools)

    def normalize_pools(self, payload: Any) -> AdapterData:
        """Aggregate the pools listing.

        ``tvl`` is the summed ``tvlUsd`` and ``apy`` the TVL-weighted mean APY
        over pools that report both.
        """
        if not isinstance(payload, dict) or not isinstance(payload.get("data"), list):
            raise ResponseShapeError("expected an object with a 'data' list of pools")
        if payload.get("status") not in (None, "success"):
            raise ResponseShapeError(f"status {payload.get('status')!r}")

        pools: List[Dict[str, Any]] = []
        for raw in payload["data"]:
            if not isinstance(raw, dict) or not raw.get("pool"):
                continue
            pools.append({
                "pool": raw["pool"],
                "chain": raw.get("chain"),
                "project": raw.get("project"),
                "symbol": raw.get("symbol"),
                "tvl_usd": to_float(raw.get("tvlUsd")),
                "apy": to_float(raw.get("apy")),
                "apy_base": to_float(raw.get("apyBase")),
                "apy_reward": to_float(raw.get("apyReward")),
            })

        total_tvl = sum(p["tvl_usd"] for p in pools if p["tvl_usd"])
        weighted = [(p["apy"], p["tvl_usd"]) for p in pools if p["apy"] is not None and p["tvl_usd"]]
        weight = sum(tvl for _, tvl in weighted)
        apy: Optional[float] = sum(a * tvl for a, tvl in weighted) / weight if weight else None

        pools.sort(key=lambda p: p["tvl_usd"] or 0.0, reverse=True)
        logger.info(f"DefiLlama returned {len(pools)} pools")

        return AdapterData(
            apy=apy,
            tvl=total_tvl if pools else None,
            vault_info={"pool_count": len(pools), "pools": pools[:MAX_POOLS]},
            metadata={"source": "defillama_api"},
        )
