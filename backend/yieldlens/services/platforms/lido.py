"""
Lido staking adapter.

Reads the stETH APR simple moving average from the Lido protocol API. No API key.
"""
import logging
from typing import Any

from yieldlens.services.platforms.base import (
    AdapterData,
    AdapterResult,
    BasePlatformAdapter,
    ResponseShapeError,
    to_float,
)

logger = logging.getLogger(__name__)


class LidoAdapter(BasePlatformAdapter):
    """Adapter for the Lido stETH API."""

    primary_endpoint = "staking"

    async def fetch_live_data(self) -> AdapterResult:
        return await self.call("staking", self.normalize_staking)

    def normalize_staking(self, payload: Any) -> AdapterData:
        if not isinstance(payload, dict):
            raise ResponseShapeError("expected a JSON object")
        data = payload.get("data", payload)
        if not isinstance(data, dict):
            raise ResponseShapeError("expected 'data' to be an object")

        # The SMA endpoint reports smaApr; older payloads used apr/apy/stakingApr
        apy = None
        for field in ("smaApr", "apr", "apy", "stakingApr"):
            apy = to_float(data.get(field))
            if apy is not None:
                break
        if apy is None:
            raise ResponseShapeError("no APR field in response")

        tvl = to_float(data.get("totalStaked")) or to_float(data.get("tvl"))

        meta = payload.get("meta") if isinstance(payload.get("meta"), dict) else {}
        return AdapterData(
            apy=apy,
            tvl=tvl,
            vault_info={"aprs": data.get("aprs", [])},
            metadata={"source": "lido_api", "symbol": meta.get("symbol", "stETH")},
        )
