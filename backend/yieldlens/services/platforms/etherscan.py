"""
Etherscan adapter.

Reads the ETH price from the Etherscan stats module. Requires an API key,
passed as the ``apikey`` query parameter.
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


class EtherscanAdapter(BasePlatformAdapter):
    """Adapter for the Etherscan API."""

    requires_credentials = True
    api_key_param = "apikey"
    primary_endpoint = "stats"

    async def fetch_live_data(self) -> AdapterResult:
        return await self.call(
            "stats",
            self.normalize_price,
            params={"module": "stats", "action": "ethprice"},
        )

    async def fetch_eth_supply(self) -> AdapterResult:
        """Total ETH supply in wei, reported in ``vault_info``."""
        return await self.call(
            "stats",
            self.normalize_supply,
            params={"module": "stats", "action": "ethsupply"},
        )

    @staticmethod
    def _result(payload: Any) -> Any:
        if not isinstance(payload, dict) or "result" not in payload:
            raise ResponseShapeError("expected an object with a 'result' field")
        # Etherscan answers 200 with status "0" on errors (bad key, rate limited)
        if str(payload.get("status")) == "0":
            raise ResponseShapeError(f"Etherscan API error: {payload.get('message')} ({payload.get('result')})")
        return payload["result"]

    def normalize_price(self, payload: Any) -> AdapterData:
        result = self._result(payload)
        if not isinstance(result, dict):
            raise ResponseShapeError("expected 'result' to be an object")
        eth_usd = to_float(result.get("ethusd"))
        if eth_usd is None:
            raise ResponseShapeError("missing ethusd")
        return AdapterData(
            vault_info={
                "eth_usd": eth_usd,
                "eth_btc": to_float(result.get("ethbtc")),
                "eth_usd_timestamp": result.get("ethusd_timestamp"),
            },
            metadata={"source": "etherscan_api", "action": "ethprice"},
        )

    def normalize_supply(self, payload: Any) -> AdapterData:
        supply = to_float(self._result(payload))
        if supply is None:
            raise ResponseShapeError("result is not a number")
        return AdapterData(
            vault_info={"eth_supply_wei": supply},
            metadata={"source": "etherscan_api", "action": "ethsupply"},
        )
