"""
Morpho Blue adapter.

Queries the vault listing of the Morpho GraphQL API. No API key.
"""
import logging
from typing import Any, Dict, List

from yieldlens.services.platforms.base import (
    AdapterData,
    AdapterResult,
    BasePlatformAdapter,
    ResponseShapeError,
    safe_get,
    to_float,
)

logger = logging.getLogger(__name__)

VAULTS_QUERY = """
query Vaults($first: Int!) {
  vaults(first: $first, orderBy: TotalAssetsUsd, orderDirection: Desc) {
    items {
      address
      name
      symbol
      chain { id network }
      state { apy netApy totalAssetsUsd }
    }
  }
}
"""

DEFAULT_VAULT_COUNT = 25


class MorphoAdapter(BasePlatformAdapter):
    """Adapter for the Morpho Blue GraphQL API."""

    primary_endpoint = "vaults"

    def __init__(self, *args, vault_count: int = DEFAULT_VAULT_COUNT, **kwargs):
        super().__init__(*args, **kwargs)
        self.vault_count = vault_count

    async def fetch_live_data(self) -> AdapterResult:
        return await self.call(
            "vaults",
            self.normalize_vaults,
            method="POST",
            json={"query": VAULTS_QUERY, "variables": {"first": self.vault_count}},
        )

    def normalize_vaults(self, payload: Any) -> AdapterData:
        """Normalize the vault listing.

        Morpho reports APYs as fractions; they are converted to percent. The
        headline ``apy`` is the first (largest) vault's net APY and ``tvl`` the
        summed ``totalAssetsUsd`` of the returned vaults.
        """
        if not isinstance(payload, dict):
            raise ResponseShapeError("expected a JSON object")
        if payload.get("errors"):
            messages = "; ".join(str(e.get("message", e)) if isinstance(e, dict) else str(e) for e in payload["errors"])
            raise ResponseShapeError(f"GraphQL errors: {messages}")

        items = safe_get(payload, "data.vaults.items")
        if not isinstance(items, list):
            raise ResponseShapeError("missing data.vaults.items")

        vaults: List[Dict[str, Any]] = []
        for item in items:
            if not isinstance(item, dict):
                raise ResponseShapeError(f"expected vault objects, got {type(item).__name__}")
            state = item.get("state") or {}
            if not isinstance(state, dict):
                raise ResponseShapeError("expected vault state to be an object")
            net_apy = to_float(state.get("netApy"))
            apy = to_float(state.get("apy"))
            best = net_apy if net_apy is not None else apy
            vaults.append({
                "address": item.get("address"),
                "name": item.get("name"),
                "symbol": item.get("symbol"),
                "chain_id": safe_get(item, "chain.id"),
                "apy": best * 100 if best is not None else None,
                "tvl_usd": to_float(state.get("totalAssetsUsd")),
            })

        tvl_values = [v["tvl_usd"] for v in vaults if v["tvl_usd"] is not None]
        return AdapterData(
            apy=vaults[0]["apy"] if vaults else None,
            tvl=sum(tvl_values) if tvl_values else None,
            vault_info={"vault_count": len(vaults), "vaults": vaults},
            metadata={"source": "morpho_api"},
        )
