"""
Adapter registry: maps adapter type ids to adapter classes.

Type ids are case-insensitive. The registry holds classes only; adapter
instances are built on demand by ``create`` and owned by the caller.
"""
import logging
from typing import Any, Dict, List, Optional, Type

from yieldlens.services.platforms.base import AdapterConfig, BasePlatformAdapter
from yieldlens.services.platforms.defillama import DefiLlamaAdapter
from yieldlens.services.platforms.etherscan import EtherscanAdapter
from yieldlens.services.platforms.lido import LidoAdapter
from yieldlens.services.platforms.morpho import MorphoAdapter

logger = logging.getLogger(__name__)


# Seed rows for platform_api_configs; credentials are supplied separately
DEFAULT_PLATFORM_API_CONFIGS: List[Dict[str, Any]] = [
    {
        "platform_id": "defillama",
        "name": "DefiLlama",
        "api_type": "defillama",
        "base_url": "https://yields.llama.fi",
        "endpoints": {"pools": "/pools", "chart": "/chart"},
        "rate_limit_rpm": 30,
        "timeout_ms": 30000,
    },
    {
        "platform_id": "morpho",
        "name": "Morpho",
        "api_type": "morpho",
        "base_url": "https://blue-api.morpho.org",
        "endpoints": {"vaults": "/graphql"},
        "rate_limit_rpm": 60,
        "timeout_ms": 30000,
    },
    {
        "platform_id": "lido",
        "name": "Lido",
        "api_type": "lido",
        "base_url": "https://eth-api.lido.fi",
        "endpoints": {
            "staking": "/v1/protocol/steth/apr/sma",
            "stats": "/v1/protocol/steth/stats",
        },
        "rate_limit_rpm": 30,
        "timeout_ms": 30000,
    },
    {
        "platform_id": "etherscan",
        "name": "Etherscan",
        "api_type": "etherscan",
        "base_url": "https://api.etherscan.io/api",
        "endpoints": {"stats": ""},
        # Free tier allows 5 calls/second
        "rate_limit_rpm": 300,
        "timeout_ms": 15000,
    },
]


class AdapterRegistry:
    """Registry of adapter classes keyed by adapter type."""

    def __init__(self):
        self._adapters: Dict[str, Type[BasePlatformAdapter]] = {}

    def register(self, type_id: str, adapter_cls: Type[BasePlatformAdapter]) -> None:
        """Register an adapter class.

        Raises:
            TypeError: ``adapter_cls`` is not a BasePlatformAdapter subclass
        """
        if not (isinstance(adapter_cls, type) and issubclass(adapter_cls, BasePlatformAdapter)):
            raise TypeError(f"{adapter_cls!r} is not a BasePlatformAdapter subclass")
        key = type_id.lower()
        if key in self._adapters:
            logger.warning(f"Replacing adapter registered for {key}: {self._adapters[key].__name__}")
        self._adapters[key] = adapter_cls
        logger.debug(f"Registered adapter {adapter_cls.__name__} for {key}")

    def create(
        self,
        config: AdapterConfig,
        platform_id: str,
        platform_name: str,
        **kwargs,
    ) -> Optional[BasePlatformAdapter]:
        """Instantiate the adapter for ``config.api_type``.

        Args:
            config: Adapter configuration; ``api_type`` selects the class
            platform_id: Platform identifier
            platform_name: Display name
            **kwargs: Passed to the adapter (rate_limiter, transport)

        Returns:
            Adapter instance, or None if the type is not registered
        """
        adapter_cls = self._adapters.get(config.api_type.lower())
        if adapter_cls is None:
            logger.warning(
                f"Unsupported adapter type '{config.api_type}' for {platform_id}. "
                f"Supported: {self.list_supported_types()}"
            )
            return None
        return adapter_cls(config, platform_id, platform_name, **kwargs)

    def is_supported(self, type_id: str) -> bool:
        return type_id.lower() in self._adapters

    def list_supported_types(self) -> List[str]:
        return sorted(self._adapters)

    def get_service_info(self, type_id: str) -> Optional[Dict[str, Any]]:
        adapter_cls = self._adapters.get(type_id.lower())
        if adapter_cls is None:
            return None
        doc = (adapter_cls.__doc__ or "").strip().splitlines()
        return {
            "type": type_id.lower(),
            "class_name": adapter_cls.__name__,
            "description": doc[0] if doc else "",
            "requires_credentials": adapter_cls.requires_credentials,
            "primary_endpoint": adapter_cls.primary_endpoint,
        }


def create_default_registry() -> AdapterRegistry:
    """Registry with the built-in adapters."""
    registry = AdapterRegistry()
    registry.register("defillama", DefiLlamaAdapter)
    registry.register("morpho", MorphoAdapter)
    registry.register("lido", LidoAdapter)
    registry.register("etherscan", EtherscanAdapter)
    return registry
