"""
Platform adapters for external yield, staking and explorer APIs.
"""
from yieldlens.services.platforms.base import (
    AdapterConfig,
    AdapterData,
    AdapterResult,
    BasePlatformAdapter,
)
from yieldlens.services.platforms.defillama import DefiLlamaAdapter
from yieldlens.services.platforms.etherscan import EtherscanAdapter
from yieldlens.services.platforms.lido import LidoAdapter
from yieldlens.services.platforms.morpho import MorphoAdapter
from yieldlens.services.platforms.registry import (
    DEFAULT_PLATFORM_API_CONFIGS,
    AdapterRegistry,
    create_default_registry,
)

__all__ = [
    "AdapterConfig",
    "AdapterData",
    "AdapterResult",
    "BasePlatformAdapter",
    "DefiLlamaAdapter",
    "EtherscanAdapter",
    "LidoAdapter",
    "MorphoAdapter",
    "DEFAULT_PLATFORM_API_CONFIGS",
    "AdapterRegistry",
    "create_default_registry",
]
