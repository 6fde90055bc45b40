"""
Default service catalog, used to seed service_configurations.

``interval_minutes`` and ``is_enabled`` only apply when a row is first
created; afterwards they belong to the operator.
"""
from typing import Any, Dict, List

DEFAULT_SERVICE_CONFIGS: List[Dict[str, Any]] = [
    {
        "service_name": "poolDataSync",
        "display_name": "Pool Data Sync",
        "description": "Synchronizes APY and TVL data for yield pools from DefiLlama",
        "interval_minutes": 5,
        "is_enabled": True,
        "category": "sync",
        "priority": 1,
    },
    {
        "service_name": "morphoApiSync",
        "display_name": "Morpho API Sync",
        "description": "Fast sync for Morpho protocol vault data",
        "interval_minutes": 3,
        "is_enabled": True,
        "category": "sync",
        "priority": 1,
    },
    {
        "service_name": "lidoApiSync",
        "display_name": "Lido API Sync",
        "description": "Syncs the stETH staking APR from the Lido API",
        "interval_minutes": 10,
        "is_enabled": True,
        "category": "sync",
        "priority": 2,
    },
    {
        "service_name": "tokenPriceSync",
        "display_name": "Token Price Sync",
        "description": "Updates ETH pricing information from Etherscan",
        "interval_minutes": 10,
        "is_enabled": True,
        "category": "sync",
        "priority": 2,
    },
    {
        "service_name": "platformHealthCheck",
        "display_name": "Platform Health Check",
        "description": "Monitors health and connectivity of every configured platform API",
        "interval_minutes": 15,
        "is_enabled": True,
        "category": "monitoring",
        "priority": 3,
    },
]
