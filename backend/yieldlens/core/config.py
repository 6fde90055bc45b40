"""
Configuration management.
Loads from config_local.py (gitignored) for secrets, falling back to
environment variables and defaults.
"""
import os
from typing import Optional


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    value = os.environ.get(name)
    return int(value) if value else default


def _env_float(name: str, default: float) -> float:
    value = os.environ.get(name)
    return float(value) if value else default


# Try to import local config (gitignored)
try:
    from yieldlens.config_local import (
        DATABASE_URL,
        ETHERSCAN_API_KEY,
        ENABLE_SCHEDULER,
    )
    # Tuning knobs are optional in config_local
    try:
        from yieldlens.config_local import (
            CACHE_DEFAULT_TTL_SECONDS,
            CACHE_MAX_ENTRIES,
            CACHE_CLEANUP_INTERVAL_SECONDS,
            CACHE_EVICTION_POLICY,
            ADAPTER_TIMEOUT_SECONDS,
            AUTO_CREATE_TABLES,
            LOG_LEVEL,
            CORS_ORIGINS,
        )
    except ImportError:
        CACHE_DEFAULT_TTL_SECONDS = 600
        CACHE_MAX_ENTRIES = 1000
        CACHE_CLEANUP_INTERVAL_SECONDS = 300
        CACHE_EVICTION_POLICY = "fifo"
        ADAPTER_TIMEOUT_SECONDS = 30.0
        AUTO_CREATE_TABLES = True
        LOG_LEVEL = "INFO"
        CORS_ORIGINS = ["http://localhost:3000", "http://127.0.0.1:3000"]
except ImportError:
    # No local config: environment variables, then defaults
    DATABASE_URL: str = os.environ.get("DATABASE_URL", "sqlite:///./yieldlens.db")
    ETHERSCAN_API_KEY: Optional[str] = os.environ.get("ETHERSCAN_API_KEY") or None
    ENABLE_SCHEDULER: bool = _env_bool("ENABLE_SCHEDULER", True)
    CACHE_DEFAULT_TTL_SECONDS: int = _env_int("CACHE_DEFAULT_TTL_SECONDS", 600)  # 10 minutes
    CACHE_MAX_ENTRIES: int = _env_int("CACHE_MAX_ENTRIES", 1000)
    CACHE_CLEANUP_INTERVAL_SECONDS: int = _env_int("CACHE_CLEANUP_INTERVAL_SECONDS", 300)  # 5 minutes
    CACHE_EVICTION_POLICY: str = os.environ.get("CACHE_EVICTION_POLICY", "fifo")  # "fifo" or "lru"
    ADAPTER_TIMEOUT_SECONDS: float = _env_float("ADAPTER_TIMEOUT_SECONDS", 30.0)
    AUTO_CREATE_TABLES: bool = _env_bool("AUTO_CREATE_TABLES", True)
    LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO")
    CORS_ORIGINS: list = [
        origin.strip()
        for origin in os.environ.get("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(",")
        if origin.strip()
    ]


def get_settings():
    """Return settings object (for FastAPI dependency injection if needed)."""
    return type("Settings", (), {
        "database_url": DATABASE_URL,
        "etherscan_api_key": ETHERSCAN_API_KEY,
        "enable_scheduler": ENABLE_SCHEDULER,
        "cache_default_ttl_seconds": CACHE_DEFAULT_TTL_SECONDS,
        "cache_max_entries": CACHE_MAX_ENTRIES,
        "cache_cleanup_interval_seconds": CACHE_CLEANUP_INTERVAL_SECONDS,
        "cache_eviction_policy": CACHE_EVICTION_POLICY,
        "adapter_timeout_seconds": ADAPTER_TIMEOUT_SECONDS,
        "auto_create_tables": AUTO_CREATE_TABLES,
        "log_level": LOG_LEVEL,
        "cors_origins": CORS_ORIGINS,
    })()


def get_platform_credentials() -> dict:
    """Out-of-band API credentials per adapter type.

    Types that need no key map to an empty dict. A type whose key is missing
    maps to an empty dict too; the adapter reports itself unhealthy.
    """
    return {
        "defillama": {},
        "morpho": {},
        "lido": {},
        "etherscan": {"query_api_key": ETHERSCAN_API_KEY} if ETHERSCAN_API_KEY else {},
    }
