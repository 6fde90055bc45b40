"""
Database models.
"""
from yieldlens.models.service_configuration import ServiceConfiguration
from yieldlens.models.platform_api_config import PlatformApiConfig

__all__ = [
    "ServiceConfiguration",
    "PlatformApiConfig",
]
