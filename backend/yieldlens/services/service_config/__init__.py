"""
Service configuration: default catalog and run tracking.
"""
from yieldlens.services.service_config.catalog import DEFAULT_SERVICE_CONFIGS
from yieldlens.services.service_config.service_configuration_service import ServiceConfigurationService

__all__ = [
    "DEFAULT_SERVICE_CONFIGS",
    "ServiceConfigurationService",
]
