"""
Configuration error types.

Raised synchronously to the caller; never fatal to the process.
"""


class ConfigurationError(ValueError):
    """Base class for configuration errors."""


class ServiceNotFoundError(ConfigurationError):
    """No service configuration exists under the given name."""

    def __init__(self, service_name: str):
        self.service_name = service_name
        super().__init__(f"Service configuration not found: {service_name}")


class PlatformNotFoundError(ConfigurationError):
    """No platform API configuration exists for the given platform id."""

    def __init__(self, platform_id: str):
        self.platform_id = platform_id
        super().__init__(f"Platform API configuration not found: {platform_id}")


class InvalidConfigurationError(ConfigurationError):
    """A configuration value is out of range."""
