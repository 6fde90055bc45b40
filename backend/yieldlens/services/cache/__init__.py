"""
In-memory cache for external platform data.
"""
from yieldlens.services.cache.cache_service import CacheService
from yieldlens.services.cache.single_flight import SingleFlight

__all__ = [
    "CacheService",
    "SingleFlight",
]
