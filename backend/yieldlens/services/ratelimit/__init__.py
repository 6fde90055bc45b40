"""
Per-source call throttling.
"""
from yieldlens.services.ratelimit.rate_limiter import RateLimiter

__all__ = ["RateLimiter"]
