"""Rate layer package for cached price lookups."""

from .rate_cache import RateCache, RateCacheKey

__all__ = ["RateCache", "RateCacheKey"]
