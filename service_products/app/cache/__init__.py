"""
Cache package for the Products Service.

Provides the Redis-backed listing cache and the no-op stand-in used when
no cache is configured. ``build_cache`` picks between them once at startup.
"""

from .redis_cache import RedisCache, NullCache, build_cache

__all__ = ["RedisCache", "NullCache", "build_cache"]
