"""
Redis Repository Implementation Module Initialization
"""

from hashcache.repositories.redis.hash_repo import RedisHashRepository

__all__ = [
    "RedisHashRepository",
]
