"""
Redis Connection Management Module

Provides Redis client lifecycle management and key routing.

A connection group is a list of independent Redis servers; each record key is
routed to one member by a stable CRC32 of the key, so every process resolves the
same key to the same server.
"""

import logging
import warnings
import zlib
from typing import Any, Optional
from urllib.parse import urlparse

from redis.asyncio import Redis

from hashcache.config import get_settings

logger = logging.getLogger(__name__)

# Global Redis client instances, one per connection group member
_redis_clients: list[Any] = []


def _check_redis_security(redis_url: str) -> None:
    """
    Check Redis connection security.

    Warns if Redis URL has no password and is not a localhost connection.
    """
    parsed = urlparse(redis_url)

    # Check if password is present in URL
    has_password = bool(parsed.password)

    # Check if connecting to localhost
    is_localhost = parsed.hostname in ("localhost", "127.0.0.1", "::1")

    if not has_password and not is_localhost:
        warnings.warn(
            "SECURITY WARNING: Redis connection has no password and is not connecting to localhost. "
            "Please set a password in the Redis URL using the format: redis://:password@host:port/db",
            UserWarning,
            stacklevel=3,
        )
        logger.warning(
            f"Redis connection without password to non-localhost host detected: {parsed.hostname}"
        )


def _redact(redis_url: str) -> str:
    parsed = urlparse(redis_url)
    if parsed.password:
        return redis_url.replace(f":{parsed.password}@", ":***@")
    return redis_url


def route_index(routing_key: str, group_size: int) -> int:
    """
    Pick the group member for a routing key

    Args:
        routing_key: Record key (or any logical routing key)
        group_size: Number of servers in the group

    Returns:
        int: Index into the connection group
    """
    if group_size <= 0:
        raise ValueError("Connection group is empty")
    return zlib.crc32(routing_key.encode("utf-8")) % group_size


async def init_redis() -> None:
    """
    Initialize Redis Connections

    Creates one async Redis client per configured URL and verifies connectivity.
    Responses are kept as raw bytes; decoding is the value codec's job.
    """
    global _redis_clients

    if _redis_clients:
        logger.warning("Redis clients already initialized")
        return

    settings = get_settings()
    clients = []
    for url in settings.redis_urls:
        # Security check for Redis connection
        _check_redis_security(url)
        client = Redis.from_url(
            url,
            decode_responses=False,
            socket_timeout=settings.REDIS_SOCKET_TIMEOUT,
        )
        # Verify connectivity
        await client.ping()
        logger.info(f"Redis connection established: {_redact(url)}")
        clients.append(client)

    _redis_clients = clients


async def close_redis() -> None:
    """
    Close Redis Connections

    Gracefully closes every client in the group.
    """
    global _redis_clients

    if not _redis_clients:
        return

    clients, _redis_clients = _redis_clients, []
    for client in clients:
        await client.aclose()
    logger.info(f"Redis connections closed: {len(clients)}")


def get_redis(routing_key: Optional[str] = None) -> Any:
    """
    Get Redis Client Instance

    Args:
        routing_key: Record key used to choose a group member.
            None returns the first member.

    Returns:
        Redis: The async Redis client responsible for the key

    Raises:
        RuntimeError: If Redis has not been initialized
    """
    if not _redis_clients:
        raise RuntimeError("Redis client not initialized. Ensure init_redis() has been called.")
    if routing_key is None:
        return _redis_clients[0]
    return _redis_clients[route_index(routing_key, len(_redis_clients))]
