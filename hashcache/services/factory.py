"""
Hash Record Factory Module

Builds typed hashes, record mappers and record caches bound to a record key,
resolving the Redis client, codec and tracer from configuration.
"""

from typing import Any, Optional, TypeVar

from redis.asyncio import Redis

from hashcache.common.codec import ValueCodec, get_codec
from hashcache.common.tracing import RequestTracer, get_default_tracer
from hashcache.config import get_settings
from hashcache.db.redis import get_redis
from hashcache.repositories.redis.hash_repo import RedisHashRepository
from hashcache.services.record_cache import RecordCache
from hashcache.services.record_mapper import RecordMapper
from hashcache.services.typed_hash import TypedHash

T = TypeVar("T")


def _build_repo(
    key: str,
    call_type: str,
    client: Optional[Redis],
    tracer: Optional[RequestTracer],
) -> RedisHashRepository:
    return RedisHashRepository(
        client if client is not None else get_redis(key),
        key,
        tracer=tracer if tracer is not None else get_default_tracer(),
        call_type=call_type,
    )


def _resolve_codec(codec: Optional[ValueCodec]) -> ValueCodec:
    return codec if codec is not None else get_codec(get_settings().VALUE_CODEC)


def typed_hash(
    key: str,
    value_type: Any = Any,
    *,
    codec: Optional[ValueCodec] = None,
    client: Optional[Redis] = None,
    tracer: Optional[RequestTracer] = None,
) -> TypedHash[Any]:
    """
    Get a typed hash for a record key

    Args:
        key: Record key (also the routing key inside a connection group)
        value_type: Type every field decodes to, Any for untyped access
        codec: Value codec, defaults to VALUE_CODEC
        client: Redis client, defaults to the group member owning `key`
        tracer: Request tracer, defaults to the configured one

    Returns:
        TypedHash: Typed hash bound to `key`
    """
    return TypedHash(_build_repo(key, "TypedHash", client, tracer), value_type, _resolve_codec(codec))


def record_mapper(
    key: str,
    record_type: type[T],
    *,
    codec: Optional[ValueCodec] = None,
    client: Optional[Redis] = None,
    tracer: Optional[RequestTracer] = None,
) -> RecordMapper[T]:
    """
    Get a record mapper for a record key

    Args:
        key: Record key
        record_type: pydantic model or dataclass the record maps to

    Returns:
        RecordMapper: Mapper bound to `key`
    """
    return RecordMapper(_build_repo(key, "RecordMapper", client, tracer), record_type, _resolve_codec(codec))


def record_cache(
    key: str,
    record_type: type[T],
    *,
    codec: Optional[ValueCodec] = None,
    client: Optional[Redis] = None,
    tracer: Optional[RequestTracer] = None,
) -> RecordCache[T]:
    """Get a get-or-populate cache for a record key"""
    return RecordCache(record_mapper(key, record_type, codec=codec, client=client, tracer=tracer))
