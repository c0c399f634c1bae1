"""
hashcache

Typed async access to Redis hash records: field-level get/set/increment,
object-mapped records with get-or-populate caching, and clamped counters.
"""

from hashcache.common.codec import JsonValueCodec, PickleValueCodec, ValueCodec
from hashcache.common.errors import ConnectivityError, DecodeError, HashCacheError, ProtocolError
from hashcache.db.redis import close_redis, get_redis, init_redis
from hashcache.logging_config import setup_logging
from hashcache.services.clamp import ClampDirection
from hashcache.services.factory import record_cache, record_mapper, typed_hash
from hashcache.services.record_cache import RecordCache
from hashcache.services.record_mapper import RecordMapper
from hashcache.services.typed_hash import TypedHash

__all__ = [
    # Codec
    "ValueCodec",
    "JsonValueCodec",
    "PickleValueCodec",
    # Errors
    "HashCacheError",
    "ConnectivityError",
    "ProtocolError",
    "DecodeError",
    # Connection
    "init_redis",
    "close_redis",
    "get_redis",
    # Logging
    "setup_logging",
    # Records
    "ClampDirection",
    "TypedHash",
    "RecordMapper",
    "RecordCache",
    "typed_hash",
    "record_mapper",
    "record_cache",
]
