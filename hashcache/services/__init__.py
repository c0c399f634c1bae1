"""
Service Layer Module Initialization
"""

from hashcache.services.clamp import ClampDirection, increment_clamped
from hashcache.services.record_cache import RecordCache
from hashcache.services.record_mapper import RecordMapper
from hashcache.services.typed_hash import TypedHash

__all__ = [
    "ClampDirection",
    "increment_clamped",
    "RecordCache",
    "RecordMapper",
    "TypedHash",
]
