"""
Domain Model Module Initialization
"""

from hashcache.domain.record_schema import RecordMember, RecordSchema, get_schema

__all__ = [
    "RecordMember",
    "RecordSchema",
    "get_schema",
]
