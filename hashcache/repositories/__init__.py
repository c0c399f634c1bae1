"""
Data Access Layer Module Initialization
"""

from hashcache.repositories.hash_repo import HashRepository

__all__ = [
    "HashRepository",
]
