"""
Record Cache Module

Get-or-compute for mapped records: read the record, and on a miss produce
the value, store it and optionally set the record's expiry.

There is no single-flight de-duplication. Callers that miss at the same time
each run the producer and each write the record; the last write wins. Callers
that need de-duplication must add it around this class (an in-process lock
keyed by record key only covers concurrent misses within one process).
"""

import asyncio
import inspect
import logging
from typing import Awaitable, Callable, Generic, Optional, TypeVar, Union

from hashcache.common.time import Expiry, to_expiry_seconds
from hashcache.services.record_mapper import RecordMapper

logger = logging.getLogger(__name__)

T = TypeVar("T")

Producer = Callable[[], Union[T, Awaitable[T]]]


class RecordCache(Generic[T]):
    """
    Record Cache

    Keeps no state between calls; one instance can serve any number of
    concurrent callers.
    """

    def __init__(self, mapper: RecordMapper[T]):
        """
        Initialize Record Cache

        Args:
            mapper: Mapper of the cached record
        """
        self.mapper = mapper

    @property
    def key(self) -> str:
        return self.mapper.key

    async def get_or_populate(self, producer: Producer[T], expiry: Optional[Expiry] = None) -> T:
        """
        Return the cached record, producing and storing it on a miss

        A hit performs no write and leaves the record's expiry untouched.
        On a miss with an expiry, the store and expire requests are sent
        concurrently and both are awaited before returning. If either fails
        the call fails, even though the other may already have been applied.

        Args:
            producer: Zero-argument callable returning the value, or an
                awaitable of it (async functions are supported)
            expiry: Seconds, timedelta or absolute deadline. A deadline is
                converted to seconds once, when the call starts.

        Returns:
            The cached value on a hit, the produced value on a miss
        """
        expiry_seconds = to_expiry_seconds(expiry) if expiry is not None else None

        value = await self.mapper.load()
        if value is not None:
            return value

        logger.debug(f"Cache miss for {self.key}, producing value")
        produced = producer()
        if inspect.isawaitable(produced):
            produced = await produced

        if expiry_seconds is None:
            await self.mapper.store(produced)
            return produced

        results = await asyncio.gather(
            self.mapper.store(produced),
            self.mapper.repo.expire(expiry_seconds),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, BaseException):
                raise result
        if results[1] is False:
            # EXPIRE reached the server before the record's first field did
            logger.debug(f"Expiry for {self.key} arrived before the record, setting it again")
            await self.mapper.repo.expire(expiry_seconds)
        return produced
