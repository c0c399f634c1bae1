"""
Typed Hash Module

Codec-aware access to the fields of one hash record.

`TypedHash[T]` covers both the dictionary style (every field holds a T) and the
untyped style (`value_type=Any`, or a per-call `value_type`).
"""

from typing import Any, Generic, Optional, Sequence, TypeVar, Union

from hashcache.common.codec import JsonValueCodec, ValueCodec
from hashcache.common.time import Expiry, to_expiry_seconds
from hashcache.repositories.hash_repo import HashRepository
from hashcache.services.clamp import ClampDirection, increment_clamped

T = TypeVar("T")

_DEFAULT = object()


class TypedHash(Generic[T]):
    """
    Typed Hash

    Encodes values with the codec before writing and decodes them after reading.
    A missing field reads as None; the codec never sees it.
    """

    def __init__(
        self,
        repo: HashRepository,
        value_type: Any = Any,
        codec: Optional[ValueCodec] = None,
    ):
        """
        Initialize Typed Hash

        Args:
            repo: Repository bound to the record key
            value_type: Default type fields are decoded to
            codec: Value codec, defaults to JSON
        """
        self.repo = repo
        self.value_type = value_type
        self.codec = codec or JsonValueCodec()

    @property
    def key(self) -> str:
        return self.repo.key

    def _decode(self, data: Optional[bytes], value_type: Any = _DEFAULT) -> Optional[T]:
        if data is None:
            return None
        return self.codec.deserialize(self.value_type if value_type is _DEFAULT else value_type, data)

    async def exists(self, field: str) -> bool:
        return await self.repo.exists(field)

    async def get(self, field: str, value_type: Any = _DEFAULT) -> Optional[T]:
        return self._decode(await self.repo.get(field), value_type)

    async def get_many(self, fields: Sequence[str], value_type: Any = _DEFAULT) -> list[Optional[T]]:
        return [self._decode(data, value_type) for data in await self.repo.get_many(fields)]

    async def get_all(self, value_type: Any = _DEFAULT) -> dict[str, T]:
        return {
            field: self._decode(data, value_type)
            for field, data in (await self.repo.get_all()).items()
        }

    async def keys(self) -> set[str]:
        return await self.repo.keys()

    async def length(self) -> int:
        return await self.repo.length()

    async def values(self, value_type: Any = _DEFAULT) -> list[T]:
        return [self._decode(data, value_type) for data in await self.repo.values()]

    async def set(self, field: str, value: T) -> bool:
        return await self.repo.set(field, self.codec.serialize(value))

    async def set_many(self, values: dict[str, T]) -> None:
        await self.repo.set_many({field: self.codec.serialize(value) for field, value in values.items()})

    async def set_if_absent(self, field: str, value: T) -> bool:
        return await self.repo.set_if_absent(field, self.codec.serialize(value))

    async def increment(self, field: str, delta: Union[int, float] = 1) -> Union[int, float]:
        return await self.repo.increment(field, delta)

    async def increment_limit_by_max(
        self, field: str, delta: Union[int, float], max_value: Union[int, float]
    ) -> Union[int, float]:
        return await increment_clamped(self.repo, field, delta, max_value, ClampDirection.MAX)

    async def increment_limit_by_min(
        self, field: str, delta: Union[int, float], min_value: Union[int, float]
    ) -> Union[int, float]:
        return await increment_clamped(self.repo, field, delta, min_value, ClampDirection.MIN)

    async def remove(self, field: str) -> bool:
        return await self.repo.remove(field)

    async def remove_many(self, fields: Sequence[str]) -> int:
        return await self.repo.remove_many(fields)

    async def expire(self, expiry: Expiry) -> bool:
        """Set the record's time to live (seconds, timedelta or absolute deadline)"""
        return await self.repo.expire(to_expiry_seconds(expiry))

    async def key_exists(self) -> bool:
        return await self.repo.key_exists()

    async def clear(self) -> bool:
        """Delete the whole record"""
        return await self.repo.delete_record()
