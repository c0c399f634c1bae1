"""
Record Mapper Module

Maps a structured value (pydantic model or dataclass) to the fields of one
hash record and back, one hash field per member.
"""

import logging
from typing import Any, Generic, Optional, TypeVar, Union

from hashcache.common.codec import JsonValueCodec, ValueCodec
from hashcache.common.time import Expiry
from hashcache.domain.record_schema import RecordSchema, get_schema
from hashcache.repositories.hash_repo import HashRepository
from hashcache.services.typed_hash import TypedHash

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RecordMapper(Generic[T]):
    """
    Record Mapper

    - load(): reads every field; a record with no fields is absent (None),
      never an instance full of defaults.
    - store(): writes every member with one multi-field request. The store
      applies the fields independently, so a concurrent reader may observe a
      partially written record.
    - Mapping is by member name and case-sensitive. Fields unknown to the type
      are ignored on load; members missing from the record keep their default.
    """

    def __init__(
        self,
        repo: HashRepository,
        record_type: type[T],
        codec: Optional[ValueCodec] = None,
    ):
        """
        Initialize Record Mapper

        Args:
            repo: Repository bound to the record key
            record_type: pydantic model or dataclass the record maps to
            codec: Value codec, defaults to JSON
        """
        self.repo = repo
        self.record_type = record_type
        self.codec = codec or JsonValueCodec()
        self.schema: RecordSchema = get_schema(record_type)
        self.fields: TypedHash[Any] = TypedHash(repo, Any, self.codec)

    @property
    def key(self) -> str:
        return self.repo.key

    async def load(self) -> Optional[T]:
        """
        Load the whole record

        Returns:
            The mapped instance, or None if the record has no fields

        Raises:
            DecodeError: If a stored field no longer matches its member type
        """
        data = await self.repo.get_all()
        if not data:
            return None

        values = {}
        for member in self.schema.members:
            if member.name in data:
                values[member.name] = self.codec.deserialize(member.annotation, data[member.name])
        return self.schema.build(values)

    async def store(self, value: T) -> None:
        """
        Store every member of `value` with a single request

        A type without members writes nothing.
        """
        mapping = {name: self.codec.serialize(member_value) for name, member_value in self.schema.dump(value).items()}
        if not mapping:
            logger.debug(f"{self.record_type.__name__} has no members, nothing stored for {self.key}")
            return
        await self.repo.set_many(mapping)

    async def load_field(self, field: str, value_type: Any = None) -> Any:
        """
        Load one field without reading the whole record

        Args:
            field: Field name
            value_type: Type to decode to; defaults to the member's annotation,
                or Any for fields that are not members

        Returns:
            The decoded value, or None if the field does not exist
        """
        if value_type is None:
            member = self.schema.member(field)
            value_type = member.annotation if member is not None else Any
        return await self.fields.get(field, value_type)

    async def store_field(self, field: str, value: Any) -> bool:
        """Store one field, True if it was created"""
        return await self.fields.set(field, value)

    async def store_fields(self, values: dict[str, Any]) -> None:
        """Store several fields with a single request"""
        await self.fields.set_many(values)

    async def increment(self, field: str, delta: Union[int, float] = 1) -> Union[int, float]:
        return await self.fields.increment(field, delta)

    async def increment_limit_by_max(
        self, field: str, delta: Union[int, float], max_value: Union[int, float]
    ) -> Union[int, float]:
        return await self.fields.increment_limit_by_max(field, delta, max_value)

    async def increment_limit_by_min(
        self, field: str, delta: Union[int, float], min_value: Union[int, float]
    ) -> Union[int, float]:
        return await self.fields.increment_limit_by_min(field, delta, min_value)

    async def expire(self, expiry: Expiry) -> bool:
        return await self.fields.expire(expiry)

    async def key_exists(self) -> bool:
        return await self.repo.key_exists()

    async def clear(self) -> bool:
        return await self.repo.delete_record()
