"""
Hash Record Repository Interface

Defines the primitive operations on one named hash record.
Values are raw bytes; typing them is the codec's job in the layers above.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional, Sequence, Union


class HashRepository(ABC):
    """
    Hash Record Repository Interface

    Each operation is one independent request to the store. Nothing is
    batched beyond the store's native multi-field commands and nothing is retried.
    """

    key: str

    @abstractmethod
    async def exists(self, field: str) -> bool:
        """Check whether a field exists in the record"""
        pass

    @abstractmethod
    async def get(self, field: str) -> Optional[bytes]:
        """
        Get one field

        Returns:
            The field payload, or None if the field (or record) does not exist
        """
        pass

    @abstractmethod
    async def get_many(self, fields: Sequence[str]) -> list[Optional[bytes]]:
        """
        Get several fields

        Returns:
            Payloads in the same order as `fields`, None for missing ones
        """
        pass

    @abstractmethod
    async def get_all(self) -> dict[str, bytes]:
        """
        Get every field of the record

        Returns:
            Field name to payload mapping, empty if the record does not exist
        """
        pass

    @abstractmethod
    async def keys(self) -> set[str]:
        """Get the field names of the record"""
        pass

    @abstractmethod
    async def length(self) -> int:
        """Count the fields of the record"""
        pass

    @abstractmethod
    async def values(self) -> list[bytes]:
        """Get every field payload of the record"""
        pass

    @abstractmethod
    async def set(self, field: str, data: bytes) -> bool:
        """
        Set one field

        Returns:
            True if the field was created, False if it was overwritten
        """
        pass

    @abstractmethod
    async def set_many(self, mapping: dict[str, bytes]) -> None:
        """Set several fields with a single request"""
        pass

    @abstractmethod
    async def set_if_absent(self, field: str, data: bytes) -> bool:
        """
        Set a field only if it does not exist yet

        Returns:
            True if the field was set, False if it already existed (left untouched)
        """
        pass

    @abstractmethod
    async def increment(self, field: str, delta: Union[int, float] = 1) -> Union[int, float]:
        """
        Atomically add `delta` to a numeric field

        An int delta uses integer arithmetic and returns an int;
        a float delta uses floating point arithmetic and returns a float.
        """
        pass

    @abstractmethod
    async def remove(self, field: str) -> bool:
        """Remove one field, True if it existed"""
        pass

    @abstractmethod
    async def remove_many(self, fields: Sequence[str]) -> int:
        """Remove several fields, returns how many existed"""
        pass

    @abstractmethod
    async def expire(self, seconds: int) -> bool:
        """
        Set the record's time to live

        Returns:
            True if the timeout was set, False if the record does not exist
        """
        pass

    @abstractmethod
    async def key_exists(self) -> bool:
        """Check whether the record exists"""
        pass

    @abstractmethod
    async def delete_record(self) -> bool:
        """Delete the whole record, True if it existed"""
        pass

    @abstractmethod
    async def eval_script(self, script: str, keys: Sequence[str], args: Sequence[Any]) -> Any:
        """
        Run a server-side script as one indivisible operation

        Args:
            script: Script source
            keys: Key parameters (KEYS)
            args: Value parameters (ARGV)

        Returns:
            The raw script reply
        """
        pass
