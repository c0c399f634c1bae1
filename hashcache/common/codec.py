"""
Value Codec Module

Serializes typed values to the bytes stored in hash fields and back.

The default JSON codec writes numbers as their plain decimal text, which keeps
fields written by the codec usable by HINCRBY / HINCRBYFLOAT and lets the codec
read back the counters those commands produce.
"""

import pickle
from abc import ABC, abstractmethod
from functools import lru_cache
from typing import Any, Union, get_origin

from pydantic import TypeAdapter, ValidationError

from hashcache.common.errors import DecodeError


@lru_cache(maxsize=512)
def _type_adapter(value_type: Any) -> TypeAdapter:
    return TypeAdapter(value_type)


def _as_bytes(data: Union[bytes, str]) -> bytes:
    if isinstance(data, str):
        return data.encode("utf-8")
    return data


class ValueCodec(ABC):
    """
    Value Codec Interface

    A record must be written and read with wire-compatible codecs.
    """

    name: str = "codec"

    @abstractmethod
    def serialize(self, value: Any) -> bytes:
        """
        Encode a value for storage

        Args:
            value: Value to encode

        Returns:
            bytes: Field payload
        """
        pass

    @abstractmethod
    def deserialize(self, value_type: Any, data: Union[bytes, str]) -> Any:
        """
        Decode a field payload

        Args:
            value_type: Expected Python type (``Any`` accepts whatever was stored)
            data: Field payload as returned by the store

        Returns:
            The decoded value

        Raises:
            DecodeError: If the payload cannot be decoded into `value_type`
        """
        pass


class JsonValueCodec(ValueCodec):
    """
    JSON Value Codec

    Uses pydantic TypeAdapter so annotated types (models, dataclasses, datetimes,
    enums, containers) are validated on the way back in.
    """

    name = "json"

    def serialize(self, value: Any) -> bytes:
        return _type_adapter(type(value)).dump_json(value)

    def deserialize(self, value_type: Any, data: Union[bytes, str]) -> Any:
        try:
            return _type_adapter(value_type).validate_json(_as_bytes(data))
        except ValidationError as exc:
            raise DecodeError(
                f"Cannot decode stored value as {getattr(value_type, '__name__', value_type)}",
                details={"codec": self.name, "errors": exc.errors(include_url=False)},
            ) from exc


class PickleValueCodec(ValueCodec):
    """
    Pickle Value Codec

    Round-trips arbitrary Python objects. Fields written with this codec are not
    plain numbers, so server-side increments cannot be used on them.
    Only read data written by trusted processes.
    """

    name = "pickle"

    def __init__(self, protocol: int = pickle.HIGHEST_PROTOCOL):
        self.protocol = protocol

    def serialize(self, value: Any) -> bytes:
        return pickle.dumps(value, protocol=self.protocol)

    def deserialize(self, value_type: Any, data: Union[bytes, str]) -> Any:
        try:
            value = pickle.loads(_as_bytes(data))
        except (pickle.UnpicklingError, EOFError, AttributeError, ImportError, ValueError) as exc:
            raise DecodeError(
                "Cannot unpickle stored value",
                details={"codec": self.name},
            ) from exc
        expected = get_origin(value_type) or value_type
        if value_type is not Any and isinstance(expected, type) and not isinstance(value, expected):
            raise DecodeError(
                f"Stored value is {type(value).__name__}, expected {expected.__name__}",
                details={"codec": self.name},
            )
        return value


def get_codec(name: str) -> ValueCodec:
    """
    Get a codec by configured name

    Args:
        name: "json" or "pickle"

    Returns:
        ValueCodec: Codec instance

    Raises:
        ValueError: If the name is unknown
    """
    if name == "json":
        return JsonValueCodec()
    if name == "pickle":
        return PickleValueCodec()
    raise ValueError(f"Unknown value codec: {name}")
