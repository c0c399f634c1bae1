"""
Record Schema Module

Enumerates the mappable members of a structured type and reads/builds
instances by member name. Supports pydantic models and dataclasses.
"""

import copy
import dataclasses
import types
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Callable, Optional, Union, get_origin, get_type_hints

from pydantic import BaseModel
from pydantic_core import PydanticUndefined

_NO_DEFAULT = object()

_ZERO_VALUES: dict[Any, Any] = {
    int: 0,
    float: 0.0,
    str: "",
    bool: False,
    bytes: b"",
}

_EMPTY_CONTAINERS = (list, dict, set, frozenset, tuple)


def zero_value(annotation: Any) -> Any:
    """
    Zero value of an annotation

    Numbers give 0, strings and bytes give empty values, builtin containers
    give an empty container; optional and anything else give None.
    """
    if annotation in _ZERO_VALUES:
        return _ZERO_VALUES[annotation]
    origin = get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        return None
    if origin in _EMPTY_CONTAINERS:
        return origin()
    if annotation in _EMPTY_CONTAINERS:
        return annotation()
    return None


@dataclass(frozen=True)
class RecordMember:
    """One mappable member of a record type"""

    name: str
    annotation: Any
    default: Any = _NO_DEFAULT
    default_factory: Optional[Callable[..., Any]] = None
    # pydantic factories declared as `lambda data: ...` receive the members built so far
    factory_takes_data: bool = False
    init: bool = True

    def default_value(self, data: Optional[dict[str, Any]] = None) -> Any:
        """Declared default, or the annotation's zero value when there is none"""
        if self.default_factory is not None:
            if self.factory_takes_data:
                return self.default_factory(dict(data or {}))
            return self.default_factory()
        if self.default is not _NO_DEFAULT:
            return copy.deepcopy(self.default)
        return zero_value(self.annotation)


class RecordSchema:
    """
    Record Schema

    Name-based, case-sensitive mapping between a type's members and hash fields.
    """

    def __init__(self, record_type: type):
        """
        Build the schema of a record type

        Args:
            record_type: A pydantic BaseModel subclass or a dataclass

        Raises:
            TypeError: If the type is neither
        """
        self.record_type = record_type
        if isinstance(record_type, type) and issubclass(record_type, BaseModel):
            self.is_pydantic = True
            self.members = tuple(self._pydantic_members(record_type))
        elif isinstance(record_type, type) and dataclasses.is_dataclass(record_type):
            self.is_pydantic = False
            self.members = tuple(self._dataclass_members(record_type))
        else:
            raise TypeError(
                f"{getattr(record_type, '__name__', record_type)!s} is not a pydantic model or a dataclass"
            )
        self._by_name = {member.name: member for member in self.members}

    @staticmethod
    def _pydantic_members(record_type: type[BaseModel]) -> list[RecordMember]:
        members = []
        for name, info in record_type.model_fields.items():
            default = _NO_DEFAULT if info.default is PydanticUndefined else info.default
            members.append(
                RecordMember(
                    name=name,
                    annotation=info.annotation,
                    default=default,
                    default_factory=info.default_factory,
                    factory_takes_data=info.default_factory is not None and info.default_factory_takes_validated_data,
                )
            )
        return members

    @staticmethod
    def _dataclass_members(record_type: type) -> list[RecordMember]:
        hints = get_type_hints(record_type)
        members = []
        for f in dataclasses.fields(record_type):
            default = _NO_DEFAULT if f.default is dataclasses.MISSING else f.default
            factory = None if f.default_factory is dataclasses.MISSING else f.default_factory
            members.append(
                RecordMember(
                    name=f.name,
                    annotation=hints.get(f.name, Any),
                    default=default,
                    default_factory=factory,
                    init=f.init,
                )
            )
        return members

    @property
    def names(self) -> list[str]:
        return [member.name for member in self.members]

    def member(self, name: str) -> Optional[RecordMember]:
        return self._by_name.get(name)

    def dump(self, value: Any) -> dict[str, Any]:
        """
        Read every member of an instance

        Returns:
            dict: Member name to current value
        """
        if not isinstance(value, self.record_type):
            raise TypeError(
                f"Expected {self.record_type.__name__}, got {type(value).__name__}"
            )
        return {member.name: getattr(value, member.name) for member in self.members}

    def build(self, values: dict[str, Any]) -> Any:
        """
        Build an instance from member values

        Members missing from `values` get their default (or zero value);
        keys that are not members are ignored. A pydantic default factory that
        takes data sees the members declared before it. Values are expected to be
        already decoded to the member types and are not validated again.
        """
        complete: dict[str, Any] = {}
        for member in self.members:
            if member.name in values:
                complete[member.name] = values[member.name]
            else:
                complete[member.name] = member.default_value(complete)
        if self.is_pydantic:
            return self.record_type.model_construct(**complete)

        init_args = {m.name: complete[m.name] for m in self.members if m.init}
        instance = self.record_type(**init_args)
        for member in self.members:
            if not member.init:
                object.__setattr__(instance, member.name, complete[member.name])
        return instance


@lru_cache(maxsize=256)
def get_schema(record_type: type) -> RecordSchema:
    """Get the cached schema of a record type"""
    return RecordSchema(record_type)
