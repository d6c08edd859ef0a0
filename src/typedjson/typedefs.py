"""
Type tags: descriptors of the expected shape of a value.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import NoneType
from typing import Any

from .converting.scalars import is_scalar_type

__all__ = [
    "JsonValueType",
    "TypeTag",
    "ScalarTag",
    "ObjectTag",
    "ArrayTag",
    "SetTag",
    "MapTag",
    "as_tag",
    "iter_object_types",
]

type JsonValueType = str | int | float | bool | NoneType | list[
    JsonValueType
] | dict[str, JsonValueType]
"""
Native types which can be represented in JSON format.
"""


@dataclass(frozen=True)
class ScalarTag:
    """
    Value transcribed directly by a scalar converter.
    """

    type_: type

    def __post_init__(self):
        if not is_scalar_type(self.type_):
            raise TypeError(f"No scalar converter for {self.type_!r}")

    def __repr__(self) -> str:
        return f"Scalar({self.type_.__name__})"


@dataclass(frozen=True)
class ObjectTag:
    """
    Instance of a registered class.
    """

    type_: type

    def __repr__(self) -> str:
        return f"Object({self.type_.__name__})"


@dataclass(frozen=True)
class ArrayTag:
    """
    Array of arbitrary dimension; elements at the innermost level use `element`.
    """

    element: TypeTag
    dimensions: int = 1

    def __post_init__(self):
        if self.dimensions < 1:
            raise ValueError(f"Array dimensions must be >= 1, got {self.dimensions}")

    def __repr__(self) -> str:
        return f"Array({self.element!r}, {self.dimensions})"

    @property
    def item_tag(self) -> TypeTag:
        """
        Tag of items one level down.
        """
        if self.dimensions == 1:
            return self.element
        return ArrayTag(self.element, self.dimensions - 1)


@dataclass(frozen=True)
class SetTag:
    """
    Set, represented in JSON as an array of elements.
    """

    element: TypeTag

    def __repr__(self) -> str:
        return f"Set({self.element!r})"


@dataclass(frozen=True)
class MapTag:
    """
    Mapping, represented in JSON as an array of `[key, value]` pairs.
    """

    key: TypeTag
    value: TypeTag

    def __repr__(self) -> str:
        return f"Map({self.key!r}, {self.value!r})"


type TypeTag = ScalarTag | ObjectTag | ArrayTag | SetTag | MapTag


def as_tag(type_or_tag: type | TypeTag | Any, /) -> TypeTag:
    """
    Normalize a class to a scalar or object tag; tags are passed through.
    """
    if isinstance(type_or_tag, (ScalarTag, ObjectTag, ArrayTag, SetTag, MapTag)):
        return type_or_tag
    if not isinstance(type_or_tag, type):
        raise TypeError(f"Expected a class or type tag, got {type_or_tag!r}")
    if is_scalar_type(type_or_tag):
        return ScalarTag(type_or_tag)
    return ObjectTag(type_or_tag)


def iter_object_types(tag: TypeTag, /):
    """
    Yield object classes referenced by the tag, recursing into container tags.
    """
    match tag:
        case ObjectTag(type_=type_):
            yield type_
        case ArrayTag(element=element) | SetTag(element=element):
            yield from iter_object_types(element)
        case MapTag(key=key, value=value):
            yield from iter_object_types(key)
            yield from iter_object_types(value)
        case _:
            pass
