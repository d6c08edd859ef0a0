"""
Library of builtin scalar converters.

Each converter transcribes one kind of scalar value to/from its JSON form using fixed
rules, and knows the zero value emitted for unset members with `emit_default`.
"""

from __future__ import annotations

import math
import re
from abc import ABC, abstractmethod
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation
from enum import Enum
from functools import cache
from typing import Any, ClassVar
from uuid import UUID

from ..exceptions import TypeShapeMismatchError

__all__ = [
    "BaseScalarConverter",
    "SCALAR_CONVERTERS",
    "find_scalar_converter",
    "is_scalar_type",
]

REGEX_FLAGS: dict[str, re.RegexFlag] = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
    "x": re.VERBOSE,
    "a": re.ASCII,
}
"""
Flag letters used in the `/source/flags` encoding of compiled patterns.
"""


class BaseScalarConverter[ValueT](ABC):
    """
    Base class to encapsulate bidirectional conversion of a scalar type.

    Subclass to specify the handled type, then implement the abstract serialization
    and deserialization methods. Both take the concrete type requested by the type
    tag so subclasses (e.g. enums) can be reconstructed.
    """

    value_type: ClassVar[type]
    """
    Type handled by this converter, including its subclasses.
    """

    default: ClassVar[Any] = None
    """
    Value emitted for unset members declared with `emit_default`.
    """

    @classmethod
    def can_convert(cls, type_: type, /) -> bool:
        return issubclass(type_, cls.value_type)

    @classmethod
    @abstractmethod
    def serialize(cls, obj: ValueT, type_: type[ValueT], /) -> Any:
        """
        Serialize from typed value to JSON-compatible value.

        :param obj: Object to serialize
        :param type_: Type expected by the type tag
        :raises TypeShapeMismatchError: If object is not of the expected type
        :return: Serialized object
        """
        ...

    @classmethod
    @abstractmethod
    def deserialize(cls, obj: Any, type_: type[ValueT], /) -> ValueT:
        """
        Deserialize from JSON-compatible value to typed value.

        :param obj: Plain object to deserialize
        :param type_: Type expected by the type tag
        :raises TypeShapeMismatchError: If object can't be coerced to the type
        :return: Deserialized object
        """
        ...

    @classmethod
    def _mismatch(cls, obj: Any, type_: type) -> TypeShapeMismatchError:
        return TypeShapeMismatchError(
            f"Expected {type_.__name__}, got {type(obj).__name__}: {obj!r}", obj=obj
        )


class StrConverter(BaseScalarConverter[str]):
    value_type = str
    default = ""

    @classmethod
    def serialize(cls, obj: str, type_: type[str], /) -> str:
        if not isinstance(obj, str):
            raise cls._mismatch(obj, type_)
        return str(obj)

    @classmethod
    def deserialize(cls, obj: Any, type_: type[str], /) -> str:
        if not isinstance(obj, str):
            raise cls._mismatch(obj, type_)
        return obj if type_ is str else type_(obj)


class BoolConverter(BaseScalarConverter[bool]):
    value_type = bool
    default = False

    @classmethod
    def serialize(cls, obj: bool, type_: type[bool], /) -> bool:
        if not isinstance(obj, bool):
            raise cls._mismatch(obj, type_)
        return obj

    @classmethod
    def deserialize(cls, obj: Any, type_: type[bool], /) -> bool:
        if not isinstance(obj, bool):
            raise cls._mismatch(obj, type_)
        return obj


class IntConverter(BaseScalarConverter[int]):
    """
    Converter for integers; booleans are rejected even though `bool` subclasses `int`.
    """

    value_type = int
    default = 0

    @classmethod
    def serialize(cls, obj: int, type_: type[int], /) -> int:
        if not isinstance(obj, int) or isinstance(obj, bool):
            raise cls._mismatch(obj, type_)
        return int(obj)

    @classmethod
    def deserialize(cls, obj: Any, type_: type[int], /) -> int:
        if isinstance(obj, float) and obj.is_integer():
            obj = int(obj)
        if not isinstance(obj, int) or isinstance(obj, bool):
            raise cls._mismatch(obj, type_)
        return obj if type_ is int else type_(obj)


class FloatConverter(BaseScalarConverter[float]):
    """
    Converter for floats; integers are accepted and widened. NaN and infinities have
    no JSON representation and are rejected.
    """

    value_type = float
    default = 0.0

    @classmethod
    def serialize(cls, obj: float, type_: type[float], /) -> float:
        if not _is_finite_number(obj):
            raise cls._mismatch(obj, type_)
        return float(obj)

    @classmethod
    def deserialize(cls, obj: Any, type_: type[float], /) -> float:
        if not _is_finite_number(obj):
            raise cls._mismatch(obj, type_)
        return type_(obj)


def _is_finite_number(obj: Any) -> bool:
    if not isinstance(obj, (int, float)) or isinstance(obj, bool):
        return False
    try:
        return math.isfinite(float(obj))
    except OverflowError:
        return False


class EnumConverter(BaseScalarConverter[Enum]):
    """
    Converter for enum members to/from their values.
    """

    value_type = Enum

    @classmethod
    def serialize(cls, obj: Enum, type_: type[Enum], /) -> Any:
        if not isinstance(obj, type_):
            raise cls._mismatch(obj, type_)
        return obj.value

    @classmethod
    def deserialize(cls, obj: Any, type_: type[Enum], /) -> Enum:
        try:
            return type_(obj)
        except ValueError as e:
            raise TypeShapeMismatchError(str(e), obj=obj) from e


class BaseIsoConverter[ValueT: (date, datetime, time)](BaseScalarConverter[ValueT]):
    """
    Converter for ISO-8601 strings to/from python date/time objects.
    """

    @classmethod
    def serialize(cls, obj: ValueT, type_: type[ValueT], /) -> str:
        if not isinstance(obj, type_):
            raise cls._mismatch(obj, type_)
        return obj.isoformat()

    @classmethod
    def deserialize(cls, obj: Any, type_: type[ValueT], /) -> ValueT:
        if not isinstance(obj, str):
            raise cls._mismatch(obj, type_)
        try:
            return type_.fromisoformat(obj)
        except ValueError as e:
            raise TypeShapeMismatchError(
                f"Invalid ISO-8601 {type_.__name__}: {obj!r}", obj=obj
            ) from e


class DateTimeConverter(BaseIsoConverter[datetime]):
    value_type = datetime


class DateConverter(BaseIsoConverter[date]):
    value_type = date


class TimeConverter(BaseIsoConverter[time]):
    value_type = time


class DecimalConverter(BaseScalarConverter[Decimal]):
    """
    Converter for decimals to/from strings, preserving precision.
    """

    value_type = Decimal

    @classmethod
    def serialize(cls, obj: Decimal, type_: type[Decimal], /) -> str:
        if not isinstance(obj, Decimal):
            raise cls._mismatch(obj, type_)
        return str(obj)

    @classmethod
    def deserialize(cls, obj: Any, type_: type[Decimal], /) -> Decimal:
        if not isinstance(obj, (str, int, float)) or isinstance(obj, bool):
            raise cls._mismatch(obj, type_)
        try:
            return type_(str(obj))
        except InvalidOperation as e:
            raise TypeShapeMismatchError(f"Invalid decimal: {obj!r}", obj=obj) from e


class UUIDConverter(BaseScalarConverter[UUID]):
    value_type = UUID

    @classmethod
    def serialize(cls, obj: UUID, type_: type[UUID], /) -> str:
        if not isinstance(obj, UUID):
            raise cls._mismatch(obj, type_)
        return str(obj)

    @classmethod
    def deserialize(cls, obj: Any, type_: type[UUID], /) -> UUID:
        if not isinstance(obj, str):
            raise cls._mismatch(obj, type_)
        try:
            return type_(obj)
        except ValueError as e:
            raise TypeShapeMismatchError(f"Invalid UUID: {obj!r}", obj=obj) from e


class PatternConverter(BaseScalarConverter[re.Pattern]):
    """
    Converter for compiled regular expressions to/from `/source/flags` strings.

    A string without the surrounding slashes is compiled as-is without flags.
    """

    value_type = re.Pattern

    @classmethod
    def serialize(cls, obj: re.Pattern, type_: type[re.Pattern], /) -> str:
        if not isinstance(obj, re.Pattern) or not isinstance(obj.pattern, str):
            raise cls._mismatch(obj, type_)
        flags = "".join(c for c, f in REGEX_FLAGS.items() if obj.flags & f)
        return f"/{obj.pattern}/{flags}"

    @classmethod
    def deserialize(cls, obj: Any, type_: type[re.Pattern], /) -> re.Pattern:
        if not isinstance(obj, str):
            raise cls._mismatch(obj, type_)

        source, flags = obj, re.NOFLAG
        if obj.startswith("/") and (end := obj.rfind("/")) > 0:
            letters = obj[end + 1 :]
            if all(c in REGEX_FLAGS for c in letters):
                source = obj[1:end]
                for c in letters:
                    flags |= REGEX_FLAGS[c]

        try:
            return re.compile(source, flags)
        except re.error as e:
            raise TypeShapeMismatchError(
                f"Invalid regular expression: {obj!r}", obj=obj
            ) from e


# order matters: subclasses before their bases
SCALAR_CONVERTERS: tuple[type[BaseScalarConverter], ...] = (
    BoolConverter,
    EnumConverter,
    IntConverter,
    FloatConverter,
    StrConverter,
    DateTimeConverter,
    DateConverter,
    TimeConverter,
    DecimalConverter,
    UUIDConverter,
    PatternConverter,
)
"""
Builtin scalar converters in lookup order.
"""


@cache
def find_scalar_converter(type_: type, /) -> type[BaseScalarConverter] | None:
    """
    Find the converter handling the given type, if it's a scalar type.
    """
    if not isinstance(type_, type):
        return None
    return next((c for c in SCALAR_CONVERTERS if c.can_convert(type_)), None)


def is_scalar_type(type_: Any, /) -> bool:
    return find_scalar_converter(type_) is not None
