"""
Conversion of JSON text to/from instances of a root type.
"""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from collections.abc import Set as AbstractSet
from typing import Any

from .converting.scalars import is_scalar_type
from .deserializing import collect_known_types, deserialize_value
from .exceptions import (
    ConversionErrors,
    JsonConversionError,
    MalformedJsonError,
    TypeShapeMismatchError,
    UnregisteredRootTypeError,
)
from .metadata import REGISTRY, MetadataRegistry
from .serializing import serialize_value
from .settings import DEFAULT_SETTINGS, JsonSettings, ReplacerType
from .typedefs import ArrayTag, JsonValueType, MapTag, SetTag, TypeTag, as_tag

__all__ = [
    "TypedJSON",
    "parse",
    "parse_as_array",
    "parse_as_set",
    "parse_as_map",
    "stringify",
    "stringify_as_array",
    "stringify_as_set",
    "stringify_as_map",
]


class TypedJSON[T]:
    """
    Serializes and deserializes instances of a root type, or containers thereof,
    to/from JSON text.
    """

    __root_type: type[T]
    __settings: JsonSettings
    __registry: MetadataRegistry

    def __init__(
        self,
        root_type: type[T],
        /,
        settings: JsonSettings | None = None,
        *,
        registry: MetadataRegistry = REGISTRY,
    ):
        """
        :param root_type: Root class, or element class for the container methods
        :param settings: Settings to configure conversion behavior
        :param registry: Registry of class metadata
        :raises UnregisteredRootTypeError: If the root type is neither a scalar type \
        nor an explicitly registered class
        """
        if not is_scalar_type(root_type) and not registry.is_registered(root_type):
            raise UnregisteredRootTypeError(
                f"Root type {getattr(root_type, '__name__', root_type)} must be "
                "registered with @json_object"
            )

        self.__root_type = root_type
        self.__settings = DEFAULT_SETTINGS.merge(settings)
        self.__registry = registry

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.__root_type.__name__})"

    @property
    def root_type(self) -> type[T]:
        return self.__root_type

    @property
    def settings(self) -> JsonSettings:
        return self.__settings

    def parse(self, text: str | bytes, /) -> T | None:
        """
        Convert JSON text to an instance of the root type.

        :raises Exception: If raised by the error handler
        """
        return self.__parse(text, as_tag(self.__root_type))

    def parse_as_array(self, text: str | bytes, /, dimensions: int = 1) -> list[Any]:
        """
        Convert JSON text to a list of the root type, nested `dimensions` levels.
        """
        result = self.__parse(
            text, ArrayTag(as_tag(self.__root_type), dimensions), expect_array=True
        )
        return result if result is not None else []

    def parse_as_set(self, text: str | bytes, /) -> set[T]:
        """
        Convert JSON text (an array) to a set of the root type.
        """
        result = self.__parse(
            text, SetTag(as_tag(self.__root_type)), expect_array=True
        )
        return result if result is not None else set()

    def parse_as_map[K](self, text: str | bytes, key_type: type[K], /) -> dict[K, T]:
        """
        Convert JSON text (an array of pairs) to a dict with values of the root type.
        """
        result = self.__parse(
            text,
            MapTag(as_tag(key_type), as_tag(self.__root_type)),
            expect_array=True,
        )
        return result if result is not None else {}

    def stringify(self, obj: T, /) -> str:
        """
        Convert an instance of the root type to JSON text.

        :raises Exception: If raised by the error handler
        """
        return self.__stringify(obj, as_tag(self.__root_type))

    def stringify_as_array(self, obj: Sequence[Any], /, dimensions: int = 1) -> str:
        """
        Convert a list of the root type, nested `dimensions` levels, to JSON text.
        """
        return self.__stringify(obj, ArrayTag(as_tag(self.__root_type), dimensions))

    def stringify_as_set(self, obj: AbstractSet[T], /) -> str:
        """
        Convert a set of the root type to JSON text.
        """
        return self.__stringify(obj, SetTag(as_tag(self.__root_type)))

    def stringify_as_map[K](self, obj: Mapping[K, T], key_type: type[K], /) -> str:
        """
        Convert a dict with values of the root type to JSON text.
        """
        return self.__stringify(
            obj, MapTag(as_tag(key_type), as_tag(self.__root_type))
        )

    def __parse(self, text: str | bytes, tag: TypeTag, *, expect_array: bool = False):
        try:
            obj = json.loads(text)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            self.__report(MalformedJsonError(f"Invalid JSON: {e}", obj=text))
            return None

        if expect_array and not isinstance(obj, list):
            self.__report(
                TypeShapeMismatchError(
                    f"Expected JSON text to define an array for {tag!r}, got "
                    f"{type(obj).__name__}",
                    obj=obj,
                )
            )
            return None

        # fresh known-types table per call
        known_types = collect_known_types(tag, self.__settings, self.__registry)
        return deserialize_value(
            obj,
            tag,
            known_types=known_types,
            settings=self.__settings,
            registry=self.__registry,
        )

    def __stringify(self, obj: Any, tag: TypeTag) -> str:
        serialized_obj: JsonValueType = serialize_value(
            obj, tag, settings=self.__settings, registry=self.__registry
        )

        # values returned by the replacer are only checked when encoding
        try:
            return dumps(serialized_obj, self.__settings)
        except (TypeError, ValueError) as e:
            self.__report(
                TypeShapeMismatchError(f"Not encodable as JSON: {e}", obj=obj)
            )
            return ""

    def __report(self, error: JsonConversionError):
        """
        Report an error found outside of the conversion itself.
        """
        self.__settings.resolved_error_handler(error)
        if self.__settings.strict:
            raise ConversionErrors([error])


def dumps(obj: JsonValueType, settings: JsonSettings) -> str:
    """
    Encode plain value as JSON text per the formatting settings, after passing it
    through the replacer if any.
    """
    if settings.replacer is not None:
        obj = replace_values(obj, settings.replacer)

    sort_keys = bool(settings.sort_keys)
    if settings.indent is None:
        return json.dumps(
            obj, separators=(",", ":"), sort_keys=sort_keys, allow_nan=False
        )
    return json.dumps(obj, indent=settings.indent, sort_keys=sort_keys, allow_nan=False)


def replace_values(obj: Any, replacer: ReplacerType, key: str = "") -> Any:
    """
    Apply replacer to the value and then recursively to the items of the value it
    returned. Array items are keyed by their index as string.
    """
    obj = replacer(key, obj)
    if isinstance(obj, dict):
        return {k: replace_values(v, replacer, k) for k, v in obj.items()}
    if isinstance(obj, list):
        return [replace_values(v, replacer, str(i)) for i, v in enumerate(obj)]
    return obj


def parse[T](
    text: str | bytes, root_type: type[T], /, settings: JsonSettings | None = None
) -> T | None:
    return TypedJSON(root_type, settings).parse(text)


def parse_as_array[T](
    text: str | bytes,
    element_type: type[T],
    /,
    settings: JsonSettings | None = None,
    *,
    dimensions: int = 1,
) -> list[Any]:
    return TypedJSON(element_type, settings).parse_as_array(text, dimensions)


def parse_as_set[T](
    text: str | bytes, element_type: type[T], /, settings: JsonSettings | None = None
) -> set[T]:
    return TypedJSON(element_type, settings).parse_as_set(text)


def parse_as_map[K, V](
    text: str | bytes,
    key_type: type[K],
    value_type: type[V],
    /,
    settings: JsonSettings | None = None,
) -> dict[K, V]:
    return TypedJSON(value_type, settings).parse_as_map(text, key_type)


def stringify[T](
    obj: T, root_type: type[T], /, settings: JsonSettings | None = None
) -> str:
    return TypedJSON(root_type, settings).stringify(obj)


def stringify_as_array[T](
    obj: Sequence[Any],
    element_type: type[T],
    /,
    settings: JsonSettings | None = None,
    *,
    dimensions: int = 1,
) -> str:
    return TypedJSON(element_type, settings).stringify_as_array(obj, dimensions)


def stringify_as_set[T](
    obj: AbstractSet[T], element_type: type[T], /, settings: JsonSettings | None = None
) -> str:
    return TypedJSON(element_type, settings).stringify_as_set(obj)


def stringify_as_map[K, V](
    obj: Mapping[K, V],
    key_type: type[K],
    value_type: type[V],
    /,
    settings: JsonSettings | None = None,
) -> str:
    return TypedJSON(value_type, settings).stringify_as_map(obj, key_type)
