"""
Serialization capability: typed values to plain JSON-compatible values.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from collections.abc import Set as AbstractSet
from types import MappingProxyType
from typing import Any

from .converting._types import ERROR_SENTINEL
from .converting.engine import BaseConversionEngine
from .converting.frame import ConversionFrame
from .converting.scalars import BaseScalarConverter, find_scalar_converter
from .exceptions import TypeShapeMismatchError, UnregisteredRootTypeError
from .metadata import REGISTRY, ClassMetadata, MetadataRegistry
from .settings import DEFAULT_SETTINGS, JsonSettings
from .typedefs import (
    ArrayTag,
    JsonValueType,
    MapTag,
    ObjectTag,
    ScalarTag,
    SetTag,
    TypeTag,
    as_tag,
    iter_object_types,
)

__all__ = [
    "SerializationEngine",
    "serialize_value",
    "serialize_array",
    "serialize_set",
    "serialize_map",
    "default_value",
    "check_root",
]


class SerializationEngine(BaseConversionEngine):
    """
    Orchestrates serialization process.

    Not exposed to user.
    """

    def _process_scalar(
        self,
        obj: Any,
        converter: type[BaseScalarConverter],
        frame: ConversionFrame,
    ) -> Any:
        assert isinstance(frame.tag, ScalarTag)
        return converter.serialize(obj, frame.tag.type_)

    def _process_object(self, obj: Any, frame: ConversionFrame) -> dict[str, Any]:
        assert isinstance(frame.tag, ObjectTag)
        expected_type = frame.tag.type_

        if not isinstance(obj, expected_type):
            raise TypeShapeMismatchError(
                f"Expected instance of {expected_type.__name__}, got "
                f"{type(obj).__name__}: {obj!r}",
                obj=obj,
            )

        metadata = self.__get_metadata(type(obj), expected_type)

        # serialize each member in declared order
        serialized_obj: dict[str, Any] = {}
        for member in metadata.members.values():
            member_obj = getattr(obj, member.key, None)

            if member_obj is None:
                # absent: omitted unless a default is requested
                if member.emit_default:
                    serialized_obj[member.serialized_name] = default_value(member.tag)
                continue

            serialized_member = frame.recurse(member_obj, member.key, tag=member.tag)
            if serialized_member is not ERROR_SENTINEL:
                serialized_obj[member.serialized_name] = serialized_member

        self.settings.resolved_type_hint_emitter(
            serialized_obj,
            obj,
            expected_type,
            self.settings.resolved_name_resolver,
        )
        return serialized_obj

    def _process_array(self, obj: Any, frame: ConversionFrame) -> list[Any]:
        assert isinstance(frame.tag, ArrayTag)
        if not isinstance(obj, (list, tuple)):
            raise TypeShapeMismatchError(
                f"Expected array for {frame.tag!r}, got {type(obj).__name__}: {obj!r}",
                obj=obj,
            )

        item_tag = frame.tag.item_tag
        serialized_objs = [frame.recurse(o, i, tag=item_tag) for i, o in enumerate(obj)]

        # keep positions of failed elements
        return [None if o is ERROR_SENTINEL else o for o in serialized_objs]

    def _process_set(self, obj: Any, frame: ConversionFrame) -> list[Any]:
        assert isinstance(frame.tag, SetTag)
        if not isinstance(obj, AbstractSet):
            raise TypeShapeMismatchError(
                f"Expected set for {frame.tag!r}, got {type(obj).__name__}: {obj!r}",
                obj=obj,
            )

        # iteration order, for deterministic output given the same set
        serialized_objs = (
            frame.recurse(o, i, tag=frame.tag.element) for i, o in enumerate(obj)
        )
        return [o for o in serialized_objs if o is not ERROR_SENTINEL]

    def _process_map(self, obj: Any, frame: ConversionFrame) -> list[list[Any]]:
        assert isinstance(frame.tag, MapTag)
        if not isinstance(obj, Mapping):
            raise TypeShapeMismatchError(
                f"Expected mapping for {frame.tag!r}, got {type(obj).__name__}: "
                f"{obj!r}",
                obj=obj,
            )

        pairs: list[list[Any]] = []
        for i, (k, v) in enumerate(obj.items()):
            serialized_key = frame.recurse(k, i, 0, tag=frame.tag.key)
            serialized_value = frame.recurse(v, i, 1, tag=frame.tag.value)

            # skip pairs which failed to convert
            if ERROR_SENTINEL not in (serialized_key, serialized_value):
                pairs.append([serialized_key, serialized_value])

        return pairs

    def __get_metadata(self, runtime_type: type, expected_type: type) -> ClassMetadata:
        """
        Get metadata describing the layout of the object: its own class if registered,
        otherwise the expected class.
        """
        for type_ in (runtime_type, expected_type):
            if self.registry.is_registered(type_):
                metadata = self.registry.lookup(type_)
                assert metadata
                return metadata

        raise TypeShapeMismatchError(
            f"Class {expected_type.__name__} is not registered"
        )


def default_value(tag: TypeTag) -> JsonValueType:
    """
    Get the value emitted for an unset member declared with `emit_default`.
    """
    match tag:
        case ScalarTag(type_=type_):
            converter = find_scalar_converter(type_)
            assert converter
            return converter.default
        case ArrayTag() | SetTag() | MapTag():
            return []
        case _:
            return None


def check_root(tag: TypeTag, registry: MetadataRegistry):
    """
    Ensure classes at the root of a conversion are explicitly registered.

    :raises UnregisteredRootTypeError: If a class is not explicitly registered
    """
    for type_ in iter_object_types(tag):
        if not registry.is_registered(type_):
            raise UnregisteredRootTypeError(
                f"Root type {type_.__name__} must be registered with @json_object"
            )


def serialize_value(
    obj: Any,
    type_or_tag: type | TypeTag,
    /,
    *,
    settings: JsonSettings | None = None,
    registry: MetadataRegistry = REGISTRY,
) -> JsonValueType:
    """
    Recursively serialize object to JSON-compatible values as described by the type
    tag. Errors are passed to the configured error handler; if it doesn't raise, a
    best-effort result is returned with failed values omitted.

    :param obj: Object to serialize
    :param type_or_tag: Expected type of object, as class or type tag
    :param settings: Settings to configure serialization behavior
    :param registry: Registry of class metadata
    :raises UnregisteredRootTypeError: If the root class is not registered
    """
    tag = as_tag(type_or_tag)
    check_root(tag, registry)

    engine = SerializationEngine(settings=settings or DEFAULT_SETTINGS, registry=registry)
    frame = engine.create_frame(tag, MappingProxyType({}))
    return engine.invoke_process(obj, frame)


def serialize_array(
    obj: Sequence[Any],
    element_type: type | TypeTag,
    /,
    *,
    dimensions: int = 1,
    settings: JsonSettings | None = None,
    registry: MetadataRegistry = REGISTRY,
) -> list[Any] | None:
    """
    Serialize array of the given element type and number of dimensions.
    """
    tag = ArrayTag(as_tag(element_type), dimensions)
    return serialize_value(obj, tag, settings=settings, registry=registry)


def serialize_set(
    obj: AbstractSet[Any],
    element_type: type | TypeTag,
    /,
    *,
    settings: JsonSettings | None = None,
    registry: MetadataRegistry = REGISTRY,
) -> list[Any] | None:
    """
    Serialize set of the given element type to an array.
    """
    tag = SetTag(as_tag(element_type))
    return serialize_value(obj, tag, settings=settings, registry=registry)


def serialize_map(
    obj: Mapping[Any, Any],
    key_type: type | TypeTag,
    value_type: type | TypeTag,
    /,
    *,
    settings: JsonSettings | None = None,
    registry: MetadataRegistry = REGISTRY,
) -> list[list[Any]] | None:
    """
    Serialize mapping of the given key and value types to an array of pairs.
    """
    tag = MapTag(as_tag(key_type), as_tag(value_type))
    return serialize_value(obj, tag, settings=settings, registry=registry)
