"""
Deserialization capability: plain JSON-compatible values to typed values.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from .converting._types import ERROR_SENTINEL, ErrorSentinel
from .converting.engine import BaseConversionEngine
from .converting.frame import ConversionFrame
from .converting.scalars import BaseScalarConverter
from .exceptions import MissingRequiredMemberError, TypeShapeMismatchError
from .metadata import REGISTRY, MetadataRegistry
from .resolution import KnownTypesType, build_known_types
from .serializing import check_root
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
    "DeserializationEngine",
    "deserialize_value",
    "deserialize_array",
    "deserialize_set",
    "deserialize_map",
    "collect_known_types",
]


class DeserializationEngine(BaseConversionEngine):
    """
    Orchestrates deserialization process.

    Not exposed to user.
    """

    def _process_scalar(
        self,
        obj: Any,
        converter: type[BaseScalarConverter],
        frame: ConversionFrame,
    ) -> Any:
        assert isinstance(frame.tag, ScalarTag)
        return converter.deserialize(obj, frame.tag.type_)

    def _process_object(self, obj: Any, frame: ConversionFrame) -> Any:
        assert isinstance(frame.tag, ObjectTag)
        expected_type = frame.tag.type_

        if not isinstance(obj, Mapping):
            raise TypeShapeMismatchError(
                f"Expected object for {expected_type.__name__}, got "
                f"{type(obj).__name__}: {obj!r}",
                obj=obj,
            )

        # select subtype from type hint, if any
        resolved_type = (
            self.settings.resolved_type_resolver(obj, frame.known_types)
            or expected_type
        )

        if not isinstance(resolved_type, type) or not issubclass(
            resolved_type, expected_type
        ):
            raise TypeShapeMismatchError(
                f"Resolved type {resolved_type!r} is not a subclass of "
                f"{expected_type.__name__}",
                obj=obj,
            )

        if not self.registry.is_registered(resolved_type):
            raise TypeShapeMismatchError(
                f"Class {resolved_type.__name__} is not registered", obj=obj
            )

        metadata = self.registry.lookup(resolved_type)
        assert metadata

        # bare instance: members not present are left unset
        instance = resolved_type.__new__(resolved_type)

        for member in metadata.members.values():
            name = member.serialized_name
            member_obj = obj.get(name)

            if member_obj is None:
                if member.required:
                    frame.report(
                        obj,
                        MissingRequiredMemberError(
                            f"Missing required member '{name}' of "
                            f"{resolved_type.__name__}",
                            member=member.key,
                        ),
                        name,
                    )
                elif name in obj:
                    # explicit null
                    setattr(instance, member.key, None)
                continue

            deserialized_member = frame.recurse(member_obj, name, tag=member.tag)
            if deserialized_member is not ERROR_SENTINEL:
                setattr(instance, member.key, deserialized_member)

        return instance

    def _process_array(
        self, obj: Any, frame: ConversionFrame
    ) -> list[Any | ErrorSentinel]:
        assert isinstance(frame.tag, ArrayTag)
        self.__check_array(obj, frame)

        # failed elements are kept as ERROR_SENTINEL placeholders
        item_tag = frame.tag.item_tag
        return [frame.recurse(o, i, tag=item_tag) for i, o in enumerate(obj)]

    def _process_set(self, obj: Any, frame: ConversionFrame) -> set[Any]:
        assert isinstance(frame.tag, SetTag)
        self.__check_array(obj, frame)

        deserialized_set: set[Any] = set()
        for i, o in enumerate(obj):
            deserialized_obj = frame.recurse(o, i, tag=frame.tag.element)
            if deserialized_obj is ERROR_SENTINEL:
                continue

            try:
                deserialized_set.add(deserialized_obj)
            except TypeError as e:
                frame.report(
                    o, TypeShapeMismatchError(f"Set element is unhashable: {e}"), i
                )

        return deserialized_set

    def _process_map(self, obj: Any, frame: ConversionFrame) -> dict[Any, Any]:
        assert isinstance(frame.tag, MapTag)
        self.__check_array(obj, frame)

        deserialized_map: dict[Any, Any] = {}
        for i, pair in enumerate(obj):
            if not isinstance(pair, (list, tuple)) or len(pair) != 2:
                frame.report(
                    pair,
                    TypeShapeMismatchError(
                        f"Expected [key, value] pair, got {pair!r}", obj=pair
                    ),
                    i,
                )
                continue

            k, v = pair
            deserialized_key = frame.recurse(k, i, 0, tag=frame.tag.key)
            deserialized_value = frame.recurse(v, i, 1, tag=frame.tag.value)

            if deserialized_key is ERROR_SENTINEL or deserialized_value is ERROR_SENTINEL:
                continue

            try:
                deserialized_map[deserialized_key] = deserialized_value
            except TypeError as e:
                frame.report(
                    k, TypeShapeMismatchError(f"Map key is unhashable: {e}"), i, 0
                )

        return deserialized_map

    def __check_array(self, obj: Any, frame: ConversionFrame):
        if not isinstance(obj, (list, tuple)):
            raise TypeShapeMismatchError(
                f"Expected array for {frame.tag!r}, got {type(obj).__name__}: {obj!r}",
                obj=obj,
            )


def collect_known_types(
    tag: TypeTag,
    settings: JsonSettings,
    registry: MetadataRegistry,
) -> KnownTypesType:
    """
    Build the known-types table for a conversion: configured known types followed by
    the known subtypes of the root classes.
    """
    root_subtypes = {
        t for root in iter_object_types(tag) for t in registry.known_subtypes(root)
    }
    return build_known_types(
        (
            *(settings.known_types or ()),
            *sorted(root_subtypes, key=lambda t: (t.__module__, t.__qualname__)),
        ),
        settings.resolved_name_resolver,
        settings.resolved_error_handler,
    )


def deserialize_value(
    obj: JsonValueType,
    type_or_tag: type | TypeTag,
    /,
    *,
    known_types: KnownTypesType | None = None,
    settings: JsonSettings | None = None,
    registry: MetadataRegistry = REGISTRY,
) -> Any:
    """
    Recursively deserialize plain JSON-compatible value to typed value as described by
    the type tag. Errors are passed to the configured error handler; if it doesn't
    raise, a best-effort result is returned with failed members left unset.

    :param obj: Plain object to deserialize
    :param type_or_tag: Expected type, as class or type tag
    :param known_types: Known-types table; built from settings and the root \
    classes' known subtypes if `None`
    :param settings: Settings to configure deserialization behavior
    :param registry: Registry of class metadata
    :raises UnregisteredRootTypeError: If the root class is not registered
    """
    tag = as_tag(type_or_tag)
    check_root(tag, registry)

    settings_ = settings or DEFAULT_SETTINGS
    known_types_ = (
        known_types
        if known_types is not None
        else collect_known_types(tag, settings_, registry)
    )

    engine = DeserializationEngine(settings=settings_, registry=registry)
    frame = engine.create_frame(tag, known_types_)
    return engine.invoke_process(obj, frame)


def deserialize_array(
    obj: JsonValueType,
    element_type: type | TypeTag,
    /,
    *,
    dimensions: int = 1,
    known_types: KnownTypesType | None = None,
    settings: JsonSettings | None = None,
    registry: MetadataRegistry = REGISTRY,
) -> list[Any] | None:
    """
    Deserialize array of the given element type and number of dimensions.
    """
    tag = ArrayTag(as_tag(element_type), dimensions)
    return deserialize_value(
        obj, tag, known_types=known_types, settings=settings, registry=registry
    )


def deserialize_set(
    obj: JsonValueType,
    element_type: type | TypeTag,
    /,
    *,
    known_types: KnownTypesType | None = None,
    settings: JsonSettings | None = None,
    registry: MetadataRegistry = REGISTRY,
) -> set[Any] | None:
    """
    Deserialize array to set of the given element type.
    """
    tag = SetTag(as_tag(element_type))
    return deserialize_value(
        obj, tag, known_types=known_types, settings=settings, registry=registry
    )


def deserialize_map(
    obj: JsonValueType,
    key_type: type | TypeTag,
    value_type: type | TypeTag,
    /,
    *,
    known_types: KnownTypesType | None = None,
    settings: JsonSettings | None = None,
    registry: MetadataRegistry = REGISTRY,
) -> dict[Any, Any] | None:
    """
    Deserialize array of pairs to mapping of the given key and value types.
    """
    tag = MapTag(as_tag(key_type), as_tag(value_type))
    return deserialize_value(
        obj, tag, known_types=known_types, settings=settings, registry=registry
    )
