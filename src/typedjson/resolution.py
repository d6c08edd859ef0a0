"""
Type resolution protocol: selecting subtypes during deserialization and emitting type
hints during serialization.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from types import MappingProxyType
from typing import Any

from .converting.scalars import is_scalar_type
from .exceptions import AmbiguousTypeNameError, UnresolvableConstructorError

__all__ = [
    "TYPE_HINT_KEY",
    "NameResolverType",
    "TypeResolverType",
    "TypeHintEmitterType",
    "KnownTypesType",
    "nameof",
    "resolve_type",
    "emit_type_hint",
    "build_known_types",
]

logger = logging.getLogger(__name__)

TYPE_HINT_KEY = "__type"
"""
Reserved key holding the name of the runtime type in serialized objects.
"""

type KnownTypesType = Mapping[str, type]
"""
Mapping of resolved type names to classes, built per conversion.
"""

type NameResolverType = Callable[[type], str]
"""
Function which gets the name of a class as written in type hints.
"""

type TypeResolverType = Callable[[Mapping[str, Any], KnownTypesType], type | None]
"""
Function which selects the class to instantiate for a plain object, or returns
`None` to use the expected class.
"""

type TypeHintEmitterType = Callable[
    [dict[str, Any], Any, type, NameResolverType], None
]
"""
Function which writes type information about the source object into the plain
object it was serialized to.
"""


def nameof(type_: type, /) -> str:
    """
    Default name resolver: the class's name.
    """
    return type_.__name__


def resolve_type(
    source_object: Mapping[str, Any], known_types: KnownTypesType, /
) -> type | None:
    """
    Default type resolver: read the type name from the reserved key and look it up in
    the known types.

    :param source_object: Plain object to be deserialized
    :param known_types: Mapping of names to classes for this conversion
    :raises UnresolvableConstructorError: If the type name is not known
    :return: Class named by the type hint, or `None` if there is no type hint
    """
    if (type_name := source_object.get(TYPE_HINT_KEY)) is None:
        return None

    if not isinstance(type_name, str) or type_name not in known_types:
        raise UnresolvableConstructorError(
            f"Type hint '{type_name}' does not name a known type, known types: "
            f"{sorted(known_types)}",
            obj=source_object,
        )

    return known_types[type_name]


def emit_type_hint(
    target_object: dict[str, Any],
    source_object: Any,
    expected_type: type,
    name_resolver: NameResolverType,
    /,
):
    """
    Default type hint emitter: write the runtime type's name to the reserved key only
    when it differs from the expected type.
    """
    if type(source_object) is not expected_type:
        target_object[TYPE_HINT_KEY] = name_resolver(type(source_object))


def build_known_types(
    types: Iterable[type | None],
    name_resolver: NameResolverType,
    on_error: Callable[[AmbiguousTypeNameError], None],
) -> KnownTypesType:
    """
    Build the known-types table for one conversion.

    Scalar types are skipped as they never carry type hints. If distinct classes
    resolve to the same name, an error is passed to `on_error` and the first class
    is kept.
    """
    known_types: dict[str, type] = {}

    for i, type_ in enumerate(types):
        if type_ is None:
            logger.warning("Known types contain None (element %d), skipping", i)
            continue
        if is_scalar_type(type_):
            continue

        name = name_resolver(type_)
        existing = known_types.setdefault(name, type_)

        if existing is not type_:
            on_error(
                AmbiguousTypeNameError(
                    f"Type name '{name}' resolves to both {existing} and {type_}",
                    obj=type_,
                )
            )

    logger.debug("Known types: %s", known_types)
    return MappingProxyType(known_types)
