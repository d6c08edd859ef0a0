"""
Declaration of serializable classes and their members.

Members are declared explicitly with their types; nothing is inferred from
annotations:

```python
@json_object(
    members=(
        json_member("name", str, required=True),
        json_array_member("scores", int, dimensions=2),
        json_set_member("tags", str),
        json_map_member("ratings", str, float),
    ),
)
class Player:
    ...
```
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import overload

from .metadata import REGISTRY, MemberMetadata, MetadataRegistry
from .typedefs import ArrayTag, MapTag, SetTag, TypeTag, as_tag

__all__ = [
    "json_object",
    "json_member",
    "json_array_member",
    "json_set_member",
    "json_map_member",
]


@overload
def json_object[T: type](cls: T, /) -> T: ...


@overload
def json_object[T: type](
    *,
    members: Iterable[MemberMetadata] = (),
    known_types: Iterable[type] = (),
    registry: MetadataRegistry = REGISTRY,
) -> Callable[[T], T]: ...


def json_object[T: type](
    cls: T | None = None,
    /,
    *,
    members: Iterable[MemberMetadata] = (),
    known_types: Iterable[type] = (),
    registry: MetadataRegistry = REGISTRY,
) -> T | Callable[[T], T]:
    """
    Register a class for serialization, usable with or without arguments.

    Members of registered ancestors are inherited; members passed here are added
    after them or replace them by key. The class is added to the known subtypes of
    its registered ancestors so it can be deserialized in their place.

    :param members: Member declarations, in serialization order
    :param known_types: Classes which may be substituted for this class or its \
    members, in addition to those discovered automatically
    :param registry: Registry to register with
    """

    def decorate(cls_: T) -> T:
        metadata = registry.ensure(cls_)
        for member in members:
            registry.register_member(metadata, member)
        registry.add_known_subtypes(cls_, *known_types)
        registry.mark_registered(cls_)
        return cls_

    if cls is not None:
        return decorate(cls)
    return decorate


def json_member(
    key: str,
    type_: type | TypeTag,
    /,
    *,
    name: str | None = None,
    required: bool = False,
    emit_default: bool = False,
) -> MemberMetadata:
    """
    Declare a member holding a scalar value or an instance of a registered class.
    Containers must be declared with their specific declarations.

    :param key: Attribute name on instances
    :param type_: Class of the member's value, or a type tag
    :param name: Key in JSON objects, if different from `key`
    :param required: Whether the member must be present when deserializing
    :param emit_default: Whether to emit a default value when serializing an unset \
    member
    """
    return MemberMetadata(
        key=key,
        tag=as_tag(type_),
        name=name,
        required=required,
        emit_default=emit_default,
    )


def json_array_member(
    key: str,
    element_type: type | TypeTag,
    /,
    *,
    dimensions: int = 1,
    name: str | None = None,
    required: bool = False,
    emit_default: bool = False,
) -> MemberMetadata:
    """
    Declare a member holding a (possibly multi-dimensional) list.

    :param element_type: Class of the innermost elements, or a type tag
    :param dimensions: Number of nested list levels
    """
    return MemberMetadata(
        key=key,
        tag=ArrayTag(as_tag(element_type), dimensions),
        name=name,
        required=required,
        emit_default=emit_default,
    )


def json_set_member(
    key: str,
    element_type: type | TypeTag,
    /,
    *,
    name: str | None = None,
    required: bool = False,
    emit_default: bool = False,
) -> MemberMetadata:
    """
    Declare a member holding a set.
    """
    return MemberMetadata(
        key=key,
        tag=SetTag(as_tag(element_type)),
        name=name,
        required=required,
        emit_default=emit_default,
    )


def json_map_member(
    key: str,
    key_type: type | TypeTag,
    value_type: type | TypeTag,
    /,
    *,
    name: str | None = None,
    required: bool = False,
    emit_default: bool = False,
) -> MemberMetadata:
    """
    Declare a member holding a dict, serialized as `[key, value]` pairs.
    """
    return MemberMetadata(
        key=key,
        tag=MapTag(as_tag(key_type), as_tag(value_type)),
        name=name,
        required=required,
        emit_default=emit_default,
    )
