"""
Registry of per-class member metadata.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType

from .typedefs import (
    ArrayTag,
    MapTag,
    ObjectTag,
    ScalarTag,
    SetTag,
    TypeTag,
    iter_object_types,
)

__all__ = [
    "MemberMetadata",
    "ClassMetadata",
    "MetadataRegistry",
    "REGISTRY",
]

logger = logging.getLogger(__name__)

CONTAINER_DECLARATIONS: dict[type, str] = {
    list: "json_array_member",
    tuple: "json_array_member",
    set: "json_set_member",
    frozenset: "json_set_member",
    dict: "json_map_member",
}
"""
Declaration to suggest when a container class is declared as a plain member.
"""


@dataclass(frozen=True, kw_only=True)
class MemberMetadata:
    """
    Metadata for one declared member of a registered class.
    """

    key: str
    """
    Attribute name on the typed instance.
    """

    tag: TypeTag
    """
    Expected shape of the member's value.
    """

    name: str | None = None
    """
    Key used in the plain JSON object, defaulting to `key`.
    """

    required: bool = False
    """
    Whether deserialization reports an error if the member is absent.
    """

    emit_default: bool = False
    """
    Whether serialization emits a default value if the member is unset.
    """

    @property
    def serialized_name(self) -> str:
        return self.name or self.key

    @property
    def is_container(self) -> bool:
        return isinstance(self.tag, (ArrayTag, SetTag, MapTag))


@dataclass
class ClassMetadata:
    """
    Metadata for one class: its members and the subtypes it may be substituted by.
    """

    type_: type
    """
    Class described.
    """

    explicitly_registered: bool = False
    """
    Whether the class was explicitly registered, as opposed to having metadata
    created implicitly by member registration.
    """

    members: dict[str, MemberMetadata] = field(default_factory=dict)
    """
    Mapping of member keys to metadata, in declaration order.
    """

    known_subtypes: set[type] = field(default_factory=set)
    """
    Classes declared as substitutable for this class or any of its members.
    """

    def __repr__(self) -> str:
        return f"ClassMetadata({self.type_.__name__}, members={list(self.members)})"


class MetadataRegistry:
    """
    Registry of class metadata looked up by class identity.

    Populated at class definition time and treated as read-only afterwards, so it may
    be shared by any number of conversions.
    """

    __metadata: dict[type, ClassMetadata]
    """
    Mapping of classes to their metadata.
    """

    __closure_cache: dict[type, frozenset[type]]
    """
    Reflexive-transitive closure of known subtypes per class, cleared upon any
    registration.
    """

    def __init__(self):
        self.__metadata = {}
        self.__closure_cache = {}

    def __repr__(self) -> str:
        return f"MetadataRegistry(classes={[t.__name__ for t in self.__metadata]})"

    def lookup(self, type_: type, /) -> ClassMetadata | None:
        """
        Get metadata for the class if it has any.
        """
        return self.__metadata.get(type_)

    def is_registered(self, type_: type, /) -> bool:
        """
        Check whether the class was explicitly registered.
        """
        metadata = self.__metadata.get(type_)
        return metadata is not None and metadata.explicitly_registered

    def ensure(self, type_: type, /) -> ClassMetadata:
        """
        Get metadata for the class, creating it if needed. New metadata inherits
        members and known subtypes of ancestors which have metadata.
        """
        if metadata := self.__metadata.get(type_):
            return metadata

        metadata = ClassMetadata(type_)

        # nearest ancestor last so its members take precedence
        for base in reversed(type_.__mro__[1:]):
            if base_metadata := self.__metadata.get(base):
                metadata.members.update(base_metadata.members)
                metadata.known_subtypes |= base_metadata.known_subtypes

        self.__metadata[type_] = metadata
        self.__closure_cache.clear()
        return metadata

    def register_member(self, class_metadata: ClassMetadata, member: MemberMetadata):
        """
        Add or overwrite a member by key.

        :raises TypeError: If the member declares a builtin container as a scalar or \
        object type
        """
        if isinstance(member.tag, (ScalarTag, ObjectTag)):
            if declaration := _container_declaration(member.tag.type_):
                raise TypeError(
                    f"{class_metadata.type_.__name__}.{member.key}: member is a "
                    f"{member.tag.type_.__name__}, use {declaration}() to declare it"
                )

        existing = class_metadata.members.get(member.key)
        if existing and existing.is_container != member.is_container:
            logger.warning(
                "%s.%s: conflicting declarations, %r replaced by %r",
                class_metadata.type_.__name__,
                member.key,
                existing.tag,
                member.tag,
            )

        class_metadata.members[member.key] = member

        # member classes are candidates for polymorphic deserialization
        class_metadata.known_subtypes.update(iter_object_types(member.tag))
        self.__closure_cache.clear()

    def mark_registered(self, type_: type, /) -> ClassMetadata:
        """
        Mark the class as explicitly registered, adding it to the known subtypes of
        its registered ancestors.
        """
        metadata = self.ensure(type_)
        metadata.explicitly_registered = True

        for base in type_.__mro__[1:]:
            base_metadata = self.__metadata.get(base)
            if base_metadata and base_metadata.explicitly_registered:
                base_metadata.known_subtypes.add(type_)

        self.__closure_cache.clear()
        return metadata

    def add_known_subtypes(self, type_: type, /, *subtypes: type):
        """
        Declare classes which may be substituted for the class or its members.
        """
        metadata = self.ensure(type_)
        metadata.known_subtypes.update(subtypes)
        self.__closure_cache.clear()

    def known_subtypes(self, type_: type, /) -> frozenset[type]:
        """
        Get the reflexive-transitive closure of the class's known subtypes.
        """
        if (closure := self.__closure_cache.get(type_)) is not None:
            return closure

        seen: set[type] = set()
        pending = [type_]
        while pending:
            current = pending.pop()
            if current in seen:
                continue
            seen.add(current)
            if metadata := self.__metadata.get(current):
                pending.extend(metadata.known_subtypes - seen)

        closure = frozenset(seen)
        self.__closure_cache[type_] = closure
        return closure

    def members(self, type_: type, /) -> MappingProxyType[str, MemberMetadata]:
        """
        Get read-only view of members declared for the class.
        """
        metadata = self.__metadata.get(type_)
        return MappingProxyType(metadata.members if metadata else {})


def _container_declaration(type_: type) -> str | None:
    return next(
        (d for t, d in CONTAINER_DECLARATIONS.items() if issubclass(type_, t)), None
    )


REGISTRY = MetadataRegistry()
"""
Default process-wide registry.
"""
