"""
Type-directed conversion of object graphs to/from JSON, preserving subtypes, set/map
containers and element types.
"""

from .converting._types import ERROR_SENTINEL
from .deserializing import (
    deserialize_array,
    deserialize_map,
    deserialize_set,
    deserialize_value,
)
from .exceptions import (
    AmbiguousTypeNameError,
    CircularReferenceError,
    ConversionErrors,
    JsonConversionError,
    MalformedJsonError,
    MissingRequiredMemberError,
    TypeShapeMismatchError,
    UnregisteredRootTypeError,
    UnresolvableConstructorError,
)
from .handlers import ErrorCollector, log_error, raise_error
from .metadata import REGISTRY, ClassMetadata, MemberMetadata, MetadataRegistry
from .resolution import TYPE_HINT_KEY, emit_type_hint, nameof, resolve_type
from .schema import (
    json_array_member,
    json_map_member,
    json_member,
    json_object,
    json_set_member,
)
from .serializing import (
    serialize_array,
    serialize_map,
    serialize_set,
    serialize_value,
)
from .settings import JsonSettings
from .typed_json import (
    TypedJSON,
    parse,
    parse_as_array,
    parse_as_map,
    parse_as_set,
    stringify,
    stringify_as_array,
    stringify_as_map,
    stringify_as_set,
)
from .typedefs import ArrayTag, MapTag, ObjectTag, ScalarTag, SetTag, TypeTag

__all__ = [
    "ERROR_SENTINEL",
    "TYPE_HINT_KEY",
    "REGISTRY",
    "TypedJSON",
    "JsonSettings",
    "parse",
    "parse_as_array",
    "parse_as_set",
    "parse_as_map",
    "stringify",
    "stringify_as_array",
    "stringify_as_set",
    "stringify_as_map",
    "serialize_value",
    "serialize_array",
    "serialize_set",
    "serialize_map",
    "deserialize_value",
    "deserialize_array",
    "deserialize_set",
    "deserialize_map",
    "json_object",
    "json_member",
    "json_array_member",
    "json_set_member",
    "json_map_member",
    "MetadataRegistry",
    "ClassMetadata",
    "MemberMetadata",
    "TypeTag",
    "ScalarTag",
    "ObjectTag",
    "ArrayTag",
    "SetTag",
    "MapTag",
    "nameof",
    "resolve_type",
    "emit_type_hint",
    "log_error",
    "raise_error",
    "ErrorCollector",
    "JsonConversionError",
    "UnresolvableConstructorError",
    "TypeShapeMismatchError",
    "MissingRequiredMemberError",
    "AmbiguousTypeNameError",
    "CircularReferenceError",
    "MalformedJsonError",
    "UnregisteredRootTypeError",
    "ConversionErrors",
]
