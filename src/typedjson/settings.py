"""
Per-conversion configuration.
"""

from __future__ import annotations

import importlib
from collections.abc import Callable
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Self

import tomlkit

from .handlers import ErrorHandlerType, log_error, raise_error
from .resolution import (
    NameResolverType,
    TypeHintEmitterType,
    TypeResolverType,
    emit_type_hint,
    nameof,
    resolve_type,
)

__all__ = [
    "JsonSettings",
    "ReplacerType",
    "DEFAULT_SETTINGS",
]

type ReplacerType = Callable[[str, Any], Any]
"""
Function which replaces a key's value in the serialized tree.
"""

TOML_TABLE = "typedjson"
"""
Table holding settings in TOML documents.
"""

TOML_ERROR_HANDLERS: dict[str, ErrorHandlerType] = {
    "log": log_error,
    "raise": raise_error,
}
"""
Error handlers selectable by name from TOML.
"""

TOML_SETTINGS = {"error_handler", "known_types", "indent", "sort_keys", "strict"}
"""
Settings which can be given in TOML.
"""


@dataclass(kw_only=True, frozen=True)
class JsonSettings:
    """
    Settings passed by user. Fields left as `None` use the defaults.
    """

    error_handler: ErrorHandlerType | None = None
    """
    Callback invoked on each error during serializing and deserializing; re-raising
    halts the conversion. Defaults to logging the error.
    """

    type_resolver: TypeResolverType | None = None
    """
    Callback which selects the class of polymorphic objects while deserializing.
    Defaults to reading the type name from the `__type` key and looking it up in the
    known types.
    """

    type_hint_emitter: TypeHintEmitterType | None = None
    """
    Callback which writes type hints to serialized objects. Defaults to writing the
    type name to the `__type` key if a subtype is present in place of the expected
    type.
    """

    name_resolver: NameResolverType | None = None
    """
    Callback which gets the type name of a class. Defaults to the class's name.
    """

    known_types: tuple[type, ...] | None = None
    """
    Classes available for polymorphic deserialization in addition to the root
    class's known subtypes.
    """

    indent: int | None = None
    """
    Indentation of produced JSON text; `None` produces compact text.
    """

    sort_keys: bool | None = None
    """
    Whether to sort keys of objects in produced JSON text.
    """

    replacer: ReplacerType | None = None
    """
    Callback applied to every value of the serialized tree before encoding it as JSON
    text, given the key (member name, or array index as string; `""` for the root)
    and the value, and returning the value to encode in its place.
    """

    strict: bool | None = None
    """
    Whether to raise `ConversionErrors` after a conversion if any errors were
    reported, once the error handler has seen each of them.
    """

    def __post_init__(self):
        if self.known_types is not None and not isinstance(self.known_types, tuple):
            object.__setattr__(self, "known_types", tuple(self.known_types))

    @property
    def resolved_error_handler(self) -> ErrorHandlerType:
        return self.error_handler if self.error_handler is not None else log_error

    @property
    def resolved_type_resolver(self) -> TypeResolverType:
        return self.type_resolver or resolve_type

    @property
    def resolved_type_hint_emitter(self) -> TypeHintEmitterType:
        return self.type_hint_emitter or emit_type_hint

    @property
    def resolved_name_resolver(self) -> NameResolverType:
        return self.name_resolver or nameof

    def merge(self, other: JsonSettings | None, /) -> JsonSettings:
        """
        Create new settings with fields of `other` which are not `None` taking
        precedence. Known types are concatenated with duplicates removed.
        """
        if other is None:
            return self

        changes: dict[str, Any] = {
            f.name: getattr(other, f.name)
            for f in fields(other)
            if getattr(other, f.name) is not None
        }

        if self.known_types and other.known_types:
            changes["known_types"] = tuple(
                dict.fromkeys((*other.known_types, *self.known_types))
            )

        return replace(self, **changes)

    @classmethod
    def from_toml(cls, source: str | Path, /) -> Self:
        """
        Load settings from the `[typedjson]` table of a TOML document.

        Known types are given as import strings of the form `module:QualName`, and
        the error handler as `"log"` or `"raise"`.

        :param source: TOML text, or path to a TOML file
        :raises ValueError: If a setting is invalid
        """
        text = source.read_text() if isinstance(source, Path) else source
        document = tomlkit.parse(text).unwrap()
        table = document.get(TOML_TABLE, {})

        unknown = set(table) - TOML_SETTINGS
        if unknown:
            raise ValueError(f"Unknown settings in [{TOML_TABLE}]: {sorted(unknown)}")

        error_handler: ErrorHandlerType | None = None
        if (handler_name := table.get("error_handler")) is not None:
            if handler_name not in TOML_ERROR_HANDLERS:
                raise ValueError(
                    f"Unknown error handler '{handler_name}', expected one of "
                    f"{sorted(TOML_ERROR_HANDLERS)}"
                )
            error_handler = TOML_ERROR_HANDLERS[handler_name]

        known_types = table.get("known_types")

        return cls(
            error_handler=error_handler,
            known_types=(
                tuple(_import_type(t) for t in known_types)
                if known_types is not None
                else None
            ),
            indent=table.get("indent"),
            sort_keys=table.get("sort_keys"),
            strict=table.get("strict"),
        )


def _import_type(import_str: str) -> type:
    """
    Import a class given as `module:QualName`.
    """
    module_name, sep, qualname = import_str.partition(":")
    if not sep or not module_name or not qualname:
        raise ValueError(f"Expected 'module:QualName', got '{import_str}'")

    obj: Any = importlib.import_module(module_name)
    for attr in qualname.split("."):
        obj = getattr(obj, attr)

    if not isinstance(obj, type):
        raise ValueError(f"'{import_str}' does not refer to a class: {obj!r}")

    return obj


DEFAULT_SETTINGS = JsonSettings()
"""
Settings with all defaults.
"""
