"""
Exception classes.
"""

from __future__ import annotations

from typing import Any, Generator

__all__ = [
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


class JsonConversionError(Exception):
    """
    Base class for non-fatal errors encountered during serialization or
    deserialization.

    These are not raised out of a conversion directly; they are passed to the
    configured error handler, which decides whether to log, collect or re-raise.
    """

    obj: Any
    """
    The object attempted to be converted.
    """

    path: tuple[str | int, ...]
    """
    Member names and indices leading from the root to the failing value.
    """

    def __init__(self, message: str, *, obj: Any = None):
        super().__init__(message)
        self.obj = obj
        self.path = ()
        self._reported = False

    @property
    def path_str(self) -> str:
        """
        Path tuple formatted as dot notation.

        Examples:

        - `('items', 1, 'value') -> "items[1].value"`
        - `('user', 'name') -> "user.name"`
        - `(0, 'id') -> "[0].id"`
        - `() -> "<root>"`
        """
        if not self.path:
            return "<root>"
        parts: list[str] = []
        for i, segment in enumerate(self.path):
            if isinstance(segment, int):
                # index: append as [n]
                parts.append(f"[{segment}]")
            else:
                # member name: prefix with dot
                prefix = "." if i != 0 else ""
                parts.append(f"{prefix}{segment}")
        return "".join(parts)

    def format_error(self) -> Generator[str, None, None]:
        """
        Format this error for display.
        """
        yield f"{self.path_str}: {type(self).__name__}"
        yield from (f"  {m}" for m in str(self).splitlines())


class UnresolvableConstructorError(JsonConversionError):
    """
    Type hint names a class absent from the known-types table.
    """


class TypeShapeMismatchError(JsonConversionError):
    """
    Value's runtime shape doesn't match the expected type tag.
    """


class MissingRequiredMemberError(JsonConversionError):
    """
    Required member absent from the plain object being deserialized.
    """

    member: str

    def __init__(self, message: str, *, obj: Any = None, member: str):
        super().__init__(message, obj=obj)
        self.member = member


class AmbiguousTypeNameError(JsonConversionError):
    """
    Two distinct classes resolve to the same name in one known-types table.
    """


class CircularReferenceError(JsonConversionError):
    """
    Object graph refers back to an object currently being converted.
    """


class MalformedJsonError(JsonConversionError):
    """
    Text passed to a parse call is not valid JSON.
    """


class UnregisteredRootTypeError(TypeError):
    """
    Top-level conversion requested for a class never explicitly registered.

    Raised immediately rather than passed to the error handler: no partial result
    can exist without a root descriptor.
    """


class ConversionErrors(Exception):
    """
    Aggregated conversion errors, raised by `ErrorCollector.raise_if_errors()`.

    Formats all errors with paths to each error.
    """

    errors: list[JsonConversionError]

    def __init__(self, errors: list[JsonConversionError]):
        assert errors
        self.errors = errors
        super().__init__(self.__format_errors())

    def __format_errors(self) -> str:
        plural = "s" if len(self.errors) > 1 else ""
        lines = [f"Error{plural} occurred during conversion:"]

        for error in self.errors:
            lines += list(error.format_error())

        return "\n".join(lines)
