"""
Placeholder for values which failed to convert.
"""

from __future__ import annotations

from typing import Any, Final, final

__all__ = [
    "ErrorSentinel",
    "ERROR_SENTINEL",
]


@final
class ErrorSentinel:
    """
    Type of `ERROR_SENTINEL`, left in deserialized arrays in place of elements which
    failed to convert so the positions of the remaining elements are kept.

    Only one instance exists; it's falsy and survives copying and pickling as the
    same instance, so it can be checked with `is`.
    """

    __instance: ErrorSentinel | None = None

    def __new__(cls) -> ErrorSentinel:
        if cls.__instance is None:
            cls.__instance = super().__new__(cls)
        return cls.__instance

    def __repr__(self) -> str:
        return "ERROR_SENTINEL"

    def __bool__(self) -> bool:
        return False

    def __copy__(self) -> ErrorSentinel:
        return self

    def __deepcopy__(self, memo: dict[int, Any]) -> ErrorSentinel:
        return self

    def __reduce__(self) -> str:
        return "ERROR_SENTINEL"


ERROR_SENTINEL: Final = ErrorSentinel()
