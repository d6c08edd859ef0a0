"""
Error handlers invoked for non-fatal conversion errors.

A handler which returns lets the conversion continue with a best-effort partial
result; a handler which raises aborts the conversion with that exception.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from .exceptions import ConversionErrors, JsonConversionError

__all__ = [
    "ErrorHandlerType",
    "log_error",
    "raise_error",
    "ErrorCollector",
]

logger = logging.getLogger(__name__)

type ErrorHandlerType = Callable[[JsonConversionError], None]
"""
Function which receives each conversion error as it is encountered.
"""


def log_error(error: JsonConversionError, /):
    """
    Default handler: log the error and continue.
    """
    logger.error("%s: %s: %s", error.path_str, type(error).__name__, error)


def raise_error(error: JsonConversionError, /):
    """
    Fail-fast handler: re-raise the error, aborting the conversion.
    """
    raise error


class ErrorCollector:
    """
    Handler which collects errors so they can be inspected or raised together after
    the conversion.
    """

    errors: list[JsonConversionError]
    """
    Errors collected so far, in the order encountered.
    """

    def __init__(self):
        self.errors = []

    def __call__(self, error: JsonConversionError, /):
        self.errors.append(error)

    def raise_if_errors(self):
        """
        Raise all collected errors as one exception, if any were collected.

        :raises ConversionErrors: If any errors were collected
        """
        if self.errors:
            raise ConversionErrors(list(self.errors))

    def clear(self):
        self.errors.clear()
