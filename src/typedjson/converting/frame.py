from __future__ import annotations

from typing import TYPE_CHECKING, Any, Self

from ..exceptions import CircularReferenceError, JsonConversionError
from ..metadata import MetadataRegistry
from ..resolution import KnownTypesType
from ..settings import JsonSettings
from ..typedefs import ScalarTag, TypeTag
from ._types import ERROR_SENTINEL

if TYPE_CHECKING:
    from .engine import BaseConversionEngine

__all__ = [
    "ConversionFrame",
]


class ConversionFrame:
    """
    Internal recursion state per frame.
    """

    tag: TypeTag
    """
    Expected shape of the value at this level.
    """

    settings: JsonSettings
    """
    Settings passed at the conversion entry point.
    """

    registry: MetadataRegistry
    """
    Registry of class metadata.
    """

    known_types: KnownTypesType
    """
    Known types for this conversion, shared by all frames.
    """

    __engine: BaseConversionEngine
    """
    Conversion engine for recursion.
    """

    __path: tuple[str | int, ...]
    """
    Member path at this level in recursion.
    """

    __seen: set[int]
    """
    Object ids on the current path for cycle detection.
    """

    __errors: list[JsonConversionError]
    """
    Shared list for collecting conversion errors.
    """

    def __init__(
        self,
        *,
        tag: TypeTag,
        settings: JsonSettings,
        registry: MetadataRegistry,
        known_types: KnownTypesType,
        engine: BaseConversionEngine,
        path: tuple[str | int, ...] | None = None,
        seen: set[int] | None = None,
        errors: list[JsonConversionError] | None = None,
    ):
        self.tag = tag
        self.settings = settings
        self.registry = registry
        self.known_types = known_types
        self.__engine = engine
        self.__path = path or ()
        self.__seen = seen if seen is not None else set()
        self.__errors = errors if errors is not None else []

    def __repr__(self) -> str:
        return f"{type(self).__name__}(tag={self.tag!r}, path={self.__path})"

    @property
    def path(self) -> tuple[str | int, ...]:
        """
        The current path in the object tree.
        """
        return self.__path

    @property
    def errors(self) -> list[JsonConversionError]:
        """
        The shared error list for this conversion invocation.
        """
        return self.__errors

    def recurse(
        self,
        obj: Any,
        /,
        *path_segments: str | int,
        tag: TypeTag,
    ) -> Any:
        """
        Create a new frame and recurse using the engine.
        """
        next_frame = self._copy(tag=tag, path_append=path_segments)

        # scalars can't refer back to anything
        check_cycle = obj is not None and not isinstance(tag, ScalarTag)

        # recurse and add/remove this object for cycle detection
        if check_cycle:
            if id(obj) in next_frame.__seen:
                exception = CircularReferenceError(
                    f"Already processing object: '{obj!r}', can't recurse", obj=obj
                )
                next_frame.report(obj, exception)
                return ERROR_SENTINEL
            next_frame.__seen.add(id(obj))
        try:
            return self.__engine.process(obj, next_frame)
        finally:
            if check_cycle:
                next_frame.__seen.discard(id(obj))

    def report(self, obj: Any, exception: JsonConversionError, /, *path_segments):
        """
        Record a conversion error at this frame's path (optionally extended) and pass
        it to the error handler, which may raise to abort the conversion.
        """
        exception.obj = obj if exception.obj is None else exception.obj
        exception.path = (*self.__path, *path_segments)
        exception._reported = True
        self.__errors.append(exception)
        self.settings.resolved_error_handler(exception)

    def _copy(
        self,
        *,
        tag: TypeTag | None = None,
        path_append: tuple[str | int, ...] = (),
    ) -> Self:
        """
        Create a new frame with the tag replaced if not `None` and the path extended.
        """
        return type(self)(
            tag=tag or self.tag,
            settings=self.settings,
            registry=self.registry,
            known_types=self.known_types,
            engine=self.__engine,
            path=(*self.__path, *path_append),
            seen=self.__seen,
            errors=self.__errors,
        )
