from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from ..exceptions import ConversionErrors, JsonConversionError
from ..metadata import MetadataRegistry
from ..resolution import KnownTypesType
from ..settings import JsonSettings
from ..typedefs import ArrayTag, MapTag, ObjectTag, ScalarTag, SetTag, TypeTag
from ._types import ERROR_SENTINEL, ErrorSentinel
from .frame import ConversionFrame
from .scalars import BaseScalarConverter, find_scalar_converter

__all__ = [
    "BaseConversionEngine",
]


class BaseConversionEngine(ABC):
    """
    Base class for conversion engines.

    Orchestrates conversion process, containing common recursion logic with abstract
    hooks for serialization/deserialization-specific behavior per kind of type tag.
    """

    settings: JsonSettings
    """
    Settings for this conversion.
    """

    registry: MetadataRegistry
    """
    Registry of class metadata.
    """

    def __init__(self, *, settings: JsonSettings, registry: MetadataRegistry):
        self.settings = settings
        self.registry = registry

    def __repr__(self) -> str:
        return f"{type(self).__name__}(registry={self.registry})"

    def create_frame(
        self, tag: TypeTag, known_types: KnownTypesType
    ) -> ConversionFrame:
        """
        Create a root frame bound to this engine for subsequent processing.
        """
        return ConversionFrame(
            tag=tag,
            settings=self.settings,
            registry=self.registry,
            known_types=known_types,
            engine=self,
        )

    def invoke_process(self, obj: Any, frame: ConversionFrame) -> Any:
        """
        Entry point for conversion; a root value which failed to convert is returned
        as `None`.

        :raises ConversionErrors: If strict and any errors were reported
        """
        processed_obj = frame.recurse(obj, tag=frame.tag)

        if self.settings.strict and frame.errors:
            raise ConversionErrors(list(frame.errors))

        return None if isinstance(processed_obj, ErrorSentinel) else processed_obj

    def process(self, obj: Any, frame: ConversionFrame) -> Any | ErrorSentinel:
        """
        Main conversion dispatcher with common logic.

        Walks the object recursively based on the type tag. Errors raised by the hooks
        are reported and replaced with `ERROR_SENTINEL`, so one failing value doesn't
        prevent conversion of its siblings.
        """
        # null is passed through regardless of the expected type
        if obj is None:
            return None

        try:
            match frame.tag:
                case ScalarTag(type_=type_):
                    converter = find_scalar_converter(type_)
                    assert converter, f"No scalar converter for {type_}"
                    return self._process_scalar(obj, converter, frame)
                case ObjectTag():
                    return self._process_object(obj, frame)
                case ArrayTag():
                    return self._process_array(obj, frame)
                case SetTag():
                    return self._process_set(obj, frame)
                case MapTag():
                    return self._process_map(obj, frame)
                case _:
                    raise TypeError(f"Unknown type tag: {frame.tag!r}")
        except JsonConversionError as e:
            # already passed to the handler, which re-raised it: abort
            if e._reported:
                raise
            frame.report(obj, e)
            return ERROR_SENTINEL

    @abstractmethod
    def _process_scalar(
        self,
        obj: Any,
        converter: type[BaseScalarConverter],
        frame: ConversionFrame,
    ) -> Any:
        """
        Convert scalar value.
        """

    @abstractmethod
    def _process_object(self, obj: Any, frame: ConversionFrame) -> Any:
        """
        Convert instance of registered class.
        """

    @abstractmethod
    def _process_array(self, obj: Any, frame: ConversionFrame) -> Any:
        """
        Convert array, recursing into nested arrays per its dimensions.
        """

    @abstractmethod
    def _process_set(self, obj: Any, frame: ConversionFrame) -> Any:
        """
        Convert set.
        """

    @abstractmethod
    def _process_map(self, obj: Any, frame: ConversionFrame) -> Any:
        """
        Convert mapping.
        """
