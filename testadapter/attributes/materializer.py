"""Turns raw attribute records into marker instances.

Records backed by a live marker class (runtime mode) take argument types
from the recorded values. Inspection-only records resolve the marker
class and every argument type by name through the registry. Both then
pick a constructor by parameter types, call it, and assign the named
arguments through the registry's settable accessors.

A record whose marker type, or any type it references, is missing or
does not fit the recorded arguments is skipped. Any other error raised
while constructing the marker propagates.
"""

from __future__ import annotations

import inspect
import sys
import types
import typing
from typing import Any, Callable, Sequence

from testadapter.attributes.markers import Marker
from testadapter.attributes.registry import (
    SEQUENCE_ORIGINS,
    ArrayType,
    TypeRegistry,
    default_registry,
    parameter_hints,
)
from testadapter.errors import (
    BadImageFormatError,
    MarkerConstructionFailed,
    inner_exception_or_self,
    try_get_message,
)
from testadapter.metadata.model import AttributeRecord, TypedArgument, TypeRef

_POSITIONAL = (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)


class AttributeMaterializer:
    """Builds fresh marker instances from attribute records."""

    def __init__(self, registry: TypeRegistry | None = None, verbose: bool = False) -> None:
        self.registry = registry if registry is not None else default_registry()
        self.verbose = verbose

    def materialize(self, record: AttributeRecord) -> Marker | None:
        """Construct the marker described by ``record``, or None if it is skipped."""
        try:
            return self.create_instance(record)
        except MarkerConstructionFailed as e:
            if self.verbose:
                print(
                    f"attribute resolution: skipped "
                    f"{record.marker_type.assembly_qualified_name}: "
                    f"{try_get_message(inner_exception_or_self(e))}",
                    file=sys.stderr,
                )
            return None

    def create_instance(self, record: AttributeRecord) -> Marker:
        """Construct the marker described by ``record``.

        Raises:
            MarkerConstructionFailed: If the record cannot be materialized.
        """
        klass = self.marker_class(record.marker_type)
        runtime = record.marker_type.runtime_type is not None

        parameter_types: list[Any] = []
        arguments: list[Any] = []
        for argument in record.positional_arguments:
            parameter_type = self._argument_type(argument, runtime)
            parameter_types.append(parameter_type)
            arguments.append(self._argument_value(argument, parameter_type))

        factory = self._find_constructor(klass, parameter_types)
        instance = factory(*arguments)

        for name, argument in record.named_arguments.items():
            accessor = self.registry.property_setter(klass, name)
            value = self._argument_value(argument, self._argument_type(argument, runtime))
            accessor.set(instance, self.registry.convert_annotated(value, accessor.value_type))

        return instance

    def marker_class(self, marker_type: TypeRef) -> type:
        """Resolve the marker class of a record."""
        klass = marker_type.runtime_type
        if klass is None:
            klass = self.registry.resolve(marker_type.full_name)
        if not (inspect.isclass(klass) and issubclass(klass, Marker)):
            raise BadImageFormatError(f"{marker_type.full_name} is not a marker type")
        return klass

    def _argument_type(self, argument: TypedArgument, runtime: bool) -> Any:
        if not runtime:
            return self.registry.resolve(argument.type_name)
        if argument.is_array and isinstance(argument.value, (tuple, list)):
            element_types = {type(_plain(item)) for item in argument.value}
            if len(element_types) == 1:
                return ArrayType(element_types.pop())
            return ArrayType(object)
        return type(argument.value)

    def _argument_value(self, argument: TypedArgument, parameter_type: Any) -> Any:
        value = argument.value
        if isinstance(parameter_type, ArrayType) and isinstance(value, (tuple, list)):
            return tuple(
                self.registry.convert(_plain(item), parameter_type.element_type)
                for item in value
            )
        return self.registry.convert(value, parameter_type)

    def _find_constructor(
        self, klass: type, parameter_types: Sequence[Any]
    ) -> Callable[..., Any]:
        for candidate in self.registry.constructors(klass):
            if _signature_accepts(candidate, parameter_types):
                return candidate
        names = ", ".join(_type_name(t) for t in parameter_types)
        raise BadImageFormatError(
            f"No constructor of {klass.__qualname__} accepts ({names})"
        )


def _plain(item: Any) -> Any:
    return item.value if isinstance(item, TypedArgument) else item


def _type_name(parameter_type: Any) -> str:
    if isinstance(parameter_type, ArrayType):
        return _type_name(parameter_type.element_type) + "[]"
    return getattr(parameter_type, "__name__", str(parameter_type))


def _signature_accepts(candidate: Callable[..., Any], parameter_types: Sequence[Any]) -> bool:
    """Check whether a constructor's positional parameters accept the given types."""
    if inspect.isclass(candidate):
        func = candidate.__init__
        params = list(inspect.signature(func).parameters.values())[1:]
    else:
        func = getattr(candidate, "__func__", candidate)
        params = list(inspect.signature(candidate).parameters.values())
    hints = parameter_hints(func)

    positional = [p for p in params if p.kind in _POSITIONAL]
    var_positional = next(
        (p for p in params if p.kind == inspect.Parameter.VAR_POSITIONAL), None
    )
    required = [p for p in positional if p.default is inspect.Parameter.empty]

    if len(parameter_types) < len(required):
        return False
    if len(parameter_types) > len(positional) and var_positional is None:
        return False

    for index, parameter_type in enumerate(parameter_types):
        param = positional[index] if index < len(positional) else var_positional
        if param is None:
            return False
        if not _accepts(hints.get(param.name, Any), parameter_type):
            return False
    return True


def _accepts(annotation: Any, parameter_type: Any) -> bool:
    """Whether a value of ``parameter_type`` may be passed to ``annotation``."""
    if annotation is Any or annotation is object or annotation is inspect.Parameter.empty:
        return True
    origin = typing.get_origin(annotation)
    if origin is typing.Union or origin is types.UnionType:
        return any(_accepts(a, parameter_type) for a in typing.get_args(annotation))

    if isinstance(parameter_type, ArrayType):
        if annotation in SEQUENCE_ORIGINS:
            return True
        if origin in SEQUENCE_ORIGINS:
            args = [a for a in typing.get_args(annotation) if a is not Ellipsis]
            return _accepts(args[0] if args else Any, parameter_type.element_type)
        return False

    if origin is not None:
        annotation = origin
    if isinstance(annotation, type) and isinstance(parameter_type, type):
        if annotation is float and parameter_type is int:
            return True
        return issubclass(parameter_type, annotation)
    return False
