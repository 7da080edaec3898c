"""Name-based lookup of marker types for inspection-only materialization.

When the inspected module may not run, marker classes cannot be taken
from the module itself. The registry maps full type names to the marker
classes (and argument types) the framework knows about, and provides the
constructor list and settable-accessor table used to rebuild a marker
from recorded arguments.
"""

from __future__ import annotations

import collections.abc
import enum
import importlib
import inspect
import types
import typing
from dataclasses import dataclass
from types import ModuleType
from typing import Any, Callable, Iterable

from testadapter.attributes import markers
from testadapter.errors import BadImageFormatError, FileLoadError, TypeLoadError
from testadapter.metadata.model import TypeRef, class_full_name

BUILTIN_TYPES: dict[str, type] = {
    "bool": bool,
    "int": int,
    "float": float,
    "str": str,
    "object": object,
    "type": type,
    "NoneType": type(None),
}

SEQUENCE_ORIGINS = (tuple, list, collections.abc.Sequence)


@dataclass(frozen=True)
class ArrayType:
    """Resolved type of an array-typed argument."""

    element_type: Any


@dataclass(frozen=True)
class PropertyAccessor:
    """Settable accessor for one named argument of a marker type."""

    name: str
    setter: Callable[[Any, Any], None]
    value_type: Any = Any

    def set(self, instance: Any, value: Any) -> None:
        self.setter(instance, value)


class TypeRegistry:
    """Maps full type names to Python classes.

    Modules listed in ``search_modules`` are imported on first lookup of a
    name they declare; a failing import is reported as ``FileLoadError``.
    """

    def __init__(self, search_modules: Iterable[str] = ()) -> None:
        self._types: dict[str, type] = {}
        self.search_modules: list[str] = list(search_modules)

    def register(self, klass: type) -> type:
        self._types[class_full_name(klass)] = klass
        return klass

    def register_module(self, module: ModuleType) -> None:
        """Register every class defined in ``module``."""
        for member in vars(module).values():
            if inspect.isclass(member) and member.__module__ == module.__name__:
                self.register(member)

    def lookup(self, full_name: str) -> type | None:
        """Find a class by full name, importing a search module if needed."""
        if full_name in BUILTIN_TYPES:
            return BUILTIN_TYPES[full_name]
        if full_name in self._types:
            return self._types[full_name]
        for module_name in self.search_modules:
            if not full_name.startswith(module_name + "."):
                continue
            try:
                module = importlib.import_module(module_name)
            except ImportError as e:
                raise FileLoadError(f"Could not load {module_name}: {e}") from e
            self.register_module(module)
            return self._types.get(full_name)
        return None

    def resolve(self, type_name: str) -> Any:
        """Resolve a recorded type name to a class or ``ArrayType``.

        Raises:
            TypeLoadError: If the type is unknown.
        """
        full_name = TypeRef.parse(type_name).full_name
        if full_name.endswith("[]"):
            return ArrayType(self.resolve(full_name[:-2]))
        klass = self.lookup(full_name)
        if klass is None:
            raise TypeLoadError(f"Could not resolve type {full_name}")
        return klass

    def type_ref(self, full_name: str) -> TypeRef | None:
        """Metadata reference (names only) for a registered class."""
        try:
            klass = self.lookup(full_name)
        except FileLoadError:
            return None
        if klass is None or klass in BUILTIN_TYPES.values():
            return None
        return TypeRef.from_class(klass, runtime=False)

    def constructors(self, klass: type) -> list[Callable[..., Any]]:
        """The class itself followed by its registered alternative constructors."""
        result: list[Callable[..., Any]] = [klass]
        seen: set[str] = set()
        for owner in klass.__mro__:
            for name, member in vars(owner).items():
                if name in seen:
                    continue
                seen.add(name)
                if isinstance(member, classmethod) and getattr(
                    member.__func__, "__marker_constructor__", False
                ):
                    result.append(getattr(klass, name))
        return result

    def property_setter(self, klass: type, name: str) -> PropertyAccessor:
        """Settable accessor for a named argument.

        A writable property, or a public attribute annotated on the class
        body, can be set.

        Raises:
            BadImageFormatError: If there is no such property or it is read-only.
        """
        if name.startswith("_"):
            raise BadImageFormatError(f"{class_full_name(klass)}.{name} is not settable")
        for owner in klass.__mro__:
            attr = owner.__dict__.get(name)
            if isinstance(attr, property):
                if attr.fset is None:
                    raise BadImageFormatError(
                        f"{class_full_name(klass)}.{name} is read-only"
                    )
                return PropertyAccessor(name, attr.fset, _setter_value_type(attr.fset))
            if name in inspect.get_annotations(owner):
                return PropertyAccessor(
                    name,
                    lambda obj, value: setattr(obj, name, value),
                    _class_hints(owner).get(name, Any),
                )
        raise BadImageFormatError(f"{class_full_name(klass)} has no property {name}")

    def convert_annotated(self, value: Any, annotation: Any) -> Any:
        """Convert a named argument value to a property's declared type.

        Unlike ``convert``, None only fits an optional or untyped property.

        Raises:
            BadImageFormatError: If the value does not fit the annotation.
        """
        if annotation is Any or annotation is object:
            return value
        origin = typing.get_origin(annotation)
        if origin is typing.Union or origin is types.UnionType:
            members = typing.get_args(annotation)
            if value is None and type(None) in members:
                return None
            for member in members:
                if member is type(None):
                    continue
                try:
                    return self.convert_annotated(value, member)
                except BadImageFormatError:
                    continue
            raise BadImageFormatError(f"{value!r} does not fit {annotation}")
        if value is None:
            if annotation is type(None):
                return None
            raise BadImageFormatError(f"None does not fit {_annotation_name(annotation)}")
        if annotation in SEQUENCE_ORIGINS or origin in SEQUENCE_ORIGINS:
            if not isinstance(value, (tuple, list)):
                raise BadImageFormatError(f"{value!r} is not a sequence")
            args = [a for a in typing.get_args(annotation) if a is not Ellipsis]
            element = args[0] if args else Any
            return tuple(self.convert_annotated(item, element) for item in value)
        if origin is not None:
            annotation = origin
        if not isinstance(annotation, type):
            return value
        return self.convert(value, annotation)

    def convert(self, value: Any, target: Any) -> Any:
        """Convert a recorded scalar to ``target`` (enum members by name or value).

        Raises:
            BadImageFormatError: If the value does not fit the type.
        """
        if value is None or target is object or isinstance(target, ArrayType):
            return value
        if isinstance(target, type) and issubclass(target, enum.Enum):
            if isinstance(value, target):
                return value
            try:
                if isinstance(value, str):
                    return target[value]
                return target(value)
            except (KeyError, ValueError) as e:
                raise BadImageFormatError(
                    f"{value!r} is not a member of {class_full_name(target)}"
                ) from e
        if target is float and isinstance(value, int) and not isinstance(value, bool):
            return float(value)
        if isinstance(target, type) and not isinstance(value, target):
            raise BadImageFormatError(
                f"{value!r} is not a {getattr(target, '__name__', target)}"
            )
        return value


def _setter_value_type(fset: Callable[..., Any]) -> Any:
    params = list(inspect.signature(fset).parameters)
    if len(params) < 2:
        return Any
    return parameter_hints(fset).get(params[1], Any)


def _class_hints(owner: type) -> dict[str, Any]:
    try:
        return typing.get_type_hints(owner)
    except (NameError, TypeError):
        return {}


def _annotation_name(annotation: Any) -> str:
    return getattr(annotation, "__name__", str(annotation))


def parameter_hints(func: Callable[..., Any]) -> dict[str, Any]:
    """Evaluated annotations of a function, or {} when they cannot be evaluated."""
    try:
        return typing.get_type_hints(func)
    except (NameError, TypeError):
        return {}


def default_registry() -> TypeRegistry:
    """A registry knowing the framework markers and argument enums."""
    registry = TypeRegistry()
    registry.register_module(markers)
    return registry
