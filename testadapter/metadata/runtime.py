"""Elements backed by live Python modules, classes and functions.

Markers are declared on classes and functions with the ``apply``
decorator, and on a module (the assembly) with a module-level
``__assembly_markers__`` list of ``record(...)`` entries::

    __assembly_markers__ = [record(Parallelize, workers=4)]

    @apply(TestClass)
    class CartTests:
        @apply(TestMethod)
        @apply(TestCategory, "fast")
        def test_add(self): ...

Only the records declared directly on an object are returned by
``raw_attributes()``; inheritance is left to the resolution engine.
"""

from __future__ import annotations

import inspect
from dataclasses import dataclass
from types import ModuleType
from typing import Any, Callable, TypeVar

from testadapter.metadata.model import (
    AttributeRecord,
    ElementKind,
    TypeRef,
    class_full_name,
    typed_argument,
)

MARKERS_ATTR = "__markers__"
ASSEMBLY_MARKERS_ATTR = "__assembly_markers__"

T = TypeVar("T")


def record(marker: type, *args: Any, **named: Any) -> AttributeRecord:
    """Describe one application of ``marker`` with the given arguments."""
    return AttributeRecord(
        marker_type=TypeRef.from_class(marker),
        positional_arguments=tuple(typed_argument(a) for a in args),
        named_arguments={k: typed_argument(v) for k, v in named.items()},
    )


def _unwrap(obj: Any) -> Any:
    if isinstance(obj, (staticmethod, classmethod)):
        return obj.__func__
    return obj


def apply(marker: type, *args: Any, **named: Any) -> Callable[[T], T]:
    """Decorator attaching a marker record to a class or function.

    Stacked decorators keep source order: the topmost decorator's record
    comes first.
    """
    new_record = record(marker, *args, **named)

    def decorator(target: T) -> T:
        holder = target if inspect.isclass(target) else _unwrap(target)
        if inspect.isclass(holder):
            existing = holder.__dict__.get(MARKERS_ATTR, ())
        else:
            existing = getattr(holder, MARKERS_ATTR, ())
        setattr(holder, MARKERS_ATTR, (new_record, *existing))
        return target

    return decorator


def declared_records(obj: Any) -> tuple[AttributeRecord, ...]:
    """Records declared directly on a class or function (not inherited)."""
    if inspect.isclass(obj):
        return tuple(obj.__dict__.get(MARKERS_ATTR, ()))
    return tuple(getattr(_unwrap(obj), MARKERS_ATTR, ()))


def _is_method_member(name: str, member: Any) -> bool:
    if name.startswith("__") and name.endswith("__"):
        return False
    return inspect.isfunction(_unwrap(member))


@dataclass(frozen=True)
class RuntimeMethod:
    """A function declared on a class."""

    declaring_class: type
    name: str

    kind = ElementKind.METHOD

    @property
    def declaring_type_name(self) -> str:
        return class_full_name(self.declaring_class)

    @property
    def full_name(self) -> str:
        return f"{self.declaring_type_name}.{self.name}"

    @property
    def identity(self) -> str:
        return self.full_name

    @property
    def is_static(self) -> bool:
        member = self.declaring_class.__dict__[self.name]
        return isinstance(member, (staticmethod, classmethod))

    def base_element(self) -> RuntimeMethod | None:
        """The overridden declaration: next class in the MRO defining the name."""
        for klass in self.declaring_class.__mro__[1:]:
            if klass is object:
                break
            if self.name in vars(klass):
                return RuntimeMethod(klass, self.name)
        return None

    def raw_attributes(self) -> tuple[AttributeRecord, ...]:
        return declared_records(self.declaring_class.__dict__[self.name])


@dataclass(frozen=True)
class RuntimeType:
    """A Python class."""

    cls: type

    kind = ElementKind.TYPE

    @property
    def full_name(self) -> str:
        return class_full_name(self.cls)

    @property
    def identity(self) -> str:
        return self.full_name

    @property
    def is_universal_root(self) -> bool:
        return self.cls is object

    def base_element(self) -> RuntimeType | None:
        if not self.cls.__bases__:
            return None
        return RuntimeType(self.cls.__bases__[0])

    def raw_attributes(self) -> tuple[AttributeRecord, ...]:
        return declared_records(self.cls)

    def declared_methods(self) -> list[RuntimeMethod]:
        """Methods declared directly on this class."""
        return [
            RuntimeMethod(self.cls, name)
            for name, member in vars(self.cls).items()
            if _is_method_member(name, member)
        ]

    def methods(self) -> list[RuntimeMethod]:
        """Public and inherited methods, each with its most-derived declaration."""
        seen: set[str] = set()
        result: list[RuntimeMethod] = []
        for klass in self.cls.__mro__:
            if klass is object:
                continue
            for name, member in vars(klass).items():
                if name in seen or not _is_method_member(name, member):
                    continue
                seen.add(name)
                result.append(RuntimeMethod(klass, name))
        return result


@dataclass(frozen=True)
class RuntimeAssembly:
    """A Python module treated as an assembly."""

    module: ModuleType

    kind = ElementKind.ASSEMBLY

    @property
    def full_name(self) -> str:
        return self.module.__name__

    @property
    def identity(self) -> str:
        return self.full_name

    def base_element(self) -> None:
        return None

    def raw_attributes(self) -> tuple[AttributeRecord, ...]:
        return tuple(getattr(self.module, ASSEMBLY_MARKERS_ATTR, ()))

    def types(self) -> list[RuntimeType]:
        """Classes defined in the module, in definition order."""
        return [
            RuntimeType(member)
            for member in vars(self.module).values()
            if inspect.isclass(member) and member.__module__ == self.module.__name__
        ]
