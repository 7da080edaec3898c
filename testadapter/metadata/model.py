"""Language-neutral metadata model.

An element is an assembly, a type or a method. Elements expose the raw
attribute records declared directly on them and a link to the element
they inherit from. Records are plain data: nothing is constructed until
the materializer turns a record into a marker instance.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Mapping, Protocol, Sequence, runtime_checkable

# Names treated as the root of every type hierarchy
UNIVERSAL_ROOT_NAMES = frozenset({"builtins.object", "object"})


class ElementKind(enum.Enum):
    ASSEMBLY = "assembly"
    TYPE = "type"
    METHOD = "method"


@dataclass(frozen=True)
class TypeRef:
    """Reference to a type by name, with an optional metadata base chain.

    ``runtime_type`` is only set when the reference is backed by a live
    Python class; inspection-only references leave it empty.
    """

    full_name: str
    assembly_name: str = ""
    base: TypeRef | None = None
    runtime_type: type | None = field(default=None, compare=False, repr=False)

    @property
    def assembly_qualified_name(self) -> str:
        if self.assembly_name:
            return f"{self.full_name}, {self.assembly_name}"
        return self.full_name

    @property
    def is_universal_root(self) -> bool:
        return self.full_name in UNIVERSAL_ROOT_NAMES

    def same_type(self, other: TypeRef) -> bool:
        """Compare by full name, and by assembly when both references name one."""
        if self.full_name != other.full_name:
            return False
        if self.assembly_name and other.assembly_name:
            return self.assembly_name == other.assembly_name
        return True

    def inherits_from(self, other: TypeRef) -> bool:
        """True if this type equals ``other`` or has it in its base chain."""
        current: TypeRef | None = self
        while current is not None:
            if current.same_type(other):
                return True
            current = current.base
        return False

    @classmethod
    def from_class(cls, klass: type, runtime: bool = True) -> TypeRef:
        """Build a reference, base chain included, from a Python class.

        With ``runtime=False`` the reference carries names only, as if it
        had been read from metadata.
        """
        base: TypeRef | None = None
        bases = [b for b in klass.__bases__ if b is not object]
        if bases:
            base = cls.from_class(bases[0], runtime=runtime)
        return cls(
            full_name=class_full_name(klass),
            assembly_name=klass.__module__.split(".")[0],
            base=base,
            runtime_type=klass if runtime else None,
        )

    @classmethod
    def parse(cls, name: str) -> TypeRef:
        """Parse ``"Full.Name"`` or ``"Full.Name, Assembly"``."""
        full_name, _, assembly_name = name.partition(",")
        return cls(full_name=full_name.strip(), assembly_name=assembly_name.strip())


@dataclass(frozen=True)
class TypedArgument:
    """A recorded argument value together with its declared type name.

    Array-typed values (``type_name`` ending in ``[]``) hold a tuple of
    ``TypedArgument`` sub-values.
    """

    type_name: str
    value: Any

    @property
    def is_array(self) -> bool:
        return self.type_name.endswith("[]")


def typed_argument(value: Any) -> TypedArgument:
    """Infer a TypedArgument from a plain Python value."""
    if isinstance(value, TypedArgument):
        return value
    if value is None:
        return TypedArgument("NoneType", None)
    if isinstance(value, (list, tuple)):
        items = tuple(typed_argument(v) for v in value)
        element_type = items[0].type_name if items else "object"
        if any(item.type_name != element_type for item in items):
            element_type = "object"
        return TypedArgument(f"{element_type}[]", items)
    if isinstance(value, enum.Enum):
        return TypedArgument(class_full_name(type(value)), value)
    # bool before int: bool is an int subclass
    for python_type in (bool, int, float, str):
        if isinstance(value, python_type):
            return TypedArgument(python_type.__name__, value)
    if isinstance(value, type):
        return TypedArgument("type", value)
    return TypedArgument("object", value)


@dataclass(frozen=True)
class AttributeRecord:
    """Raw, unexecuted description of one marker application."""

    marker_type: TypeRef
    positional_arguments: tuple[TypedArgument, ...] = ()
    named_arguments: Mapping[str, TypedArgument] = field(default_factory=dict)


@runtime_checkable
class Element(Protocol):
    """Read-only view of an assembly, type or method."""

    @property
    def kind(self) -> ElementKind: ...

    @property
    def full_name(self) -> str: ...

    @property
    def identity(self) -> str: ...

    def base_element(self) -> Element | None: ...

    def raw_attributes(self) -> Sequence[AttributeRecord]: ...


class TypeElement(Element, Protocol):
    @property
    def is_universal_root(self) -> bool: ...

    def declared_methods(self) -> Sequence[MethodElement]: ...

    def methods(self) -> Sequence[MethodElement]: ...


class MethodElement(Element, Protocol):
    @property
    def name(self) -> str: ...

    @property
    def declaring_type_name(self) -> str: ...

    @property
    def is_static(self) -> bool: ...


class AssemblyElement(Element, Protocol):
    def types(self) -> Sequence[TypeElement]: ...


def override_key(method: MethodElement) -> str:
    """Declaring type name concatenated with the method name.

    Two method elements with the same key are treated as the same
    declaration when walking an override chain.
    """
    return method.declaring_type_name + method.name


def class_full_name(klass: type) -> str:
    return f"{klass.__module__}.{klass.__qualname__}"
