"""Inspection-only elements read from a metadata snapshot document.

A snapshot describes one assembly without executing any of its code.
It is a JSON or YAML document of the form::

    assembly:
      name: Sample.Tests
      readable: true            # false: the image cannot be introspected
      attributes:
        - type: testadapter.attributes.markers.Parallelize
          args: [{type: int, value: 4}]
          named:
            scope: {type: testadapter.attributes.markers.ExecutionScope, value: METHOD_LEVEL}
    types:
      - name: Sample.Tests.CartTests
        base: Sample.Tests.TestBase   # omitted: derives from the universal root
        attributes: [...]
        methods:
          - name: AddItem
            static: false
            overrides: Sample.Tests.TestBase   # declaring type of the overridden declaration
            attributes: [...]

Arguments may also be written as plain values, in which case their type
is inferred.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable

import yaml

from testadapter.errors import ElementUnavailable
from testadapter.metadata.model import (
    UNIVERSAL_ROOT_NAMES,
    AttributeRecord,
    ElementKind,
    TypedArgument,
    TypeRef,
    typed_argument,
)

# Looks up a type name outside the snapshot (e.g. a framework marker type)
TypeResolver = Callable[[str], "TypeRef | None"]


class SnapshotMethod:
    """A method declaration read from a snapshot."""

    kind = ElementKind.METHOD

    def __init__(self, snapshot: MetadataSnapshot, declaring_type_name: str,
                 data: dict[str, Any]) -> None:
        self._snapshot = snapshot
        self._data = data
        self.name: str = str(data.get("name", ""))
        self.declaring_type_name = declaring_type_name
        self.is_static = bool(data.get("static", False))

    @property
    def full_name(self) -> str:
        return f"{self.declaring_type_name}.{self.name}"

    @property
    def identity(self) -> str:
        return self.full_name

    def base_element(self) -> SnapshotMethod | None:
        self._snapshot.check_readable(self.full_name)
        overrides = self._data.get("overrides")
        if not overrides:
            return None
        base_type = self._snapshot.find_type(overrides)
        if base_type is None:
            raise ElementUnavailable(
                self.full_name, f"overridden type {overrides} is not in the snapshot"
            )
        method = base_type.find_method(self.name)
        if method is None:
            raise ElementUnavailable(
                self.full_name, f"{overrides} does not declare {self.name}"
            )
        return method

    def raw_attributes(self) -> list[AttributeRecord]:
        self._snapshot.check_readable(self.full_name)
        return self._snapshot.parse_attributes(self._data.get("attributes", []))

    def __eq__(self, other: object) -> bool:
        return isinstance(other, SnapshotMethod) and other.identity == self.identity

    def __hash__(self) -> int:
        return hash(self.identity)

    def __repr__(self) -> str:
        return f"SnapshotMethod({self.full_name!r})"


class SnapshotType:
    """A type declaration read from a snapshot."""

    kind = ElementKind.TYPE

    def __init__(self, snapshot: MetadataSnapshot, data: dict[str, Any]) -> None:
        self._snapshot = snapshot
        self._data = data
        self.full_name: str = str(data.get("name", ""))
        self._methods = [
            SnapshotMethod(snapshot, self.full_name, m)
            for m in data.get("methods", []) or []
        ]

    @property
    def identity(self) -> str:
        return self.full_name

    @property
    def base_name(self) -> str | None:
        base = self._data.get("base")
        return str(base) if base else None

    @property
    def is_universal_root(self) -> bool:
        return self.full_name in UNIVERSAL_ROOT_NAMES

    def base_element(self) -> SnapshotType | None:
        self._snapshot.check_readable(self.full_name)
        base = self.base_name
        if base is None or base in UNIVERSAL_ROOT_NAMES:
            return None
        base_type = self._snapshot.find_type(base)
        if base_type is None:
            raise ElementUnavailable(
                self.full_name, f"base type {base} is not in the snapshot"
            )
        return base_type

    def raw_attributes(self) -> list[AttributeRecord]:
        self._snapshot.check_readable(self.full_name)
        return self._snapshot.parse_attributes(self._data.get("attributes", []))

    def declared_methods(self) -> list[SnapshotMethod]:
        self._snapshot.check_readable(self.full_name)
        return list(self._methods)

    def find_method(self, name: str) -> SnapshotMethod | None:
        for method in self._methods:
            if method.name == name:
                return method
        return None

    def methods(self) -> list[SnapshotMethod]:
        """Declared and inherited methods, each with its most-derived declaration."""
        seen: set[str] = set()
        visited: set[str] = set()
        result: list[SnapshotMethod] = []
        current: SnapshotType | None = self
        while current is not None and current.identity not in visited:
            visited.add(current.identity)
            for method in current.declared_methods():
                if method.name not in seen:
                    seen.add(method.name)
                    result.append(method)
            current = current.base_element()
        return result

    def type_ref(self, visited: frozenset[str] = frozenset()) -> TypeRef:
        """Metadata reference to this type, base chain included."""
        base_ref: TypeRef | None = None
        base = self.base_name
        if base and base not in UNIVERSAL_ROOT_NAMES and base not in visited:
            base_type = self._snapshot.find_type(base)
            if base_type is not None:
                base_ref = base_type.type_ref(visited | {self.full_name})
            else:
                base_ref = self._snapshot.resolve_type_ref(base)
        return TypeRef(
            full_name=self.full_name,
            assembly_name=self._snapshot.assembly_name,
            base=base_ref,
        )

    def __eq__(self, other: object) -> bool:
        return isinstance(other, SnapshotType) and other.identity == self.identity

    def __hash__(self) -> int:
        return hash(self.identity)

    def __repr__(self) -> str:
        return f"SnapshotType({self.full_name!r})"


class SnapshotAssembly:
    """The assembly described by a snapshot."""

    kind = ElementKind.ASSEMBLY

    def __init__(self, snapshot: MetadataSnapshot) -> None:
        self._snapshot = snapshot

    @property
    def full_name(self) -> str:
        return self._snapshot.assembly_name

    @property
    def identity(self) -> str:
        return self.full_name

    def base_element(self) -> None:
        return None

    def raw_attributes(self) -> list[AttributeRecord]:
        self._snapshot.check_readable(self.full_name)
        data = self._snapshot.document.get("assembly", {}) or {}
        return self._snapshot.parse_attributes(data.get("attributes", []))

    def types(self) -> list[SnapshotType]:
        self._snapshot.check_readable(self.full_name)
        return list(self._snapshot.types.values())

    def __repr__(self) -> str:
        return f"SnapshotAssembly({self.full_name!r})"


class MetadataSnapshot:
    """Parsed snapshot document and the elements it describes."""

    def __init__(
        self,
        document: dict[str, Any],
        type_resolver: TypeResolver | None = None,
    ) -> None:
        self.document = document
        self._type_resolver = type_resolver
        assembly = document.get("assembly", {}) or {}
        self.assembly_name: str = str(assembly.get("name", ""))
        self.readable: bool = bool(assembly.get("readable", True))
        self.types: dict[str, SnapshotType] = {}
        for data in document.get("types", []) or []:
            type_element = SnapshotType(self, data)
            self.types[type_element.full_name] = type_element
        self.assembly = SnapshotAssembly(self)

    def check_readable(self, element_name: str) -> None:
        if not self.readable:
            raise ElementUnavailable(element_name, "image cannot be introspected")

    def find_type(self, name: str) -> SnapshotType | None:
        return self.types.get(TypeRef.parse(name).full_name)

    def find_method(self, type_name: str, method_name: str) -> SnapshotMethod | None:
        type_element = self.find_type(type_name)
        if type_element is None:
            return None
        return type_element.find_method(method_name)

    def resolve_type_ref(self, name: str) -> TypeRef:
        """Reference for a marker type name: snapshot types, then the resolver."""
        parsed = TypeRef.parse(name)
        declared = self.types.get(parsed.full_name)
        if declared is not None:
            return declared.type_ref()
        if self._type_resolver is not None:
            resolved = self._type_resolver(parsed.full_name)
            if resolved is not None:
                return resolved
        return parsed

    def parse_attributes(self, entries: list[dict[str, Any]] | None) -> list[AttributeRecord]:
        records: list[AttributeRecord] = []
        for entry in entries or []:
            records.append(AttributeRecord(
                marker_type=self.resolve_type_ref(str(entry.get("type", ""))),
                positional_arguments=tuple(
                    _parse_argument(a) for a in entry.get("args", []) or []
                ),
                named_arguments={
                    str(k): _parse_argument(v)
                    for k, v in (entry.get("named", {}) or {}).items()
                },
            ))
        return records


def _parse_argument(raw: Any) -> TypedArgument:
    """Parse ``{type, value}`` (recursively for arrays) or infer from a plain value."""
    if isinstance(raw, dict) and "type" in raw:
        type_name = str(raw["type"])
        value = raw.get("value")
        if type_name.endswith("[]") and isinstance(value, (list, tuple)):
            value = tuple(_parse_argument(v) for v in value)
        return TypedArgument(type_name, value)
    return typed_argument(raw)


def load_snapshot(path: Path, type_resolver: TypeResolver | None = None) -> MetadataSnapshot:
    """Load a snapshot from a ``.json``, ``.yaml`` or ``.yml`` file.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the document cannot be parsed or is not a mapping.
    """
    text = path.read_text()
    try:
        if path.suffix in (".yaml", ".yml"):
            document = yaml.safe_load(text)
        else:
            document = json.loads(text)
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise ValueError(f"Invalid snapshot {path}: {e}") from e
    if not isinstance(document, dict):
        raise ValueError(f"Invalid snapshot {path}: expected a mapping")
    return MetadataSnapshot(document, type_resolver=type_resolver)
