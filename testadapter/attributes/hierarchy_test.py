"""Unit tests for the hierarchy walker."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from testadapter.attributes.hierarchy import MAX_INHERITANCE_DEPTH, walk
from testadapter.metadata.model import ElementKind
from testadapter.metadata.runtime import RuntimeMethod, RuntimeType
from testadapter.metadata.snapshot import MetadataSnapshot


class Base:
    def run(self):
        pass


class Mid(Base):
    def run(self):
        pass


class Derived(Mid):
    def run(self):
        pass


@dataclass
class FakeType:
    """Type element whose base is supplied by the test."""

    name: str
    base: Optional["FakeType"] = None
    is_universal_root: bool = False

    kind = ElementKind.TYPE

    @property
    def full_name(self) -> str:
        return self.name

    @property
    def identity(self) -> str:
        return self.name

    def base_element(self):
        return self.base

    def raw_attributes(self):
        return []


def _chain(length: int) -> FakeType:
    current = FakeType("T0")
    for i in range(1, length):
        current = FakeType(f"T{i}", base=current)
    return current


class TestWalkTypes:
    """Tests for walking type hierarchies."""

    def test_most_derived_first_and_stops_at_root(self):
        levels = [e.full_name for e in walk(RuntimeType(Derived))]
        assert levels == [
            RuntimeType(Derived).full_name,
            RuntimeType(Mid).full_name,
            RuntimeType(Base).full_name,
        ]

    def test_no_inherit_yields_element_only(self):
        assert list(walk(RuntimeType(Derived), inherit=False)) == [RuntimeType(Derived)]

    def test_depth_is_bounded(self):
        levels = list(walk(_chain(15)))
        assert len(levels) == MAX_INHERITANCE_DEPTH
        assert levels[0].name == "T14"

    def test_custom_depth(self):
        assert len(list(walk(_chain(5), max_depth=2))) == 2

    def test_cycle_is_cut(self):
        a = FakeType("A")
        b = FakeType("B", base=a)
        a.base = b
        assert [e.name for e in walk(b)] == ["B", "A"]

    def test_universal_root_itself_is_yielded(self):
        assert list(walk(RuntimeType(object))) == [RuntimeType(object)]


class TestWalkMethods:
    """Tests for walking override chains."""

    def test_override_chain_of_three(self):
        levels = list(walk(RuntimeMethod(Derived, "run")))
        assert levels == [
            RuntimeMethod(Derived, "run"),
            RuntimeMethod(Mid, "run"),
            RuntimeMethod(Base, "run"),
        ]

    def test_no_inherit_yields_method_only(self):
        assert list(walk(RuntimeMethod(Derived, "run"), inherit=False)) == [
            RuntimeMethod(Derived, "run")
        ]

    def test_self_referencing_base_stops_after_first_level(self):
        snapshot = MetadataSnapshot({
            "assembly": {"name": "A"},
            "types": [{
                "name": "A.T",
                "methods": [{"name": "Loop", "overrides": "A.T"}],
            }],
        })
        method = snapshot.find_method("A.T", "Loop")
        assert list(walk(method)) == [method]


class TestWalkAssemblies:
    """Tests for walking assemblies."""

    def test_assembly_has_no_ancestors(self):
        snapshot = MetadataSnapshot({"assembly": {"name": "A"}})
        assert list(walk(snapshot.assembly)) == [snapshot.assembly]
