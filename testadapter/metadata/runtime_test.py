"""Unit tests for runtime-backed metadata elements."""

from __future__ import annotations

import types

from testadapter.attributes.markers import Owner, TestCategory, TestClass, TestMethod
from testadapter.metadata.model import ElementKind, TypedArgument, class_full_name, override_key
from testadapter.metadata.runtime import (
    ASSEMBLY_MARKERS_ATTR,
    RuntimeAssembly,
    RuntimeMethod,
    RuntimeType,
    apply,
    declared_records,
    record,
)


@apply(TestClass)
class BaseSuite:
    @apply(TestMethod)
    def run(self):
        pass

    def helper(self):
        pass


class DerivedSuite(BaseSuite):
    @apply(Owner, "alice")
    def run(self):
        pass

    @staticmethod
    @apply(TestMethod)
    def static_run():
        pass

    @classmethod
    def make(cls):
        return cls()


class TestApply:
    """Tests for the apply decorator and record()."""

    def test_record_infers_arguments(self):
        rec = record(TestCategory, "fast")
        assert rec.marker_type.runtime_type is TestCategory
        assert rec.positional_arguments == (TypedArgument("str", "fast"),)

    def test_record_named_arguments(self):
        rec = record(TestMethod, display_name="Run it")
        assert rec.named_arguments == {"display_name": TypedArgument("str", "Run it")}

    def test_stacked_decorators_keep_source_order(self):
        @apply(TestCategory, "first")
        @apply(TestCategory, "second")
        def func():
            pass

        records = declared_records(func)
        assert [r.positional_arguments[0].value for r in records] == ["first", "second"]

    def test_class_records_are_not_inherited(self):
        assert len(declared_records(BaseSuite)) == 1
        assert declared_records(DerivedSuite) == ()

    def test_static_method_records(self):
        member = vars(DerivedSuite)["static_run"]
        assert len(declared_records(member)) == 1


class TestRuntimeType:
    """Tests for RuntimeType."""

    def test_identity_and_kind(self):
        element = RuntimeType(DerivedSuite)
        assert element.kind is ElementKind.TYPE
        assert element.full_name == class_full_name(DerivedSuite)
        assert element.identity == element.full_name

    def test_base_element_chain_ends_at_object(self):
        base = RuntimeType(DerivedSuite).base_element()
        assert base == RuntimeType(BaseSuite)
        root = base.base_element()
        assert root == RuntimeType(object)
        assert root.is_universal_root
        assert root.base_element() is None

    def test_declared_methods(self):
        names = [m.name for m in RuntimeType(DerivedSuite).declared_methods()]
        assert names == ["run", "static_run", "make"]

    def test_methods_prefer_most_derived_declaration(self):
        methods = {m.name: m for m in RuntimeType(DerivedSuite).methods()}
        assert set(methods) == {"run", "static_run", "make", "helper"}
        assert methods["run"].declaring_class is DerivedSuite
        assert methods["helper"].declaring_class is BaseSuite


class TestRuntimeMethod:
    """Tests for RuntimeMethod."""

    def test_base_element_is_overridden_declaration(self):
        derived = RuntimeMethod(DerivedSuite, "run")
        base = derived.base_element()
        assert base == RuntimeMethod(BaseSuite, "run")
        assert base.base_element() is None

    def test_override_key(self):
        method = RuntimeMethod(DerivedSuite, "run")
        assert override_key(method) == class_full_name(DerivedSuite) + "run"

    def test_raw_attributes_are_declared_only(self):
        derived = RuntimeMethod(DerivedSuite, "run")
        assert [r.marker_type.runtime_type for r in derived.raw_attributes()] == [Owner]

    def test_is_static(self):
        assert RuntimeMethod(DerivedSuite, "static_run").is_static
        assert RuntimeMethod(DerivedSuite, "make").is_static
        assert not RuntimeMethod(DerivedSuite, "run").is_static


class TestRuntimeAssembly:
    """Tests for RuntimeAssembly."""

    def test_assembly_records_and_types(self):
        module = types.ModuleType("sample_assembly")
        setattr(module, ASSEMBLY_MARKERS_ATTR, [record(Owner, "team")])
        local = type("LocalSuite", (), {"__module__": "sample_assembly"})
        foreign = type("ForeignSuite", (), {"__module__": "elsewhere"})
        module.LocalSuite = local
        module.ForeignSuite = foreign

        assembly = RuntimeAssembly(module)
        assert assembly.kind is ElementKind.ASSEMBLY
        assert assembly.full_name == "sample_assembly"
        assert assembly.base_element() is None
        assert len(assembly.raw_attributes()) == 1
        assert assembly.types() == [RuntimeType(local)]

    def test_module_without_markers(self):
        assembly = RuntimeAssembly(types.ModuleType("empty_assembly"))
        assert assembly.raw_attributes() == ()
        assert assembly.types() == []
