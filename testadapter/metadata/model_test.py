"""Unit tests for the metadata model module."""

from __future__ import annotations

import enum

from testadapter.metadata.model import (
    AttributeRecord,
    TypedArgument,
    TypeRef,
    class_full_name,
    typed_argument,
)


class Color(enum.Enum):
    RED = 1


class BaseThing:
    pass


class DerivedThing(BaseThing):
    pass


class TestTypeRef:
    """Tests for TypeRef naming and ancestry."""

    def test_parse_name_only(self):
        ref = TypeRef.parse("Sample.Markers.Category")
        assert ref.full_name == "Sample.Markers.Category"
        assert ref.assembly_name == ""
        assert ref.assembly_qualified_name == "Sample.Markers.Category"

    def test_parse_assembly_qualified(self):
        ref = TypeRef.parse("Sample.Markers.Category, Sample.Markers")
        assert ref.full_name == "Sample.Markers.Category"
        assert ref.assembly_name == "Sample.Markers"
        assert ref.assembly_qualified_name == "Sample.Markers.Category, Sample.Markers"

    def test_same_type_ignores_missing_assembly(self):
        """Assembly names only matter when both references carry one."""
        qualified = TypeRef("A.B", "Asm")
        assert qualified.same_type(TypeRef("A.B"))
        assert TypeRef("A.B").same_type(qualified)
        assert not qualified.same_type(TypeRef("A.B", "Other"))
        assert not qualified.same_type(TypeRef("A.C", "Asm"))

    def test_inherits_from_walks_base_chain(self):
        base = TypeRef("A.Base")
        mid = TypeRef("A.Mid", base=base)
        derived = TypeRef("A.Derived", base=mid)
        assert derived.inherits_from(derived)
        assert derived.inherits_from(mid)
        assert derived.inherits_from(base)
        assert not base.inherits_from(derived)

    def test_from_class_builds_base_chain(self):
        ref = TypeRef.from_class(DerivedThing)
        assert ref.full_name == class_full_name(DerivedThing)
        assert ref.runtime_type is DerivedThing
        assert ref.base is not None
        assert ref.base.full_name == class_full_name(BaseThing)
        # object is not part of the chain
        assert ref.base.base is None

    def test_from_class_without_runtime_type(self):
        ref = TypeRef.from_class(DerivedThing, runtime=False)
        assert ref.runtime_type is None
        assert ref.base is not None and ref.base.runtime_type is None

    def test_runtime_type_not_compared(self):
        assert TypeRef.from_class(BaseThing) == TypeRef.from_class(BaseThing, runtime=False)

    def test_universal_root(self):
        assert TypeRef("builtins.object").is_universal_root
        assert TypeRef("object").is_universal_root
        assert not TypeRef("A.Base").is_universal_root


class TestTypedArgument:
    """Tests for inferring argument types from values."""

    def test_scalars(self):
        assert typed_argument(3) == TypedArgument("int", 3)
        assert typed_argument(2.5) == TypedArgument("float", 2.5)
        assert typed_argument("x") == TypedArgument("str", "x")

    def test_bool_is_not_int(self):
        assert typed_argument(True).type_name == "bool"

    def test_enum_uses_class_name(self):
        arg = typed_argument(Color.RED)
        assert arg.type_name == class_full_name(Color)
        assert arg.value is Color.RED

    def test_homogeneous_array(self):
        arg = typed_argument((1, 2))
        assert arg.is_array
        assert arg.type_name == "int[]"
        assert arg.value == (TypedArgument("int", 1), TypedArgument("int", 2))

    def test_mixed_array_is_object_array(self):
        assert typed_argument([1, "a"]).type_name == "object[]"

    def test_empty_array(self):
        assert typed_argument(()).type_name == "object[]"

    def test_type_and_other_values(self):
        assert typed_argument(int).type_name == "type"
        assert typed_argument(object()).type_name == "object"

    def test_none_is_none_typed(self):
        assert typed_argument(None) == TypedArgument("NoneType", None)
        assert typed_argument([None]).type_name == "NoneType[]"

    def test_typed_argument_passes_through(self):
        arg = TypedArgument("int", 1)
        assert typed_argument(arg) is arg


class TestAttributeRecord:
    """Tests for AttributeRecord defaults."""

    def test_defaults(self):
        rec = AttributeRecord(TypeRef("A.Marker"))
        assert rec.positional_arguments == ()
        assert dict(rec.named_arguments) == {}
