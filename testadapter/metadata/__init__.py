"""Metadata model: elements, raw attribute records, and their two providers."""

from testadapter.metadata.model import (
    AttributeRecord,
    Element,
    ElementKind,
    TypedArgument,
    TypeRef,
    override_key,
    typed_argument,
)
from testadapter.metadata.runtime import RuntimeAssembly, RuntimeMethod, RuntimeType, apply, record
from testadapter.metadata.snapshot import MetadataSnapshot, load_snapshot

__all__ = [
    "AttributeRecord",
    "Element",
    "ElementKind",
    "MetadataSnapshot",
    "RuntimeAssembly",
    "RuntimeMethod",
    "RuntimeType",
    "TypeRef",
    "TypedArgument",
    "apply",
    "load_snapshot",
    "override_key",
    "record",
    "typed_argument",
]
