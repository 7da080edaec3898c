"""Marker types and the inheritance-aware attribute resolution engine."""

from testadapter.attributes.hierarchy import MAX_INHERITANCE_DEPTH, walk
from testadapter.attributes.materializer import AttributeMaterializer
from testadapter.attributes.registry import TypeRegistry, default_registry
from testadapter.attributes.resolver import AttributeResolver
from testadapter.attributes.usage import MAX_POLICY_DEPTH, UsagePolicyResolver

__all__ = [
    "MAX_INHERITANCE_DEPTH",
    "MAX_POLICY_DEPTH",
    "AttributeMaterializer",
    "AttributeResolver",
    "TypeRegistry",
    "UsagePolicyResolver",
    "default_registry",
    "walk",
]
