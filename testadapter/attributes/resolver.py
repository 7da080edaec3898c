"""Attribute resolution engine.

Computes the markers that apply to an element, honoring inheritance:

1. Walk the element and its ancestors, most-derived first.
2. Keep the records whose marker type equals or derives from the
   requested kind, and materialize them (failed records are skipped).
3. Markers that do not allow multiple applications are de-duplicated by
   type, the most-derived declaration winning. Repeatable markers are
   kept in discovery order across all levels.
4. Return the repeatable markers followed by the unique ones.

The engine holds no mutable state; concurrent calls need no locking.
"""

from __future__ import annotations

from typing import Union

from testadapter.attributes.hierarchy import MAX_INHERITANCE_DEPTH, walk
from testadapter.attributes.markers import DoNotParallelize, Marker, Parallelize
from testadapter.attributes.materializer import AttributeMaterializer
from testadapter.attributes.usage import MAX_POLICY_DEPTH, UsagePolicyResolver
from testadapter.metadata.model import Element, TypeRef, class_full_name

# A marker kind: a marker class, a type reference, or a type name
MarkerKind = Union[type, TypeRef, str]


class AttributeResolver:
    """Resolves the markers applying to assemblies, types and methods."""

    def __init__(
        self,
        materializer: AttributeMaterializer | None = None,
        max_inheritance_depth: int = MAX_INHERITANCE_DEPTH,
        max_policy_depth: int = MAX_POLICY_DEPTH,
    ) -> None:
        self.materializer = materializer if materializer is not None else AttributeMaterializer()
        self.max_inheritance_depth = max_inheritance_depth
        self.usage = UsagePolicyResolver(self, max_policy_depth)

    def get_custom_attributes(
        self,
        element: Element | None,
        marker_type: MarkerKind | None = None,
        inherit: bool = True,
    ) -> list[Marker]:
        """Resolve the markers of ``marker_type`` (or all markers) on ``element``.

        Args:
            element: Assembly, type or method; None gives an empty result.
            marker_type: Kind to filter on, derived kinds included.
            inherit: Whether markers declared on ancestors apply.

        Returns:
            Repeatable markers in discovery order, then unique markers.

        Raises:
            ElementUnavailable: If an element on the chain cannot be introspected.
        """
        return self.resolve(element, marker_type, inherit, policy_depth=0)

    def resolve(
        self,
        element: Element | None,
        marker_type: MarkerKind | None,
        inherit: bool,
        policy_depth: int,
    ) -> list[Marker]:
        if element is None:
            return []
        target = _target_ref(marker_type)

        unique: dict[str, Marker] = {}
        repeatable: list[Marker] = []
        for level in walk(element, inherit, self.max_inheritance_depth):
            for record in level.raw_attributes():
                if target is not None and not record.marker_type.inherits_from(target):
                    continue
                instance = self.materializer.materialize(record)
                if instance is None:
                    continue
                if self.usage.allows_multiple(type(instance), policy_depth):
                    repeatable.append(instance)
                else:
                    unique.setdefault(class_full_name(type(instance)), instance)

        return repeatable + list(unique.values())

    def get_attribute(
        self,
        element: Element | None,
        marker_type: MarkerKind,
        inherit: bool = True,
    ) -> Marker | None:
        """First resolved marker of ``marker_type``, or None."""
        found = self.get_custom_attributes(element, marker_type, inherit)
        return found[0] if found else None

    def is_defined(
        self,
        element: Element | None,
        marker_type: MarkerKind,
        inherit: bool = True,
    ) -> bool:
        return bool(self.get_custom_attributes(element, marker_type, inherit))

    def get_parallelize_attribute(self, assembly: Element) -> Parallelize | None:
        marker = self.get_attribute(assembly, Parallelize, inherit=False)
        return marker if isinstance(marker, Parallelize) else None

    def is_do_not_parallelize_set(self, assembly: Element) -> bool:
        return self.is_defined(assembly, DoNotParallelize, inherit=False)


def _target_ref(marker_type: MarkerKind | None) -> TypeRef | None:
    if marker_type is None:
        return None
    if isinstance(marker_type, TypeRef):
        return marker_type
    if isinstance(marker_type, str):
        return TypeRef.parse(marker_type)
    return TypeRef.from_class(marker_type, runtime=False)
