"""Cardinality policy of marker types.

A marker type declares whether it may be applied more than once by
carrying the ``AttributeUsage`` meta-marker. The lookup goes through the
resolution engine like any other query; since ``AttributeUsage`` is itself
described by ``AttributeUsage``, the recursion is cut off at a fixed depth.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from testadapter.attributes.markers import AttributeUsage
from testadapter.errors import ElementUnavailable, MarkerConstructionFailed, PolicyUnresolved
from testadapter.metadata.model import class_full_name
from testadapter.metadata.runtime import RuntimeType

if TYPE_CHECKING:
    from testadapter.attributes.resolver import AttributeResolver

# Maximum nesting of policy lookups (a policy lookup resolves markers,
# whose policies are looked up in turn)
MAX_POLICY_DEPTH = 3


class UsagePolicyResolver:
    """Answers whether a marker type allows multiple applications."""

    def __init__(self, resolver: AttributeResolver, max_depth: int = MAX_POLICY_DEPTH) -> None:
        self._resolver = resolver
        self.max_depth = max_depth

    def allows_multiple(self, marker_class: type, depth: int = 0) -> bool:
        """True unless the marker type declares ``allow_multiple=False``.

        An undeclared or unresolvable policy allows multiple applications.
        """
        try:
            usage = self.usage_of(marker_class, depth)
        except (PolicyUnresolved, ElementUnavailable, MarkerConstructionFailed):
            return True
        if usage is None:
            return True
        return bool(usage.allow_multiple)

    def usage_of(self, marker_class: type, depth: int = 0) -> AttributeUsage | None:
        """The ``AttributeUsage`` declared on (or inherited by) a marker type.

        Raises:
            PolicyUnresolved: If the lookup nests deeper than ``max_depth``.
        """
        if depth >= self.max_depth:
            raise PolicyUnresolved(
                f"Usage policy lookup for {class_full_name(marker_class)} "
                f"exceeded depth {self.max_depth}"
            )
        found = self._resolver.resolve(
            RuntimeType(marker_class), AttributeUsage, inherit=True, policy_depth=depth + 1
        )
        for marker in found:
            if isinstance(marker, AttributeUsage):
                return marker
        return None
