"""Class lifecycle methods of a test class.

Collects the initialize and cleanup methods that surround each test of
a class. Class-level methods declared on base classes take part only
when their marker asks for ``BEFORE_EACH_DERIVED_CLASS``.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from testadapter.attributes.hierarchy import walk
from testadapter.attributes.markers import (
    ClassCleanup,
    ClassInitialize,
    InheritanceBehavior,
    TestCleanup,
    TestInitialize,
)
from testadapter.attributes.resolver import AttributeResolver
from testadapter.metadata.model import TypeElement


@dataclass
class ClassLifecycle:
    """Lifecycle method names of one test class.

    ``base_class_initialize`` is ordered base-first and
    ``base_class_cleanup`` derived-first. ``test_initialize`` runs base
    declarations first, ``test_cleanup`` derived declarations first.
    """

    class_name: str
    class_initialize: str | None = None
    class_cleanup: str | None = None
    base_class_initialize: list[str] = field(default_factory=list)
    base_class_cleanup: list[str] = field(default_factory=list)
    test_initialize: list[str] = field(default_factory=list)
    test_cleanup: list[str] = field(default_factory=list)

    def call_sequence(self, test_method: str) -> list[str]:
        """Order in which lifecycle methods surround a single test."""
        sequence = list(self.base_class_initialize)
        if self.class_initialize:
            sequence.append(self.class_initialize)
        sequence.extend(self.test_initialize)
        sequence.append(test_method)
        sequence.extend(self.test_cleanup)
        if self.class_cleanup:
            sequence.append(self.class_cleanup)
        sequence.extend(self.base_class_cleanup)
        return sequence


def class_lifecycle(type_element: TypeElement, resolver: AttributeResolver) -> ClassLifecycle:
    """Collect the lifecycle methods of a test class and its bases.

    Raises:
        ElementUnavailable: If the class or a base class cannot be introspected.
    """
    lifecycle = ClassLifecycle(class_name=type_element.full_name)

    levels = list(walk(type_element, inherit=True, max_depth=resolver.max_inheritance_depth))
    for depth, level in enumerate(levels):
        # initializers run base first, in declaration order within a level
        level_base_initialize: list[str] = []
        level_test_initialize: list[str] = []
        for method in level.declared_methods():  # type: ignore[attr-defined]
            initialize = resolver.get_attribute(method, ClassInitialize, inherit=False)
            cleanup = resolver.get_attribute(method, ClassCleanup, inherit=False)
            if depth == 0:
                if isinstance(initialize, ClassInitialize):
                    lifecycle.class_initialize = method.full_name
                if isinstance(cleanup, ClassCleanup):
                    lifecycle.class_cleanup = method.full_name
            else:
                if _runs_for_derived(initialize):
                    level_base_initialize.append(method.full_name)
                if _runs_for_derived(cleanup):
                    lifecycle.base_class_cleanup.append(method.full_name)

            if resolver.is_defined(method, TestInitialize, inherit=False):
                level_test_initialize.append(method.full_name)
            if resolver.is_defined(method, TestCleanup, inherit=False):
                lifecycle.test_cleanup.append(method.full_name)

        lifecycle.base_class_initialize[:0] = level_base_initialize
        lifecycle.test_initialize[:0] = level_test_initialize

    return lifecycle


def _runs_for_derived(marker: object) -> bool:
    return (
        isinstance(marker, (ClassInitialize, ClassCleanup))
        and marker.inheritance_behavior is InheritanceBehavior.BEFORE_EACH_DERIVED_CLASS
    )
