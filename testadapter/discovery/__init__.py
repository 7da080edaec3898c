"""Test discovery and class lifecycle lookup built on attribute resolution."""

from testadapter.discovery.discoverer import DiscoveryResult, UnitTestElement, discover_tests, discover_type
from testadapter.discovery.lifecycle import ClassLifecycle, class_lifecycle

__all__ = [
    "ClassLifecycle",
    "DiscoveryResult",
    "UnitTestElement",
    "class_lifecycle",
    "discover_tests",
    "discover_type",
]
