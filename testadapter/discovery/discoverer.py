"""Test discovery over an assembly's types and methods.

A type is a test class when it carries ``TestClass`` itself (the marker
is not inherited). Its test methods are the methods carrying
``TestMethod``, declared on the class or inherited through overrides.
Test properties are collected from the method and its class.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from typing import Any

from testadapter.attributes.markers import (
    DataRow,
    DeploymentItem,
    Description,
    Ignore,
    Owner,
    Priority,
    TestCategoryBase,
    TestClass,
    TestMethod,
    Timeout,
)
from testadapter.attributes.resolver import AttributeResolver
from testadapter.errors import ElementUnavailable, try_get_message
from testadapter.metadata.model import AssemblyElement, MethodElement, TypeElement


@dataclass
class UnitTestElement:
    """A discovered test method and the properties its markers declare."""

    __test__ = False

    class_name: str
    method_name: str
    display_name: str
    categories: list[str] = field(default_factory=list)
    owner: str | None = None
    priority: int | None = None
    description: str | None = None
    ignored: bool = False
    ignore_message: str = ""
    timeout: int | None = None
    deployment_items: list[tuple[str, str]] = field(default_factory=list)
    data_rows: list[tuple[Any, ...]] = field(default_factory=list)

    @property
    def name(self) -> str:
        return f"{self.class_name}.{self.method_name}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "display_name": self.display_name,
            "categories": list(self.categories),
            "owner": self.owner,
            "priority": self.priority,
            "description": self.description,
            "ignored": self.ignored,
            "ignore_message": self.ignore_message,
            "timeout": self.timeout,
            "deployment_items": [
                {"path": path, "output_directory": out} for path, out in self.deployment_items
            ],
            "data_rows": [list(row) for row in self.data_rows],
        }


@dataclass
class DiscoveryResult:
    tests: list[UnitTestElement] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def discover_tests(
    assembly: AssemblyElement,
    resolver: AttributeResolver | None = None,
) -> DiscoveryResult:
    """Discover the tests of an assembly.

    A type that cannot be introspected is reported as a warning and
    skipped; the other types are still discovered.

    Raises:
        ElementUnavailable: If the assembly itself cannot be introspected.
    """
    resolver = resolver if resolver is not None else AttributeResolver()
    result = DiscoveryResult()
    for type_element in assembly.types():
        try:
            result.tests.extend(discover_type(type_element, resolver))
        except ElementUnavailable as e:
            message = f"discovery: skipping {type_element.full_name}: {try_get_message(e)}"
            print(message, file=sys.stderr)
            result.warnings.append(message)
    return result


def discover_type(
    type_element: TypeElement,
    resolver: AttributeResolver,
) -> list[UnitTestElement]:
    """Discover the test methods of one type (none if it is not a test class)."""
    if not resolver.is_defined(type_element, TestClass, inherit=False):
        return []

    class_categories = _categories(resolver, type_element)
    class_ignore = resolver.get_attribute(type_element, Ignore)
    class_items = _deployment_items(resolver, type_element)

    tests: list[UnitTestElement] = []
    for method in type_element.methods():
        if method.is_static:
            continue
        test_method = resolver.get_attribute(method, TestMethod)
        if not isinstance(test_method, TestMethod):
            continue
        tests.append(_build_test(
            type_element, method, test_method, resolver,
            class_categories, class_ignore, class_items,
        ))
    return tests


def _build_test(
    type_element: TypeElement,
    method: MethodElement,
    test_method: TestMethod,
    resolver: AttributeResolver,
    class_categories: list[str],
    class_ignore: Any,
    class_items: list[tuple[str, str]],
) -> UnitTestElement:
    test = UnitTestElement(
        class_name=type_element.full_name,
        method_name=method.name,
        display_name=test_method.display_name or method.name,
    )

    for category in _categories(resolver, method) + class_categories:
        if category not in test.categories:
            test.categories.append(category)

    owner = resolver.get_attribute(method, Owner)
    if isinstance(owner, Owner):
        test.owner = owner.owner
    priority = resolver.get_attribute(method, Priority)
    if isinstance(priority, Priority):
        test.priority = priority.priority
    description = resolver.get_attribute(method, Description)
    if isinstance(description, Description):
        test.description = description.description
    timeout = resolver.get_attribute(method, Timeout)
    if isinstance(timeout, Timeout):
        test.timeout = timeout.timeout

    ignore = resolver.get_attribute(method, Ignore) or class_ignore
    if isinstance(ignore, Ignore):
        test.ignored = True
        test.ignore_message = ignore.message

    for item in _deployment_items(resolver, method) + class_items:
        if item not in test.deployment_items:
            test.deployment_items.append(item)

    for row in resolver.get_custom_attributes(method, DataRow):
        if isinstance(row, DataRow):
            test.data_rows.append(row.data)

    return test


def _categories(resolver: AttributeResolver, element: Any) -> list[str]:
    categories: list[str] = []
    for marker in resolver.get_custom_attributes(element, TestCategoryBase):
        if isinstance(marker, TestCategoryBase):
            categories.extend(marker.test_categories)
    return categories


def _deployment_items(resolver: AttributeResolver, element: Any) -> list[tuple[str, str]]:
    return [
        (marker.path, marker.output_directory)
        for marker in resolver.get_custom_attributes(element, DeploymentItem)
        if isinstance(marker, DeploymentItem)
    ]
