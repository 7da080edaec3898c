"""Entry point for the test adapter.

Loads a test source (a metadata snapshot in inspection-only mode, or a
Python module at runtime), then prints and optionally reports its
assembly settings, the markers resolved for an element, the discovered
tests, and the lifecycle of each test class.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any

from testadapter.attributes.markers import TestClass
from testadapter.attributes.materializer import AttributeMaterializer
from testadapter.attributes.registry import TypeRegistry, default_registry
from testadapter.attributes.resolver import AttributeResolver
from testadapter.config import AdapterConfig
from testadapter.discovery.discoverer import discover_tests
from testadapter.discovery.lifecycle import class_lifecycle
from testadapter.errors import ElementUnavailable
from testadapter.execution.environment import Environment, FixedEnvironment, SystemEnvironment
from testadapter.execution.loader import FileAssemblyLoader
from testadapter.execution.settings import get_settings
from testadapter.metadata.model import AssemblyElement, Element
from testadapter.reporting.reporter import Reporter

# Separates the type and method parts of an --element name
MEMBER_SEPARATOR = "::"


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Test adapter - resolves test markers and assembly settings"
    )
    parser.add_argument(
        "--source",
        required=True,
        help="Metadata snapshot (.json/.yaml/.yml), Python file, or module name",
    )
    parser.add_argument(
        "--settings",
        action="store_true",
        default=False,
        help="Print the assembly's parallelization settings",
    )
    parser.add_argument(
        "--element",
        default=None,
        help=f"Type name, or Type{MEMBER_SEPARATOR}method, whose markers to resolve",
    )
    parser.add_argument(
        "--marker",
        default=None,
        help="Only resolve markers of this type (derived types included)",
    )
    parser.add_argument(
        "--no-inherit",
        action="store_true",
        default=False,
        help="Ignore markers declared on base types and overridden methods",
    )
    parser.add_argument(
        "--discover",
        action="store_true",
        default=False,
        help="List the discovered tests",
    )
    parser.add_argument(
        "--lifecycle",
        action="store_true",
        default=False,
        help="List the lifecycle methods of each test class",
    )
    parser.add_argument(
        "--marker-module",
        action="append",
        default=[],
        help="Module searched for custom marker types (repeatable)",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Path to write the report (.yaml/.yml for YAML, JSON otherwise)",
    )
    parser.add_argument(
        "--config-file",
        type=Path,
        default=None,
        help="Path to the .testadapter_config JSON file",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        default=False,
        help="Report skipped markers on stderr",
    )
    return parser.parse_args(argv)


def build_resolver(config: AdapterConfig, registry: TypeRegistry, verbose: bool = False) -> AttributeResolver:
    """Create a resolution engine honoring the configured bounds."""
    materializer = AttributeMaterializer(registry, verbose=verbose or config.verbose)
    return AttributeResolver(
        materializer,
        max_inheritance_depth=config.max_inheritance_depth,
        max_policy_depth=config.max_policy_depth,
    )


def find_element(assembly: AssemblyElement, name: str) -> Element | None:
    """Find a type (``Type``) or method (``Type::method``) of an assembly."""
    type_name, _, method_name = name.partition(MEMBER_SEPARATOR)
    for type_element in assembly.types():
        if type_element.full_name != type_name:
            continue
        if not method_name:
            return type_element
        for method in type_element.methods():
            if method.name == method_name:
                return method
        return None
    return None


def _environment(config: AdapterConfig) -> Environment:
    if config.processor_count is not None:
        return FixedEnvironment(processor_count=config.processor_count)
    return SystemEnvironment()


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    config = AdapterConfig(args.config_file)
    registry = default_registry()
    registry.search_modules.extend(config.marker_modules + args.marker_module)
    resolver = build_resolver(config, registry, args.verbose)

    try:
        assembly = FileAssemblyLoader(registry).load_assembly(args.source)
    except ElementUnavailable as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    show_all = not (args.settings or args.element or args.discover or args.lifecycle)
    reporter = Reporter(assembly.full_name)

    try:
        if args.settings or show_all:
            _print_settings(assembly, config, resolver, reporter)
        if args.element:
            if _print_resolution(assembly, args, resolver, reporter) != 0:
                return 1
        if args.discover or show_all:
            _print_discovery(assembly, resolver, reporter)
        if args.lifecycle:
            _print_lifecycles(assembly, resolver, reporter)
    except ElementUnavailable as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.output:
        reporter.write(args.output)
        print(f"Report written to {args.output}")

    return 0


def _print_settings(
    assembly: AssemblyElement,
    config: AdapterConfig,
    resolver: AttributeResolver,
    reporter: Reporter,
) -> None:
    settings = get_settings(assembly, _environment(config), resolver)
    reporter.set_settings(settings)
    print(f"Assembly: {assembly.full_name}")
    print(f"  workers: {settings.workers}")
    print(f"  scope: {settings.scope.name}")
    print(f"  can_parallelize_assembly: {settings.can_parallelize_assembly}")
    print()


def _print_resolution(
    assembly: AssemblyElement,
    args: argparse.Namespace,
    resolver: AttributeResolver,
    reporter: Reporter,
) -> int:
    element = find_element(assembly, args.element)
    if element is None:
        print(f"Error: element not found: {args.element}", file=sys.stderr)
        return 1
    inherit = not args.no_inherit
    markers = resolver.get_custom_attributes(element, args.marker, inherit=inherit)
    reporter.add_resolution(element.full_name, markers, args.marker, inherit)

    scope = "declared and inherited" if inherit else "declared"
    print(f"Markers on {element.full_name} ({scope}): {len(markers)}")
    for marker in markers:
        print(f"  {marker!r}")
    print()
    return 0


def _print_discovery(
    assembly: AssemblyElement,
    resolver: AttributeResolver,
    reporter: Reporter,
) -> None:
    result = discover_tests(assembly, resolver)
    reporter.add_tests(result.tests)
    reporter.add_warnings(result.warnings)

    print(f"Discovered {len(result.tests)} tests:")
    for test in result.tests:
        details: list[Any] = []
        if test.categories:
            details.append(",".join(test.categories))
        if test.ignored:
            details.append("ignored")
        suffix = f" [{'; '.join(details)}]" if details else ""
        print(f"  {test.name}{suffix}")
    print()


def _print_lifecycles(
    assembly: AssemblyElement,
    resolver: AttributeResolver,
    reporter: Reporter,
) -> None:
    for type_element in assembly.types():
        if not resolver.is_defined(type_element, TestClass, inherit=False):
            continue
        lifecycle = class_lifecycle(type_element, resolver)
        reporter.add_lifecycle(lifecycle)
        print(f"Lifecycle of {lifecycle.class_name}:")
        for label, names in (
            ("base class initialize", lifecycle.base_class_initialize),
            ("class initialize", [lifecycle.class_initialize] if lifecycle.class_initialize else []),
            ("test initialize", lifecycle.test_initialize),
            ("test cleanup", lifecycle.test_cleanup),
            ("class cleanup", [lifecycle.class_cleanup] if lifecycle.class_cleanup else []),
            ("base class cleanup", lifecycle.base_class_cleanup),
        ):
            if names:
                print(f"  {label}: {', '.join(names)}")
        print()


if __name__ == "__main__":
    sys.exit(main())
