"""Assembly-level run settings derived from assembly markers.

``Parallelize`` sets the worker count and scope; ``DoNotParallelize``
turns parallel execution off for the whole assembly.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

from testadapter.attributes.markers import ExecutionScope
from testadapter.attributes.resolver import AttributeResolver
from testadapter.execution.environment import Environment, SystemEnvironment
from testadapter.metadata.model import Element


@dataclass
class TestAssemblySettings:
    """Parallelization settings of one test assembly."""

    __test__ = False

    workers: int = 0
    scope: ExecutionScope = ExecutionScope.CLASS_LEVEL
    can_parallelize_assembly: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "workers": self.workers,
            "scope": self.scope.name,
            "can_parallelize_assembly": self.can_parallelize_assembly,
        }


def get_settings(
    assembly: Element,
    environment: Environment | None = None,
    resolver: AttributeResolver | None = None,
) -> TestAssemblySettings:
    """Extract the settings of an assembly.

    Args:
        assembly: The assembly element.
        environment: Source of the processor count used when the
            ``Parallelize`` marker asks for zero workers.
        resolver: Resolution engine (a default one if omitted).

    Raises:
        ElementUnavailable: If the assembly cannot be introspected.
    """
    environment = environment if environment is not None else SystemEnvironment()
    resolver = resolver if resolver is not None else AttributeResolver()
    settings = TestAssemblySettings()

    parallelize = resolver.get_parallelize_attribute(assembly)
    if parallelize is not None:
        settings.workers = parallelize.workers
        settings.scope = parallelize.scope
        if settings.workers == 0:
            settings.workers = environment.processor_count

    settings.can_parallelize_assembly = not resolver.is_do_not_parallelize_set(assembly)
    return settings


class AssemblyLoader(Protocol):
    """Locates and loads the assembly for a test source."""

    def load_assembly(self, source: str) -> Element: ...


class TestAssemblySettingsProvider:
    """Loads a test source and extracts its assembly settings."""

    __test__ = False

    def __init__(
        self,
        loader: AssemblyLoader,
        environment: Environment | None = None,
        resolver: AttributeResolver | None = None,
    ) -> None:
        self.loader = loader
        self.environment = environment
        self.resolver = resolver

    def get_settings(self, source: str) -> TestAssemblySettings:
        assembly = self.loader.load_assembly(source)
        return get_settings(assembly, self.environment, self.resolver)
