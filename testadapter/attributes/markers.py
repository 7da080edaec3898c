"""Framework marker types.

Each marker declares its own usage policy with the ``AttributeUsage``
meta-marker. Markers without a declared policy may be applied more than
once.
"""

from __future__ import annotations

import enum
from typing import Any, Callable

from testadapter.metadata.runtime import apply


class AttributeTargets(enum.Enum):
    ALL = "all"
    ASSEMBLY = "assembly"
    CLASS = "class"
    METHOD = "method"


class ExecutionScope(enum.Enum):
    """Granularity of parallel test execution."""

    CLASS_LEVEL = 0
    METHOD_LEVEL = 1


class InheritanceBehavior(enum.Enum):
    """Whether a class-level lifecycle method also runs for derived classes."""

    NONE = 0
    BEFORE_EACH_DERIVED_CLASS = 1


class TimeoutPreset(enum.Enum):
    INFINITE = -1


def constructor(func: Callable[..., Any]) -> classmethod:
    """Register a classmethod as an alternative marker constructor."""
    func.__marker_constructor__ = True  # type: ignore[attr-defined]
    return classmethod(func)


class Marker:
    """Base class for all markers."""

    def __init__(self) -> None:
        pass

    def __eq__(self, other: object) -> bool:
        return type(other) is type(self) and vars(other) == vars(self)

    def __repr__(self) -> str:
        fields = ", ".join(f"{k}={v!r}" for k, v in vars(self).items())
        return f"{type(self).__name__}({fields})"


class AttributeUsage(Marker):
    """Meta-marker describing how another marker type may be applied."""

    allow_multiple: bool = False
    inherited: bool = True

    def __init__(self, valid_on: AttributeTargets = AttributeTargets.ALL) -> None:
        super().__init__()
        self.valid_on = valid_on


apply(AttributeUsage, AttributeTargets.CLASS, allow_multiple=False)(AttributeUsage)


def attribute_usage(
    valid_on: AttributeTargets = AttributeTargets.ALL,
    allow_multiple: bool = False,
    inherited: bool = True,
) -> Callable[[type], type]:
    return apply(AttributeUsage, valid_on, allow_multiple=allow_multiple, inherited=inherited)


# --- Test structure ---

@attribute_usage(AttributeTargets.CLASS, inherited=False)
class TestClass(Marker):
    __test__ = False


@attribute_usage(AttributeTargets.METHOD)
class TestMethod(Marker):
    __test__ = False

    def __init__(self, display_name: str | None = None) -> None:
        super().__init__()
        self.display_name = display_name


@attribute_usage(AttributeTargets.METHOD)
class TestInitialize(Marker):
    __test__ = False


@attribute_usage(AttributeTargets.METHOD)
class TestCleanup(Marker):
    __test__ = False


@attribute_usage(AttributeTargets.METHOD)
class ClassInitialize(Marker):
    def __init__(self, inheritance_behavior: InheritanceBehavior = InheritanceBehavior.NONE) -> None:
        super().__init__()
        self.inheritance_behavior = inheritance_behavior


@attribute_usage(AttributeTargets.METHOD)
class ClassCleanup(Marker):
    def __init__(self, inheritance_behavior: InheritanceBehavior = InheritanceBehavior.NONE) -> None:
        super().__init__()
        self.inheritance_behavior = inheritance_behavior


# --- Test properties ---

@attribute_usage(AttributeTargets.ALL, allow_multiple=True)
class TestCategoryBase(Marker):
    """Base for markers contributing test categories."""

    __test__ = False

    @property
    def test_categories(self) -> list[str]:
        return []


class TestCategory(TestCategoryBase):
    __test__ = False

    def __init__(self, category: str) -> None:
        super().__init__()
        self.category = category

    @property
    def test_categories(self) -> list[str]:
        return [self.category]


@attribute_usage(AttributeTargets.METHOD)
class Owner(Marker):
    def __init__(self, owner: str) -> None:
        super().__init__()
        self.owner = owner


@attribute_usage(AttributeTargets.METHOD)
class Priority(Marker):
    def __init__(self, priority: int) -> None:
        super().__init__()
        self.priority = priority


@attribute_usage(AttributeTargets.METHOD)
class Description(Marker):
    def __init__(self, description: str) -> None:
        super().__init__()
        self.description = description


@attribute_usage(AttributeTargets.ALL)
class Ignore(Marker):
    def __init__(self, message: str = "") -> None:
        super().__init__()
        self.message = message


@attribute_usage(AttributeTargets.METHOD)
class Timeout(Marker):
    """Test timeout in milliseconds; -1 means no timeout."""

    def __init__(self, timeout: int) -> None:
        super().__init__()
        if timeout <= 0 and timeout != TimeoutPreset.INFINITE.value:
            raise ValueError(f"Timeout must be positive or infinite, got {timeout}")
        self.timeout = timeout

    @constructor
    def from_preset(cls, preset: TimeoutPreset) -> Timeout:
        return cls(preset.value)


@attribute_usage(AttributeTargets.METHOD, allow_multiple=True)
class DataRow(Marker):
    display_name: str | None = None

    def __init__(self, data: tuple[Any, ...]) -> None:
        super().__init__()
        self.data = tuple(data)


@attribute_usage(AttributeTargets.ALL, allow_multiple=True)
class DeploymentItem(Marker):
    """A file or directory to deploy alongside the tests."""

    def __init__(self, path: str, output_directory: str = "") -> None:
        super().__init__()
        self.path = path
        self.output_directory = output_directory


# --- Assembly settings ---

@attribute_usage(AttributeTargets.ASSEMBLY)
class Parallelize(Marker):
    """Enables parallel execution; ``workers == 0`` means one per processor."""

    workers: int = 0
    scope: ExecutionScope = ExecutionScope.CLASS_LEVEL


@attribute_usage(AttributeTargets.ALL)
class DoNotParallelize(Marker):
    pass
