"""Report generation for resolution and discovery results.

Collects assembly settings, marker resolutions and discovered tests, and
writes them as a JSON or YAML report.
"""

from __future__ import annotations

import datetime
import enum
import json
from pathlib import Path
from typing import Any

import yaml

from testadapter.attributes.markers import Marker
from testadapter.discovery.discoverer import UnitTestElement
from testadapter.discovery.lifecycle import ClassLifecycle
from testadapter.execution.settings import TestAssemblySettings
from testadapter.metadata.model import class_full_name


def _plain(value: Any) -> Any:
    """Convert marker property values to JSON/YAML friendly data."""
    if isinstance(value, enum.Enum):
        return value.name
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    if isinstance(value, dict):
        return {str(k): _plain(v) for k, v in value.items()}
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    return repr(value)


def marker_to_dict(marker: Marker) -> dict[str, Any]:
    """Serialize a marker instance as its type name and properties."""
    return {
        "type": class_full_name(type(marker)),
        "properties": {k: _plain(v) for k, v in vars(marker).items()},
    }


class Reporter:
    """Collects resolution results and generates reports."""

    def __init__(self, assembly_name: str = "") -> None:
        self.assembly_name = assembly_name
        self.settings: TestAssemblySettings | None = None
        self.resolutions: list[dict[str, Any]] = []
        self.tests: list[UnitTestElement] = []
        self.lifecycles: list[ClassLifecycle] = []
        self.warnings: list[str] = []

    def set_settings(self, settings: TestAssemblySettings) -> None:
        self.settings = settings

    def add_resolution(
        self,
        element_name: str,
        markers: list[Marker],
        marker_type: str | None = None,
        inherit: bool = True,
    ) -> None:
        """Record the markers resolved for one element."""
        self.resolutions.append({
            "element": element_name,
            "marker_type": marker_type,
            "inherit": inherit,
            "markers": [marker_to_dict(m) for m in markers],
        })

    def add_tests(self, tests: list[UnitTestElement]) -> None:
        self.tests.extend(tests)

    def add_lifecycle(self, lifecycle: ClassLifecycle) -> None:
        self.lifecycles.append(lifecycle)

    def add_warnings(self, warnings: list[str]) -> None:
        self.warnings.extend(warnings)

    def generate_report(self) -> dict[str, Any]:
        """Generate the report dict."""
        report: dict[str, Any] = {
            "generated_at": datetime.datetime.now(datetime.timezone.utc).isoformat(),
            "assembly": self.assembly_name,
        }
        if self.settings is not None:
            report["settings"] = self.settings.to_dict()
        if self.resolutions:
            report["resolutions"] = list(self.resolutions)
        if self.tests:
            report["tests"] = [t.to_dict() for t in self.tests]
            report["summary"] = {
                "total": len(self.tests),
                "ignored": sum(1 for t in self.tests if t.ignored),
            }
        if self.lifecycles:
            report["lifecycles"] = [
                {
                    "class": lc.class_name,
                    "class_initialize": lc.class_initialize,
                    "class_cleanup": lc.class_cleanup,
                    "base_class_initialize": list(lc.base_class_initialize),
                    "base_class_cleanup": list(lc.base_class_cleanup),
                    "test_initialize": list(lc.test_initialize),
                    "test_cleanup": list(lc.test_cleanup),
                }
                for lc in self.lifecycles
            ]
        if self.warnings:
            report["warnings"] = list(self.warnings)
        return {"report": report}

    def write_json(self, path: Path) -> None:
        """Write the report as a JSON file."""
        report = self.generate_report()
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(report, f, indent=2)
            f.write("\n")

    def write_yaml(self, path: Path) -> None:
        """Write the report as a YAML file."""
        report = self.generate_report()
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            yaml.dump(
                report,
                f,
                default_flow_style=False,
                sort_keys=False,
                allow_unicode=True,
            )

    def write(self, path: Path) -> None:
        """Write the report, choosing YAML for .yaml/.yml paths and JSON otherwise."""
        if path.suffix in (".yaml", ".yml"):
            self.write_yaml(path)
        else:
            self.write_json(path)
