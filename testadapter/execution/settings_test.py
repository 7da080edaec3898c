"""Unit tests for assembly settings extraction."""

from __future__ import annotations

import types

import pytest

from testadapter.attributes.markers import DoNotParallelize, ExecutionScope, Parallelize
from testadapter.errors import ElementUnavailable
from testadapter.execution.environment import FixedEnvironment, SystemEnvironment
from testadapter.execution.settings import (
    TestAssemblySettings,
    TestAssemblySettingsProvider,
    get_settings,
)
from testadapter.metadata.runtime import ASSEMBLY_MARKERS_ATTR, RuntimeAssembly, record
from testadapter.metadata.snapshot import MetadataSnapshot


def _assembly(*records) -> RuntimeAssembly:
    module = types.ModuleType("settings_assembly")
    setattr(module, ASSEMBLY_MARKERS_ATTR, list(records))
    return RuntimeAssembly(module)


class StubLoader:
    def __init__(self, assembly) -> None:
        self.assembly = assembly
        self.sources: list[str] = []

    def load_assembly(self, source: str):
        self.sources.append(source)
        return self.assembly


class TestGetSettings:
    """Tests for get_settings."""

    def test_no_markers_gives_defaults(self):
        settings = get_settings(_assembly(), FixedEnvironment(processor_count=8))
        assert settings == TestAssemblySettings()
        assert settings.workers == 0
        assert settings.scope is ExecutionScope.CLASS_LEVEL
        assert settings.can_parallelize_assembly

    def test_parallelize_values(self):
        assembly = _assembly(record(Parallelize, workers=4, scope=ExecutionScope.METHOD_LEVEL))
        settings = get_settings(assembly, FixedEnvironment(processor_count=8))
        assert settings.workers == 4
        assert settings.scope is ExecutionScope.METHOD_LEVEL
        assert settings.can_parallelize_assembly

    def test_zero_workers_uses_processor_count(self):
        assembly = _assembly(record(Parallelize, workers=0))
        settings = get_settings(assembly, FixedEnvironment(processor_count=8))
        assert settings.workers == 8

    def test_default_environment_is_host(self):
        settings = get_settings(_assembly(record(Parallelize)))
        assert settings.workers == SystemEnvironment().processor_count
        assert settings.workers >= 1

    def test_do_not_parallelize(self):
        assembly = _assembly(record(Parallelize, workers=2), record(DoNotParallelize))
        settings = get_settings(assembly, FixedEnvironment(processor_count=8))
        assert settings.workers == 2
        assert settings.can_parallelize_assembly is False

    def test_do_not_parallelize_alone(self):
        settings = get_settings(_assembly(record(DoNotParallelize)), FixedEnvironment(4))
        assert settings.workers == 0
        assert not settings.can_parallelize_assembly

    def test_inspection_only_assembly(self):
        snapshot = MetadataSnapshot({
            "assembly": {
                "name": "Sample.Tests",
                "attributes": [{
                    "type": "testadapter.attributes.markers.Parallelize",
                    "named": {
                        "workers": 0,
                        "scope": {
                            "type": "testadapter.attributes.markers.ExecutionScope",
                            "value": "METHOD_LEVEL",
                        },
                    },
                }],
            },
        })
        settings = get_settings(snapshot.assembly, FixedEnvironment(processor_count=6))
        assert settings.workers == 6
        assert settings.scope is ExecutionScope.METHOD_LEVEL

    def test_plain_named_values_take_declared_types(self):
        snapshot = MetadataSnapshot({
            "assembly": {
                "name": "Sample.Tests",
                "attributes": [{
                    "type": "testadapter.attributes.markers.Parallelize",
                    "named": {"workers": 2, "scope": "METHOD_LEVEL"},
                }],
            },
        })
        settings = get_settings(snapshot.assembly, FixedEnvironment(processor_count=6))
        assert settings.workers == 2
        assert settings.scope is ExecutionScope.METHOD_LEVEL
        assert settings.to_dict()["scope"] == "METHOD_LEVEL"

    def test_wrong_typed_named_value_skips_the_marker(self):
        snapshot = MetadataSnapshot({
            "assembly": {
                "name": "Sample.Tests",
                "attributes": [{
                    "type": "testadapter.attributes.markers.Parallelize",
                    "named": {"workers": "four"},
                }],
            },
        })
        settings = get_settings(snapshot.assembly, FixedEnvironment(processor_count=6))
        assert settings == TestAssemblySettings()

        runtime = get_settings(_assembly(record(Parallelize, workers="four")), FixedEnvironment(6))
        assert runtime == TestAssemblySettings()

    def test_unreadable_assembly_raises(self):
        snapshot = MetadataSnapshot({"assembly": {"name": "Broken", "readable": False}})
        with pytest.raises(ElementUnavailable):
            get_settings(snapshot.assembly, FixedEnvironment(processor_count=2))

    def test_to_dict(self):
        settings = TestAssemblySettings(workers=3, scope=ExecutionScope.METHOD_LEVEL)
        assert settings.to_dict() == {
            "workers": 3,
            "scope": "METHOD_LEVEL",
            "can_parallelize_assembly": True,
        }


class TestSettingsProvider:
    """Tests for TestAssemblySettingsProvider."""

    def test_loads_source_and_extracts_settings(self):
        loader = StubLoader(_assembly(record(Parallelize, workers=0)))
        provider = TestAssemblySettingsProvider(loader, FixedEnvironment(processor_count=12))
        settings = provider.get_settings("tests.sample")
        assert loader.sources == ["tests.sample"]
        assert settings.workers == 12
