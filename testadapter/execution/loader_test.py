"""Unit tests for the assembly loader."""

from __future__ import annotations

import tempfile
from pathlib import Path

import pytest
import yaml

from testadapter.attributes.markers import TestCategory, TestCategoryBase
from testadapter.attributes.resolver import AttributeResolver
from testadapter.errors import ElementUnavailable
from testadapter.execution.environment import FixedEnvironment, SystemEnvironment
from testadapter.execution.loader import FileAssemblyLoader
from testadapter.metadata.runtime import RuntimeAssembly
from testadapter.metadata.snapshot import SnapshotAssembly

MODULE_SOURCE = '''
from testadapter.attributes.markers import Parallelize, TestClass, TestMethod
from testadapter.metadata.runtime import apply, record

__assembly_markers__ = [record(Parallelize, workers=2)]


@apply(TestClass)
class LoadedTests:
    @apply(TestMethod)
    def check(self):
        pass
'''


class TestFileAssemblyLoader:
    """Tests for FileAssemblyLoader."""

    def test_load_yaml_snapshot(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "snapshot.yaml"
            path.write_text(yaml.safe_dump({
                "assembly": {"name": "Sample.Tests"},
                "types": [{
                    "name": "Sample.Tests.Cart",
                    "attributes": [{
                        "type": "testadapter.attributes.markers.TestCategory",
                        "args": ["fast"],
                    }],
                }],
            }))
            assembly = FileAssemblyLoader().load_assembly(str(path))
            assert isinstance(assembly, SnapshotAssembly)
            assert assembly.full_name == "Sample.Tests"

            # Marker types resolve through the registry, base types included
            cart = assembly.types()[0]
            found = AttributeResolver().get_custom_attributes(cart, TestCategoryBase)
            assert found == [TestCategory("fast")]

    def test_missing_snapshot_is_unavailable(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            with pytest.raises(ElementUnavailable):
                FileAssemblyLoader().load_assembly(str(Path(tmpdir) / "missing.json"))

    def test_invalid_snapshot_is_unavailable(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "broken.json"
            path.write_text("{ invalid json }")
            with pytest.raises(ElementUnavailable, match="Invalid snapshot"):
                FileAssemblyLoader().load_assembly(str(path))

    def test_load_python_file(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "loaded_sample_tests.py"
            path.write_text(MODULE_SOURCE)
            assembly = FileAssemblyLoader().load_assembly(str(path))
            assert isinstance(assembly, RuntimeAssembly)
            assert assembly.full_name == "loaded_sample_tests"
            assert [t.cls.__name__ for t in assembly.types()] == ["LoadedTests"]
            assert len(assembly.raw_attributes()) == 1

    def test_missing_python_file_is_unavailable(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            with pytest.raises(ElementUnavailable):
                FileAssemblyLoader().load_assembly(str(Path(tmpdir) / "missing_tests.py"))

    def test_load_module_by_name(self):
        assembly = FileAssemblyLoader().load_assembly("testadapter.attributes.markers")
        assert isinstance(assembly, RuntimeAssembly)
        assert assembly.full_name == "testadapter.attributes.markers"

    def test_unknown_module_is_unavailable(self):
        with pytest.raises(ElementUnavailable, match="no_such_test_module"):
            FileAssemblyLoader().load_assembly("no_such_test_module")


class TestEnvironment:
    """Tests for the environment implementations."""

    def test_system_environment(self):
        env = SystemEnvironment()
        assert env.processor_count >= 1
        assert isinstance(env.machine_name, str)

    def test_fixed_environment(self):
        env = FixedEnvironment(processor_count=3, machine_name="build-01")
        assert env.processor_count == 3
        assert env.machine_name == "build-01"
