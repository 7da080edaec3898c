"""Loading test sources as assembly elements.

A snapshot file (``.json``, ``.yaml``, ``.yml``) is opened in
inspection-only mode. Anything else is imported as a Python module, from
a ``.py`` path or by dotted module name, and inspected at runtime.
"""

from __future__ import annotations

import importlib
import importlib.util
import sys
from pathlib import Path
from types import ModuleType

from testadapter.attributes.registry import TypeRegistry, default_registry
from testadapter.errors import ElementUnavailable
from testadapter.metadata.model import AssemblyElement
from testadapter.metadata.runtime import RuntimeAssembly
from testadapter.metadata.snapshot import load_snapshot

SNAPSHOT_SUFFIXES = (".json", ".yaml", ".yml")


class FileAssemblyLoader:
    """Loads test sources from snapshot files or Python modules."""

    def __init__(self, registry: TypeRegistry | None = None) -> None:
        self.registry = registry if registry is not None else default_registry()

    def load_assembly(self, source: str) -> AssemblyElement:
        """Load ``source`` as an assembly element.

        Raises:
            ElementUnavailable: If the source cannot be read or imported.
        """
        path = Path(source)
        if path.suffix in SNAPSHOT_SUFFIXES:
            try:
                return load_snapshot(path, type_resolver=self.registry.type_ref).assembly
            except (OSError, ValueError) as e:
                raise ElementUnavailable(source, str(e)) from e
        if path.suffix == ".py":
            return RuntimeAssembly(self._import_path(path))
        try:
            return RuntimeAssembly(importlib.import_module(source))
        except ImportError as e:
            raise ElementUnavailable(source, str(e)) from e

    def _import_path(self, path: Path) -> ModuleType:
        spec = importlib.util.spec_from_file_location(path.stem, path)
        if spec is None or spec.loader is None or not path.exists():
            raise ElementUnavailable(str(path), "not a loadable module")
        module = importlib.util.module_from_spec(spec)
        sys.modules[spec.name] = module
        try:
            spec.loader.exec_module(module)
        except ImportError as e:
            raise ElementUnavailable(str(path), str(e)) from e
        return module
