"""Adapter configuration file management.

Reads and writes the .testadapter_config JSON file holding the resolution
bounds and host overrides used by the CLI.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

# Default configuration values
DEFAULT_CONFIG: dict[str, Any] = {
    "max_inheritance_depth": 10,
    "max_policy_depth": 3,
    "processor_count": None,
    "marker_modules": [],
    "verbose": False,
}


class AdapterConfig:
    """Manages the .testadapter_config JSON configuration file."""

    def __init__(self, path: Path | None = None) -> None:
        self.path = path
        self._data: dict[str, Any] = dict(DEFAULT_CONFIG)
        if path is not None and path.exists():
            self._load()

    def _load(self) -> None:
        """Load config from the file."""
        assert self.path is not None
        try:
            text = self.path.read_text()
            data = json.loads(text)
            if isinstance(data, dict):
                self._data = {**DEFAULT_CONFIG, **data}
        except (json.JSONDecodeError, OSError):
            self._data = dict(DEFAULT_CONFIG)

    def save(self) -> None:
        """Write config to the file."""
        if self.path is None:
            raise ValueError("No config file path specified")
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w") as f:
            json.dump(self._data, f, indent=2)
            f.write("\n")

    @property
    def config(self) -> dict[str, Any]:
        """Get the full configuration dict."""
        return dict(self._data)

    @property
    def max_inheritance_depth(self) -> int:
        """Get the max number of levels walked when resolving inherited markers."""
        return int(
            self._data.get("max_inheritance_depth", DEFAULT_CONFIG["max_inheritance_depth"])
        )

    @property
    def max_policy_depth(self) -> int:
        """Get the max nesting of marker usage policy lookups."""
        return int(
            self._data.get("max_policy_depth", DEFAULT_CONFIG["max_policy_depth"])
        )

    @property
    def processor_count(self) -> int | None:
        """Get the processor count override (None = host CPU count)."""
        val = self._data.get("processor_count", DEFAULT_CONFIG["processor_count"])
        return int(val) if val is not None else None

    @property
    def marker_modules(self) -> list[str]:
        """Get the modules searched for custom marker types."""
        return [str(m) for m in self._data.get("marker_modules") or []]

    @property
    def verbose(self) -> bool:
        """Whether skipped markers are reported on stderr."""
        return bool(self._data.get("verbose", DEFAULT_CONFIG["verbose"]))

    def set_config(
        self,
        max_inheritance_depth: int | None = None,
        processor_count: int | None = None,
        verbose: bool | None = None,
    ) -> None:
        """Update configuration values."""
        if max_inheritance_depth is not None:
            self._data["max_inheritance_depth"] = max_inheritance_depth
        if processor_count is not None:
            self._data["processor_count"] = processor_count
        if verbose is not None:
            self._data["verbose"] = verbose
