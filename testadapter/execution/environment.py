"""Host environment facts injected into settings extraction."""

from __future__ import annotations

import os
import platform
from dataclasses import dataclass
from typing import Protocol


class Environment(Protocol):
    @property
    def machine_name(self) -> str: ...

    @property
    def processor_count(self) -> int: ...


class SystemEnvironment:
    """Reads environment facts from the running host."""

    @property
    def machine_name(self) -> str:
        return platform.node()

    @property
    def processor_count(self) -> int:
        return os.cpu_count() or 1


@dataclass(frozen=True)
class FixedEnvironment:
    """Environment with explicit values (configuration overrides, tests)."""

    processor_count: int
    machine_name: str = "localhost"
