"""Assembly loading and run settings."""

from testadapter.execution.environment import Environment, FixedEnvironment, SystemEnvironment
from testadapter.execution.loader import FileAssemblyLoader
from testadapter.execution.settings import TestAssemblySettings, TestAssemblySettingsProvider, get_settings

__all__ = [
    "Environment",
    "FileAssemblyLoader",
    "FixedEnvironment",
    "SystemEnvironment",
    "TestAssemblySettings",
    "TestAssemblySettingsProvider",
    "get_settings",
]
