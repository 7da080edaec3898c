"""Test adapter runtime: marker discovery and assembly settings."""

__version__ = "0.1.0"
