"""Exception hierarchy shared by the metadata, attribute and discovery layers.

Only ``ElementUnavailable`` crosses the attribute resolution boundary.
``MarkerConstructionFailed`` and ``PolicyUnresolved`` are always recovered
inside the engine.
"""

from __future__ import annotations


class ElementUnavailable(Exception):
    """The module backing an element cannot be introspected."""

    def __init__(self, element_name: str, reason: str = "") -> None:
        message = f"Element unavailable: {element_name}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)
        self.element_name = element_name
        self.reason = reason


class MarkerConstructionFailed(Exception):
    """A single attribute record could not be turned into a marker instance."""


class TypeLoadError(MarkerConstructionFailed):
    """A marker type, or a type referenced by its arguments, cannot be resolved."""


class BadImageFormatError(MarkerConstructionFailed):
    """The recorded arguments do not match the shape of the resolved marker type."""


class FileLoadError(MarkerConstructionFailed):
    """The module declaring a marker type failed to load."""


class PolicyUnresolved(Exception):
    """The usage policy of a marker type could not be determined."""


def inner_exception_or_self(exc: BaseException | None) -> BaseException | None:
    """Return the exception's direct cause if there is one, else the exception."""
    if exc is None:
        return None
    return exc.__cause__ or exc


def try_get_message(exc: BaseException | None) -> str:
    """Get an exception's message without raising."""
    if exc is None:
        return "Failed to get exception message: null"
    return str(exc)
