"""Ancestor chains for attribute inheritance.

Types inherit along their base-type chain, methods along their override
chain. Both walks are bounded so that malformed or adversarial metadata
cannot make resolution loop.
"""

from __future__ import annotations

from typing import Iterator

from testadapter.metadata.model import Element, ElementKind, override_key

# Maximum number of levels (the element included) visited by a walk
MAX_INHERITANCE_DEPTH = 10


def walk(
    element: Element,
    inherit: bool = True,
    max_depth: int = MAX_INHERITANCE_DEPTH,
) -> Iterator[Element]:
    """Yield ``element`` followed by the ancestors its markers inherit from.

    Args:
        element: The element being resolved.
        inherit: If False, only the element itself is yielded.
        max_depth: Maximum number of levels yielded.

    Raises:
        ElementUnavailable: If an element on the chain cannot be introspected.
    """
    if not inherit or element.kind is ElementKind.ASSEMBLY:
        yield element
        return
    if element.kind is ElementKind.TYPE:
        yield from _walk_type(element, max_depth)
    elif element.kind is ElementKind.METHOD:
        yield from _walk_method(element, max_depth)
    else:
        yield element


def _walk_type(element: Element, max_depth: int) -> Iterator[Element]:
    visited: set[str] = set()
    current: Element | None = element
    level = 0
    while current is not None and level < max_depth:
        if current.identity in visited:
            break
        # The element itself is always yielded; ancestors stop at the root
        if level > 0 and getattr(current, "is_universal_root", False):
            break
        visited.add(current.identity)
        yield current
        current = current.base_element()
        level += 1


def _walk_method(element: Element, max_depth: int) -> Iterator[Element]:
    current: Element | None = element
    level = 0
    while current is not None and level < max_depth:
        yield current
        base = current.base_element()
        if base is not None and override_key(base) == override_key(current):  # type: ignore[arg-type]
            break
        current = base
        level += 1
