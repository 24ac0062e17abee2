"""Exceptions raised at the shapegen boundaries.

Backends never raise for ineligible input; they return ``None`` and record a
diagnostic.  These exceptions are reserved for malformed input the caller must
handle.
"""

from __future__ import annotations

from collections.abc import Sequence


class ShapegenError(Exception):
    """Base class for all shapegen failures."""


class IRLoadError(ShapegenError):
    """Raised when a parse result cannot be read or does not match the IR."""

    def __init__(self, source: str, message: str) -> None:
        self.source = source
        super().__init__(f"Cannot load IR from {source}: {message}")


class DeclarationNotFoundError(ShapegenError):
    """Raised when a requested declaration is absent from a parse result."""

    def __init__(self, name: str, available: Sequence[str] = ()) -> None:
        self.name = name
        self.available = list(available)
        hint = f" (available: {', '.join(self.available)})" if self.available else ""
        super().__init__(f"Declaration not found: {name}{hint}")


class CircularDependencyError(ShapegenError):
    """Raised when declarations cannot be ordered because of a cycle."""

    def __init__(self, cycle: Sequence[str]) -> None:
        self.cycle = list(cycle)
        super().__init__(f"Circular dependency detected: {' -> '.join(self.cycle)}")
