"""Result types for fix operations.

This module defines:
- FixResult - outcome of fixing one source unit
- UnformattedCollection - paths whose imports are not in canonical order
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator


@dataclass(frozen=True)
class FixResult:
    """Outcome of fixing a single source unit.

    Attributes:
        content: The fixed source bytes
        original: The bytes that were read
        changed: Whether ``content`` differs from ``original``
    """

    content: bytes
    original: bytes
    changed: bool

    def __bool__(self) -> bool:
        return self.changed


@dataclass
class UnformattedCollection:
    """Paths found by a directory scan that would be changed by a fix."""

    paths: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.paths = sorted(self.paths)

    def list(self) -> list[str]:
        """Return a copy of the collected paths."""
        return list(self.paths)

    def __str__(self) -> str:
        return "\n".join(self.paths)

    def __bool__(self) -> bool:
        return len(self.paths) > 0

    def __len__(self) -> int:
        return len(self.paths)

    def __iter__(self) -> Iterator[str]:
        return iter(self.paths)
