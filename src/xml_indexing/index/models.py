"""Typed models for index state."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

NUMERIC_DIMENSION = "#"


@dataclass(slots=True, frozen=True)
class Region:
    """Byte span of one matched element, opening tag through closing tag."""

    offset: int
    length: int

    @property
    def end(self) -> int:
        return self.offset + self.length


NumericIndex = dict[int, list[Region]]
AttributeIndex = dict[str, list[Region]]
# Integer keys for the positional dimension, attribute values otherwise.
DimensionIndex = dict[Any, list[Region]]


@dataclass(slots=True, frozen=True)
class DocumentIdentity:
    """Cache key derived from the resolved path, modification time and size."""

    path: str
    mtime_ns: int
    size: int
    key: str


@dataclass(slots=True, frozen=True)
class ScanResult:
    """Output of one scan pass."""

    index: DimensionIndex
    namespaces: dict[str, str]


@dataclass(slots=True)
class IndexEntry:
    """All indices and the namespace map cached for one document identity."""

    roots: dict[str, dict[str, DimensionIndex]] = field(default_factory=dict)
    namespaces: dict[str, str] | None = None

    def has(self, root: str, dimension: str) -> bool:
        return dimension in self.roots.get(root, {})

    def get(self, root: str, dimension: str) -> DimensionIndex | None:
        return self.roots.get(root, {}).get(dimension)

    def put(self, root: str, dimension: str, index: DimensionIndex) -> None:
        self.roots.setdefault(root, {})[dimension] = index

    def absorb(self, other: IndexEntry) -> list[tuple[str, str]]:
        """Copy dimensions missing here from another entry; return what was copied."""
        copied: list[tuple[str, str]] = []
        for root in sorted(other.roots):
            for dimension in sorted(other.roots[root]):
                if self.has(root, dimension):
                    continue
                self.put(root, dimension, other.roots[root][dimension])
                copied.append((root, dimension))
        if self.namespaces is None and other.namespaces is not None:
            self.namespaces = dict(other.namespaces)
        return copied
