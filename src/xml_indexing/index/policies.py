"""Indexing policies fed by the scan driver."""

from __future__ import annotations

from typing import Protocol

from xml_indexing.index.models import (
    NUMERIC_DIMENSION,
    AttributeIndex,
    DimensionIndex,
    NumericIndex,
    Region,
)


class IndexingPolicy(Protocol):
    """Protocol implemented by the region handling variants."""

    def on_region(self, offset: int, length: int, attributes: dict[str, str]) -> None:
        """Record one finalized region of a matched element."""

    def on_scope_enter(self) -> None:
        """React to the scan entering the scope path."""

    def on_scope_exit(self) -> None:
        """React to the scan leaving the scope path."""

    def index(self) -> DimensionIndex:
        """Return the index built so far."""


class NumericPolicy:
    """Positional index, numbered from 1 within each scope instance."""

    def __init__(self) -> None:
        self._counter = 0
        self._index: NumericIndex = {}

    def on_region(self, offset: int, length: int, attributes: dict[str, str]) -> None:
        self._counter += 1
        self._index.setdefault(self._counter, []).append(Region(offset=offset, length=length))

    def on_scope_enter(self) -> None:
        self._counter = 0

    def on_scope_exit(self) -> None:
        return None

    def index(self) -> NumericIndex:
        return self._index


class AttributePolicy:
    """Buckets regions by the value of one attribute."""

    def __init__(self, attribute: str) -> None:
        self._attribute = attribute
        self._index: AttributeIndex = {}

    @property
    def attribute(self) -> str:
        return self._attribute

    def on_region(self, offset: int, length: int, attributes: dict[str, str]) -> None:
        value = attributes.get(self._attribute)
        if value is None:
            return
        self._index.setdefault(value, []).append(Region(offset=offset, length=length))

    def on_scope_enter(self) -> None:
        return None

    def on_scope_exit(self) -> None:
        return None

    def index(self) -> AttributeIndex:
        return self._index


class NamespacePolicy:
    """Records nothing; used for passes that only harvest namespace declarations."""

    def on_region(self, offset: int, length: int, attributes: dict[str, str]) -> None:
        return None

    def on_scope_enter(self) -> None:
        return None

    def on_scope_exit(self) -> None:
        return None

    def index(self) -> NumericIndex:
        return {}


def policy_for_dimension(dimension: str) -> IndexingPolicy:
    """Select the policy variant for a dimension name."""
    if dimension == NUMERIC_DIMENSION:
        return NumericPolicy()
    return AttributePolicy(dimension)
