"""Restricted XPath grammar served directly from indices."""

from __future__ import annotations

import re
from dataclasses import dataclass

from xml_indexing.index.models import NUMERIC_DIMENSION

KIND_ALL = "all"
KIND_POSITION = "position"
KIND_LAST = "last"
KIND_ATTRIBUTE_VALUE = "attribute_value"
KIND_ATTRIBUTE_EXISTS = "attribute_exists"

_NAME = r"[A-Za-z0-9:._-]+"
_PATH = rf"(?:/{_NAME})+"
_BARE_PATH_RE = re.compile(rf"^({_PATH})$")
_SELECTOR_PATH_RE = re.compile(rf"^({_PATH})\[(.*)\]$")
_POSITION_RE = re.compile(r"^[0-9]+$")
_ATTRIBUTE_VALUE_RE = re.compile(rf"""^@({_NAME})=(?:"([^"]*)"|'([^']*)')$""")
_ATTRIBUTE_EXISTS_RE = re.compile(rf"^@({_NAME})$")


@dataclass(slots=True, frozen=True)
class IndexQuery:
    """Parsed query answerable from one index dimension."""

    root: str
    kind: str
    position: int | None = None
    attribute: str | None = None
    value: str | None = None

    @property
    def dimension(self) -> str:
        if self.attribute is not None:
            return self.attribute
        return NUMERIC_DIMENSION


def parse_query(text: str) -> IndexQuery | None:
    """Parse the restricted grammar; None means the query needs the full evaluator."""
    bare = _BARE_PATH_RE.match(text)
    if bare is not None:
        return IndexQuery(root=bare.group(1), kind=KIND_ALL)

    selected = _SELECTOR_PATH_RE.match(text)
    if selected is None:
        return None
    root, selector = selected.group(1), selected.group(2)

    if _POSITION_RE.match(selector):
        return IndexQuery(root=root, kind=KIND_POSITION, position=int(selector))
    if selector == "last()":
        return IndexQuery(root=root, kind=KIND_LAST)
    attribute_value = _ATTRIBUTE_VALUE_RE.match(selector)
    if attribute_value is not None:
        value = attribute_value.group(2)
        if value is None:
            value = attribute_value.group(3)
        return IndexQuery(
            root=root,
            kind=KIND_ATTRIBUTE_VALUE,
            attribute=attribute_value.group(1),
            value=value,
        )
    attribute_exists = _ATTRIBUTE_EXISTS_RE.match(selector)
    if attribute_exists is not None:
        return IndexQuery(
            root=root,
            kind=KIND_ATTRIBUTE_EXISTS,
            attribute=attribute_exists.group(1),
        )
    return None
