"""Turns byte regions into strings or parsed element handles."""

from __future__ import annotations

import codecs
import re
from typing import BinaryIO, TypeVar
from xml.sax.saxutils import quoteattr

from lxml import etree

from xml_indexing.errors import ParseError
from xml_indexing.index.models import Region

WRAPPER_ELEMENT = "root"
DEFAULT_ENCODING = "utf-8"
_DECLARATION_SNIFF_BYTES = 512
_ENCODING_RE = re.compile(rb"""^<\?xml[^>]*?encoding\s*=\s*["']([A-Za-z][A-Za-z0-9._-]*)["']""")

T = TypeVar("T")


def window(items: list[T], offset: int = 0, limit: int | None = None) -> list[T]:
    """Zero-based selection window shared by both fetch operations."""
    if offset < 0:
        raise ValueError("offset must be >= 0.")
    if limit is None:
        return items[offset:]
    if limit < 0:
        raise ValueError("limit must be >= 0.")
    return items[offset : offset + limit]


def sniff_encoding(handle: BinaryIO) -> str:
    """Read the encoding named by the XML declaration, UTF-8 when absent or unknown."""
    handle.seek(0)
    head = handle.read(_DECLARATION_SNIFF_BYTES)
    if head.startswith(codecs.BOM_UTF8):
        return DEFAULT_ENCODING
    match = _ENCODING_RE.match(head)
    if match is None:
        return DEFAULT_ENCODING
    name = match.group(1).decode("ascii")
    try:
        codecs.lookup(name)
    except LookupError:
        return DEFAULT_ENCODING
    return name


class FragmentMaterializer:
    """Seeks the open source handle to each region and reads it back."""

    def __init__(self, handle: BinaryIO, encoding: str = DEFAULT_ENCODING) -> None:
        self._handle = handle
        self._encoding = encoding

    @property
    def encoding(self) -> str:
        return self._encoding

    def read_regions(self, regions: list[Region]) -> list[str]:
        """Return trimmed markup for each region, in region order."""
        output: list[str] = []
        for region in regions:
            try:
                self._handle.seek(region.offset)
                data = self._handle.read(region.length)
            except OSError as error:
                raise ParseError(
                    message=f"Unable to read region at {region.offset}: {error}"
                ) from error
            output.append(data.decode(self._encoding, errors="replace").strip())
        return output


def wrap_fragments(fragments: list[str], namespaces: dict[str, str]) -> list[etree._Element]:
    """Parse fragments inside a throwaway root declaring every harvested prefix."""
    if not fragments:
        return []
    declarations = "".join(
        f" xmlns:{prefix}={quoteattr(uri)}"
        for prefix, uri in sorted(namespaces.items())
        if prefix and prefix != "xml"
    )
    markup = f"<{WRAPPER_ELEMENT}{declarations}>{''.join(fragments)}</{WRAPPER_ELEMENT}>"
    try:
        wrapper = etree.fromstring(markup.encode("utf-8"))
    except etree.XMLSyntaxError as error:
        raise ParseError(message=f"Unable to parse extracted fragments: {error}") from error
    return list(wrapper)
