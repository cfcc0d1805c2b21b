"""Single-pass region detection over expat events."""

from __future__ import annotations

import functools
from collections.abc import Callable
from pathlib import Path
from typing import BinaryIO
from xml.parsers import expat

from xml_indexing.config import DEFAULT_BUFFER_SIZE
from xml_indexing.errors import ParseError
from xml_indexing.index.compat import (
    SELF_TEST_FIXTURE,
    SELF_TEST_ROOT,
    blank_prolog,
    classify_fixture_index,
    locate_tag_start,
)
from xml_indexing.index.models import ScanResult
from xml_indexing.index.policies import IndexingPolicy, NumericPolicy

NAMESPACE_DECLARATION_PREFIX = "xmlns:"


def scope_path_for(root: str) -> str:
    """Drop the last two segments of a root path; short paths scope to the document."""
    segments = root.split("/")
    if len(segments) > 2:
        return "/".join(segments[:-2])
    return ""


class _ScanState:
    """Mutable state of one scan pass."""

    def __init__(
        self,
        root: str,
        policy: IndexingPolicy,
        byte_index: Callable[[], int],
    ) -> None:
        self.root = root
        self.scope = scope_path_for(root)
        self.policy = policy
        self.current = ""
        self.match_start = 0
        self.match_attributes: dict[str, str] = {}
        self.ending_trigger = False
        self.namespaces: dict[str, str] = {}
        self._byte_index = byte_index

    def start(self, name: str, attributes: dict[str, str]) -> None:
        if self.ending_trigger:
            self._finalize()
        if self.current == self.scope:
            self.policy.on_scope_enter()
        self.current = f"{self.current}/{name}"
        if self.current == self.root:
            self.match_attributes = attributes
            self.match_start = self._byte_index()
        for attribute, value in attributes.items():
            if attribute.startswith(NAMESPACE_DECLARATION_PREFIX):
                self.namespaces[attribute[len(NAMESPACE_DECLARATION_PREFIX) :]] = value

    def end(self, name: str) -> None:
        if self.ending_trigger:
            self._finalize()
        if self.current == self.root:
            self.ending_trigger = True
        self.current = self.current[: -(len(name) + 1)]
        if self.current == self.scope:
            self.policy.on_scope_exit()

    def default(self, data: str) -> None:
        if self.ending_trigger:
            self._finalize()

    def _finalize(self) -> None:
        # The parser only reports where events start, so a match closes at the next event.
        position = self._byte_index()
        self.policy.on_region(self.match_start, position - self.match_start, self.match_attributes)
        self.ending_trigger = False


def scan_document(
    source: Path | bytes | BinaryIO,
    root: str,
    policy: IndexingPolicy,
    *,
    buffer_size: int = DEFAULT_BUFFER_SIZE,
    offset_fix: bool | None = None,
) -> ScanResult:
    """Scan a document once, feeding regions matched at root into policy."""
    if offset_fix is None:
        offset_fix = parser_needs_offset_fix()

    parser = expat.ParserCreate()
    buffer = source if isinstance(source, bytes) else None
    if offset_fix:
        if buffer is None:
            buffer = _read_all(source)
        buffer = blank_prolog(buffer)
        fixed = buffer

        def byte_index() -> int:
            return locate_tag_start(fixed, parser.CurrentByteIndex)

    else:

        def byte_index() -> int:
            return parser.CurrentByteIndex

    state = _ScanState(root=root, policy=policy, byte_index=byte_index)
    parser.StartElementHandler = state.start
    parser.EndElementHandler = state.end
    parser.DefaultHandlerExpand = state.default

    try:
        if buffer is not None:
            parser.Parse(buffer, True)
        else:
            _feed(parser, source, buffer_size)
    except expat.ExpatError as error:
        raise ParseError(
            message=(
                f"Expat parsing error: {expat.ErrorString(error.code)} "
                f"at line {error.lineno}, column {error.offset}"
            )
        ) from error

    if state.ending_trigger:
        raise ParseError(
            message=f"Element matched at {root} is still open at end of input",
        )
    return ScanResult(index=policy.index(), namespaces=state.namespaces)


@functools.cache
def parser_needs_offset_fix() -> bool:
    """Run the parser self-test once per process and report whether offsets need fixing."""
    result = scan_document(
        SELF_TEST_FIXTURE,
        SELF_TEST_ROOT,
        NumericPolicy(),
        offset_fix=False,
    )
    return classify_fixture_index(result.index)


def _feed(parser: expat.XMLParserType, source: Path | BinaryIO, buffer_size: int) -> None:
    if isinstance(source, Path):
        try:
            with source.open("rb") as handle:
                _feed_handle(parser, handle, buffer_size)
        except OSError as error:
            raise ParseError(message=f"Unable to read XML file {source}: {error}") from error
    else:
        try:
            source.seek(0)
            _feed_handle(parser, source, buffer_size)
        except OSError as error:
            raise ParseError(message=f"Unable to read XML input: {error}") from error
    parser.Parse(b"", True)


def _feed_handle(parser: expat.XMLParserType, handle: BinaryIO, buffer_size: int) -> None:
    while True:
        chunk = handle.read(buffer_size)
        if not chunk:
            break
        parser.Parse(chunk, False)


def _read_all(source: Path | BinaryIO) -> bytes:
    try:
        if isinstance(source, Path):
            return source.read_bytes()
        source.seek(0)
        return source.read()
    except OSError as error:
        raise ParseError(message=f"Unable to read XML input: {error}") from error
