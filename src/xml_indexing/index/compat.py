"""Offset compatibility adapter for parsers reporting shifted byte indices.

Some expat bindings report the byte index of the previous token instead of
the current one. The self-test fixture below pins the exact offsets a
correct parser yields for it, along with the offsets seen from the known
faulty behaviour. Scanning the fixture and classifying the result decides
whether offsets need correcting before any real index is built.
"""

from __future__ import annotations

from xml_indexing.errors import UnknownParserBehaviorError
from xml_indexing.index.models import DimensionIndex

SELF_TEST_ROOT = "/test/a"

SELF_TEST_FIXTURE = (
    b'<?xml version="1.0" encoding="ISO-8859-1"?>       '
    b"<!DOCTYPE test [                                  "
    b"<!ELEMENT test (a*)>                              "
    b"<!ELEMENT a       (#PCDATA)>                      "
    b"]>                                                "
    b"<test>                                            "
    b"  <a> 1 </a>                                      "
    b"  <a> 1 </a>                                      "
    b"  <a> 1 </a>                                      "
    b"  <a> 4 </a>                                      "
    b"</test>                                           "
)

EXPECTED_OFFSETS: dict[int, list[tuple[int, int]]] = {
    1: [(302, 10)],
    2: [(352, 10)],
    3: [(402, 10)],
    4: [(452, 10)],
}

KNOWN_FAULTY_OFFSETS: dict[int, list[tuple[int, int]]] = {
    1: [(263, 50)],
    2: [(313, 50)],
    3: [(363, 50)],
    4: [(413, 53)],
}

_LT = ord("<")


def _as_table(index: DimensionIndex) -> dict[object, list[tuple[int, int]]]:
    return {
        key: [(region.offset, region.length) for region in regions]
        for key, regions in index.items()
    }


def classify_fixture_index(index: DimensionIndex) -> bool:
    """Return True when offsets need fixing, False when they are already correct."""
    table = _as_table(index)
    if table == EXPECTED_OFFSETS:
        return False
    if table == KNOWN_FAULTY_OFFSETS:
        return True
    raise UnknownParserBehaviorError(
        message="Parser self-test matched no known offset table",
        observed=repr(table),
    )


def locate_tag_start(buffer: bytes, reported: int) -> int:
    """Walk back from a reported byte index to the nearest preceding '<'."""
    position = reported - 1
    while position > 0 and buffer[position] != _LT:
        position -= 1
    return max(position, 0)


def blank_prolog(buffer: bytes) -> bytes:
    """Blank every byte ahead of the first start tag.

    The XML declaration and any DOCTYPE are replaced with spaces so that the
    faulty parser has no prolog tokens to misreport. Byte positions are kept.
    """
    data = bytearray(buffer)
    limit = len(data) - 1
    position = 0
    while position < limit:
        if data[position] == _LT and _is_ascii_letter(data[position + 1]):
            break
        data[position] = 0x20
        position += 1
    return bytes(data)


def _is_ascii_letter(value: int) -> bool:
    return (0x41 <= value <= 0x5A) or (0x61 <= value <= 0x7A)
