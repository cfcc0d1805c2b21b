from __future__ import annotations

import io
from pathlib import Path

import pytest

from xml_indexing.errors import ParseError
from xml_indexing.index import scanner
from xml_indexing.index.compat import SELF_TEST_FIXTURE, SELF_TEST_ROOT
from xml_indexing.index.policies import NumericPolicy
from xml_indexing.index.scanner import scan_document

# With a parser that already reports true offsets, each corrected index lands on
# the '<' before it: starts on the tag ahead of <a>, ends on the '<' of </a>.
CORRECTED_FIXTURE_OFFSETS = {
    1: [(250, 58)],
    2: [(308, 50)],
    3: [(358, 50)],
    4: [(408, 50)],
}


def _refuse_chunked_feed(monkeypatch: pytest.MonkeyPatch) -> None:
    def refuse(parser: object, source: object, buffer_size: int) -> None:
        raise AssertionError("chunked feeding used while offsets are being fixed")

    monkeypatch.setattr(scanner, "_feed", refuse)


def _table(index: dict[int, list]) -> dict[int, list[tuple[int, int]]]:
    return {
        key: [(region.offset, region.length) for region in regions]
        for key, regions in index.items()
    }


def test_path_source_is_read_whole_and_offsets_walked_back(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    _refuse_chunked_feed(monkeypatch)
    document = tmp_path / "fixture.xml"
    document.write_bytes(SELF_TEST_FIXTURE)

    result = scan_document(
        document, SELF_TEST_ROOT, NumericPolicy(), buffer_size=7, offset_fix=True
    )

    assert _table(result.index) == CORRECTED_FIXTURE_OFFSETS


def test_handle_source_is_read_whole(monkeypatch: pytest.MonkeyPatch) -> None:
    _refuse_chunked_feed(monkeypatch)
    handle = io.BytesIO(SELF_TEST_FIXTURE)
    handle.seek(123)

    result = scan_document(
        handle, SELF_TEST_ROOT, NumericPolicy(), buffer_size=7, offset_fix=True
    )

    assert _table(result.index) == CORRECTED_FIXTURE_OFFSETS


def test_prolog_is_blanked_before_parsing() -> None:
    document = b"junk before root\n<r><i>1</i>\n</r>\n"

    with pytest.raises(ParseError):
        scan_document(document, "/r/i", NumericPolicy(), offset_fix=False)

    result = scan_document(document, "/r/i", NumericPolicy(), offset_fix=True)
    assert _table(result.index) == {1: [(17, 7)]}
