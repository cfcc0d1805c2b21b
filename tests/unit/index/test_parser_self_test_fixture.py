from __future__ import annotations

import pytest

from xml_indexing.errors import UnknownParserBehaviorError
from xml_indexing.index.compat import (
    EXPECTED_OFFSETS,
    KNOWN_FAULTY_OFFSETS,
    SELF_TEST_FIXTURE,
    SELF_TEST_ROOT,
    classify_fixture_index,
)
from xml_indexing.index.models import Region
from xml_indexing.index.policies import NumericPolicy
from xml_indexing.index.scanner import parser_needs_offset_fix, scan_document


def _index(table: dict[int, list[tuple[int, int]]]) -> dict[int, list[Region]]:
    return {
        key: [Region(offset=offset, length=length) for offset, length in spans]
        for key, spans in table.items()
    }


def test_fixture_is_fixed_width_lines() -> None:
    assert len(SELF_TEST_FIXTURE) == 550
    assert SELF_TEST_FIXTURE[250:256] == b"<test>"
    assert SELF_TEST_FIXTURE[302:312] == b"<a> 1 </a>"


def test_bundled_expat_reports_expected_offsets() -> None:
    result = scan_document(SELF_TEST_FIXTURE, SELF_TEST_ROOT, NumericPolicy(), offset_fix=False)
    table = {
        key: [(region.offset, region.length) for region in regions]
        for key, regions in result.index.items()
    }
    assert table == EXPECTED_OFFSETS
    assert parser_needs_offset_fix() is False


def test_classification_of_known_tables() -> None:
    assert classify_fixture_index(_index(EXPECTED_OFFSETS)) is False
    assert classify_fixture_index(_index(KNOWN_FAULTY_OFFSETS)) is True


def test_unknown_table_raises() -> None:
    observed = _index({1: [(300, 12)]})
    with pytest.raises(UnknownParserBehaviorError, match="no known offset table") as caught:
        classify_fixture_index(observed)
    assert "300" in caught.value.observed
