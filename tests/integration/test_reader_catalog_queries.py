from __future__ import annotations

from pathlib import Path

from xml_indexing.config import ConfigOverrides, ReaderConfig, load_effective_config
from xml_indexing.reader import Reader

CATALOG = (
    b'<?xml version="1.0" encoding="UTF-8"?>\n'
    b"<catalog>\n"
    b'  <item id="a"><name>First</name></item>\n'
    b'  <item id="b"><name>Second</name></item>\n'
    b'  <item id="a"><name>Third</name></item>\n'
    b"</catalog>\n"
)

FIRST = '<item id="a"><name>First</name></item>'
SECOND = '<item id="b"><name>Second</name></item>'
THIRD = '<item id="a"><name>Third</name></item>'


def _config(tmp_path: Path) -> ReaderConfig:
    dsn = f"file://{(tmp_path / 'cache').as_posix()}/%s.xi"
    return load_effective_config(overrides=ConfigOverrides(dsn=dsn))


def _catalog(tmp_path: Path) -> Path:
    path = tmp_path / "catalog.xml"
    path.write_bytes(CATALOG)
    return path


def test_bare_path_returns_all_items_in_document_order(tmp_path: Path) -> None:
    with Reader(_catalog(tmp_path), _config(tmp_path)) as reader:
        assert reader.find("/catalog/item") == 3
        assert reader.count() == 3
        assert reader.fetch_strings() == [FIRST, SECOND, THIRD]


def test_position_selects_one_item(tmp_path: Path) -> None:
    with Reader(_catalog(tmp_path), _config(tmp_path)) as reader:
        assert reader.find("/catalog/item[2]") == 1
        assert reader.fetch_strings() == [SECOND]
        assert reader.regions[0].offset == CATALOG.index(SECOND.encode("utf-8"))


def test_attribute_value_selects_matching_items(tmp_path: Path) -> None:
    with Reader(_catalog(tmp_path), _config(tmp_path)) as reader:
        assert reader.find("/catalog/item[@id='a']") == 2
        assert reader.fetch_strings() == [FIRST, THIRD]
        assert reader.fetch_strings(offset=1) == [THIRD]
        assert reader.fetch_strings(offset=0, limit=1) == [FIRST]


def test_attribute_existence_and_last(tmp_path: Path) -> None:
    with Reader(_catalog(tmp_path), _config(tmp_path)) as reader:
        assert reader.find("/catalog/item[@id]") == 3
        assert reader.fetch_strings() == [FIRST, SECOND, THIRD]

        assert reader.find("/catalog/item[last()]") == 1
        assert reader.fetch_strings() == [THIRD]


def test_dom_nodes_are_parsed_fragments(tmp_path: Path) -> None:
    with Reader(_catalog(tmp_path), _config(tmp_path)) as reader:
        reader.find('/catalog/item[@id="a"]')
        nodes = reader.fetch_dom_nodes()
        assert [node.findtext("name") for node in nodes] == ["First", "Third"]
        assert [node.findtext("name") for node in reader.fetch_dom_nodes(1, 1)] == ["Third"]


def test_each_find_resets_previous_matches(tmp_path: Path) -> None:
    with Reader(_catalog(tmp_path), _config(tmp_path)) as reader:
        reader.find("/catalog/item")
        reader.find("/catalog/item[@id='b']")
        assert reader.count() == 1
        assert reader.fetch_strings() == [SECOND]
