from __future__ import annotations

from pathlib import Path

from xml_indexing.config import ConfigOverrides, ReaderConfig, load_effective_config
from xml_indexing.reader import Reader

DOCUMENT = (
    b'<r:root xmlns:r="urn:root">\n'
    b'  <r:entry xmlns:x="urn:extra" x:flag="yes">one</r:entry>\n'
    b"  <r:entry>two</r:entry>\n"
    b"</r:root>\n"
)


def _config(tmp_path: Path) -> ReaderConfig:
    dsn = f"file://{(tmp_path / 'cache').as_posix()}/%s.xi"
    return load_effective_config(overrides=ConfigOverrides(dsn=dsn))


def _document(tmp_path: Path) -> Path:
    path = tmp_path / "ns.xml"
    path.write_bytes(DOCUMENT)
    return path


def test_namespaces_empty_before_any_scan(tmp_path: Path) -> None:
    with Reader(_document(tmp_path), _config(tmp_path)) as reader:
        assert reader.get_namespaces() == {}


def test_prefixed_query_served_from_index_with_namespaces(tmp_path: Path) -> None:
    with Reader(_document(tmp_path), _config(tmp_path)) as reader:
        assert reader.find("/r:root/r:entry") == 2
        assert reader.get_namespaces() == {"r": "urn:root", "x": "urn:extra"}

        nodes = reader.fetch_dom_nodes()
        assert [node.tag for node in nodes] == ["{urn:root}entry", "{urn:root}entry"]
        assert nodes[0].get("{urn:extra}flag") == "yes"
        assert [node.text for node in nodes] == ["one", "two"]


def test_fallback_receives_harvested_prefixes(tmp_path: Path) -> None:
    with Reader(_document(tmp_path), _config(tmp_path)) as reader:
        assert reader.find("//r:entry[@x:flag='yes']") == 1
        assert reader.get_namespaces() == {"r": "urn:root", "x": "urn:extra"}
        assert reader.fetch_dom_nodes()[0].text == "one"
        assert "one" in reader.fetch_strings()[0]
