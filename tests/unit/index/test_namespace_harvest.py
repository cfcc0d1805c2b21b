from __future__ import annotations

from xml_indexing.index.policies import NamespacePolicy, NumericPolicy
from xml_indexing.index.scanner import scan_document

DOCUMENT = (
    b'<r:root xmlns:r="urn:root" xmlns="urn:default">\n'
    b'  <r:entry xmlns:x="urn:extra" x:flag="yes">one</r:entry>\n'
    b"  <r:entry>two</r:entry>\n"
    b"</r:root>\n"
)


def test_prefixed_declarations_are_collected_from_any_element() -> None:
    result = scan_document(DOCUMENT, "/", NamespacePolicy(), offset_fix=False)
    assert result.namespaces == {"r": "urn:root", "x": "urn:extra"}
    assert result.index == {}


def test_prefixed_names_match_literally() -> None:
    result = scan_document(DOCUMENT, "/r:root/r:entry", NumericPolicy(), offset_fix=False)
    assert sorted(result.index) == [1, 2]
    assert result.namespaces["x"] == "urn:extra"
