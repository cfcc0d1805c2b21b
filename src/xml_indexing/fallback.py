"""Full XPath evaluation over a parsed document, used when indices cannot answer."""

from __future__ import annotations

from pathlib import Path

from lxml import etree

from xml_indexing.errors import FallbackEvaluationError, ParseError

FallbackNode = etree._Element | str


class FallbackEvaluator:
    """Parses the whole document once and evaluates XPath in document order."""

    def __init__(self, path: Path) -> None:
        self._path = path
        self._tree: etree._ElementTree | None = None

    def evaluate(self, query: str, namespaces: dict[str, str]) -> list[FallbackNode]:
        """Return the node set selected by query."""
        tree = self._parsed()
        prefixes = {prefix: uri for prefix, uri in namespaces.items() if prefix}
        try:
            result = tree.xpath(query, namespaces=prefixes)
        except etree.XPathError as error:
            raise FallbackEvaluationError(
                message=f"XPath evaluation failed ({error})",
                query=query,
            ) from error
        if not isinstance(result, list):
            raise FallbackEvaluationError(
                message="XPath expression does not select a node set",
                query=query,
            )
        return list(result)

    def _parsed(self) -> etree._ElementTree:
        if self._tree is None:
            try:
                self._tree = etree.parse(str(self._path))
            except (OSError, etree.XMLSyntaxError) as error:
                raise ParseError(
                    message=f"Unable to parse XML file {self._path}: {error}"
                ) from error
        return self._tree


def serialize(node: FallbackNode) -> str:
    """Markup of an element, or the string value of a non-element result."""
    if isinstance(node, etree._Element):
        return etree.tostring(node, encoding="unicode", with_tail=False)
    return str(node)
