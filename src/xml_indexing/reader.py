"""Indexed reader answering restricted XPath queries from byte-range indices."""

from __future__ import annotations

from pathlib import Path
from types import TracebackType
from typing import BinaryIO

from lxml import etree

from xml_indexing.config import ReaderConfig, default_config
from xml_indexing.errors import ParseError
from xml_indexing.fallback import FallbackEvaluator, FallbackNode, serialize
from xml_indexing.index.cache import IndexCache
from xml_indexing.index.models import Region
from xml_indexing.logging import JsonlEventLogger
from xml_indexing.materialize import FragmentMaterializer, sniff_encoding, window, wrap_fragments
from xml_indexing.query import (
    KIND_ALL,
    KIND_ATTRIBUTE_EXISTS,
    KIND_LAST,
    KIND_POSITION,
    IndexQuery,
    parse_query,
)


class Reader:
    """Reads fragments of a large XML file without reparsing it on every query.

    The first query touching a root path and dimension (position or one
    attribute) scans the whole file once and persists the resulting index;
    later queries on the same dimension are a lookup plus a seek::

        with Reader("catalog.xml") as reader:
            reader.find("/catalog/item[@id='a']")
            for markup in reader.fetch_strings():
                ...

    Queries outside the restricted grammar, and supported queries whose index
    lookup comes back empty, are evaluated by the full XPath fallback.
    """

    def __init__(
        self,
        path: Path | str,
        config: ReaderConfig | None = None,
        *,
        event_log: JsonlEventLogger | None = None,
    ) -> None:
        self._path = Path(path)
        self._config = config or default_config()
        if event_log is None and self._config.events_path is not None:
            event_log = JsonlEventLogger(self._config.events_path)
        self._cache = IndexCache(self._path, self._config, event_log=event_log)
        self._fallback = FallbackEvaluator(self._path)
        self._handle: BinaryIO | None = None
        self._materializer: FragmentMaterializer | None = None
        self._regions: list[Region] = []
        self._nodes: list[FallbackNode] | None = None
        self._matches = 0

    def __enter__(self) -> Reader:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    @property
    def cache(self) -> IndexCache:
        return self._cache

    @property
    def regions(self) -> tuple[Region, ...]:
        """Regions matched by the last index-served query."""
        return tuple(self._regions)

    @property
    def warnings(self) -> tuple[str, ...]:
        return self._cache.warnings

    def close(self) -> None:
        """Release the source file handle."""
        if self._handle is not None:
            self._handle.close()
            self._handle = None
            self._materializer = None

    def find(self, query: str) -> int:
        """Run a query and return the number of matches."""
        self._regions = []
        self._nodes = None
        self._matches = 0

        parsed = parse_query(query)
        if parsed is not None:
            self._regions = self._resolve(parsed)
        if self._regions:
            self._matches = len(self._regions)
            return self._matches

        # Supported but empty lookups are retried by the full evaluator too.
        self._cache.ensure_namespaces(source=self._open())
        self._nodes = self._fallback.evaluate(query, self._cache.namespaces)
        self._matches = len(self._nodes)
        return self._matches

    def count(self) -> int:
        """Number of matches found by the last find()."""
        return self._matches

    def fetch_strings(self, offset: int = 0, limit: int | None = None) -> list[str]:
        """Fetch matches as markup strings, starting at the zero-based offset."""
        if self._nodes is not None:
            return [serialize(node) for node in window(self._nodes, offset, limit)]
        selected = window(self._regions, offset, limit)
        if not selected:
            return []
        return self._fragments().read_regions(selected)

    def fetch_dom_nodes(
        self, offset: int = 0, limit: int | None = None
    ) -> list[etree._Element] | list[FallbackNode]:
        """Fetch matches as parsed element handles."""
        if self._nodes is not None:
            return window(self._nodes, offset, limit)
        return wrap_fragments(self.fetch_strings(offset, limit), self.get_namespaces())

    def get_namespaces(self) -> dict[str, str]:
        """Namespace prefixes declared anywhere in the document, once any scan ran."""
        return self._cache.namespaces

    def _resolve(self, query: IndexQuery) -> list[Region]:
        self._cache.ensure(query.root, query.dimension, source=self._open())
        index = self._cache.lookup(query.root, query.dimension) or {}
        if query.kind in (KIND_ALL, KIND_ATTRIBUTE_EXISTS):
            regions = [region for bucket in index.values() for region in bucket]
            regions.sort(key=lambda region: region.offset)
            return regions
        key: int | str | None = query.value
        if query.kind == KIND_POSITION:
            key = query.position
        elif query.kind == KIND_LAST:
            key = len(index)
        return list(index.get(key, []))

    def _open(self) -> BinaryIO:
        if self._handle is None:
            try:
                self._handle = self._path.open("rb")
            except OSError as error:
                raise ParseError(
                    message=f"Unable to open the XML file {self._path}: {error}"
                ) from error
        return self._handle

    def _fragments(self) -> FragmentMaterializer:
        if self._materializer is None:
            handle = self._open()
            self._materializer = FragmentMaterializer(handle, encoding=sniff_encoding(handle))
        return self._materializer
