"""Index cache orchestration: identity, lazy builds and persistence."""

from __future__ import annotations

import hashlib
import time
from pathlib import Path
from typing import BinaryIO

from xml_indexing.config import ReaderConfig
from xml_indexing.errors import CacheIOError, ParseError
from xml_indexing.index.models import DimensionIndex, DocumentIdentity, IndexEntry, ScanResult
from xml_indexing.index.policies import IndexingPolicy, NamespacePolicy, policy_for_dimension
from xml_indexing.index.scanner import scan_document
from xml_indexing.index.store import IndexStore
from xml_indexing.logging import (
    EVENT_CACHE_DEGRADED,
    EVENT_INDEX_BUILT,
    EVENT_INDEX_REUSED,
    IndexEvent,
    JsonlEventLogger,
    utc_timestamp,
)

NAMESPACE_ROOT = "/"
COMPRESSED_KEY_SUFFIX = ".z"


def document_identity(path: Path, compressed: bool = False) -> DocumentIdentity:
    """Derive the cache identity from resolved path, modification time and size."""
    resolved = path.resolve()
    try:
        stat = resolved.stat()
    except OSError as error:
        raise ParseError(message=f"Unable to open the XML file {path}: {error}") from error
    material = f"{resolved}:{stat.st_mtime_ns}:{stat.st_size}"
    key = hashlib.sha256(material.encode("utf-8")).hexdigest()
    if compressed:
        key += COMPRESSED_KEY_SUFFIX
    return DocumentIdentity(
        path=str(resolved),
        mtime_ns=stat.st_mtime_ns,
        size=stat.st_size,
        key=key,
    )


class IndexCache:
    """Holds the index entry of one document and builds missing dimensions."""

    def __init__(
        self,
        document: Path,
        config: ReaderConfig,
        event_log: JsonlEventLogger | None = None,
    ) -> None:
        self._document = document
        self._config = config
        self._event_log = event_log
        self._identity = document_identity(document, compressed=config.gz_level > 0)
        self._store = IndexStore(
            config.store_location(self._identity.key),
            gz_level=config.gz_level,
        )
        self._warnings: list[str] = []
        self._entry = self._load()

    @property
    def identity(self) -> DocumentIdentity:
        return self._identity

    @property
    def store(self) -> IndexStore:
        return self._store

    @property
    def warnings(self) -> tuple[str, ...]:
        """Cache problems that were handled by falling back to a cold cache."""
        return tuple(self._warnings)

    @property
    def namespaces(self) -> dict[str, str]:
        return dict(self._entry.namespaces or {})

    def has(self, root: str, dimension: str) -> bool:
        return self._entry.has(root, dimension)

    def lookup(self, root: str, dimension: str) -> DimensionIndex | None:
        return self._entry.get(root, dimension)

    def ensure(self, root: str, dimension: str, source: BinaryIO | None = None) -> bool:
        """Make sure (root, dimension) is indexed. Returns True when this call scanned."""
        if self._entry.has(root, dimension):
            return False
        return self._build(root, dimension, policy_for_dimension(dimension), source)

    def ensure_namespaces(self, source: BinaryIO | None = None) -> bool:
        """Run a namespace-only pass unless some scan already harvested them."""
        if self._entry.namespaces is not None:
            return False
        return self._build(NAMESPACE_ROOT, None, NamespacePolicy(), source)

    def _load(self) -> IndexEntry:
        try:
            entry = self._store.read()
        except CacheIOError as error:
            self._degrade(error, action="load")
            return IndexEntry()
        return entry or IndexEntry()

    def _build(
        self,
        root: str,
        dimension: str | None,
        policy: IndexingPolicy,
        source: BinaryIO | None,
    ) -> bool:
        started = time.perf_counter()
        profile: dict[str, object] = {}
        result: ScanResult | None = None
        try:
            with self._store.exclusive():
                if self._absorb_persisted(root, dimension):
                    return False
                result = self._scan(root, dimension, policy, source, profile)
                write_started = time.perf_counter()
                self._store.write_unlocked(self._entry, self._identity)
                profile["write_seconds"] = time.perf_counter() - write_started
        except CacheIOError as error:
            self._degrade(error, action="build")
            if result is None:
                result = self._scan(root, dimension, policy, source, profile)

        self._log(
            event=EVENT_INDEX_BUILT,
            root=root,
            dimension=dimension,
            region_count=sum(len(regions) for regions in result.index.values()),
            duration_ms=int((time.perf_counter() - started) * 1000),
            metadata={"profile": profile, "namespace_count": len(result.namespaces)},
        )
        return True

    def _absorb_persisted(self, root: str, dimension: str | None) -> bool:
        persisted = self._store.read_unlocked()
        if persisted is None:
            return False
        for copied_root, copied_dimension in self._entry.absorb(persisted):
            self._log(
                event=EVENT_INDEX_REUSED,
                root=copied_root,
                dimension=copied_dimension,
                region_count=None,
                duration_ms=None,
                metadata={},
            )
        if dimension is None:
            return self._entry.namespaces is not None
        return self._entry.has(root, dimension)

    def _scan(
        self,
        root: str,
        dimension: str | None,
        policy: IndexingPolicy,
        source: BinaryIO | None,
        profile: dict[str, object],
    ) -> ScanResult:
        scan_started = time.perf_counter()
        result = scan_document(
            source if source is not None else self._document,
            root,
            policy,
            buffer_size=self._config.buffer_size,
        )
        profile["scan_seconds"] = time.perf_counter() - scan_started
        if dimension is not None:
            self._entry.put(root, dimension, result.index)
        self._entry.namespaces = dict(result.namespaces)
        return result

    def _degrade(self, error: CacheIOError, action: str) -> None:
        self._warnings.append(str(error))
        self._log(
            event=EVENT_CACHE_DEGRADED,
            root=None,
            dimension=None,
            region_count=None,
            duration_ms=None,
            metadata={"action": action, "location": error.location, "message": error.message},
        )

    def _log(
        self,
        event: str,
        root: str | None,
        dimension: str | None,
        region_count: int | None,
        duration_ms: int | None,
        metadata: dict[str, object],
    ) -> None:
        if self._event_log is None:
            return
        self._event_log.append(
            IndexEvent(
                timestamp=utc_timestamp(),
                event=event,
                document=self._identity.path,
                root=root,
                dimension=dimension,
                region_count=region_count,
                duration_ms=duration_ms,
                metadata=metadata,
            )
        )
