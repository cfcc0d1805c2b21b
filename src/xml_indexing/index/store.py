"""Persistent cache records with advisory locking and atomic replacement."""

from __future__ import annotations

import json
import os
import zlib
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import IO

from xml_indexing.errors import CacheIOError
from xml_indexing.index.models import (
    NUMERIC_DIMENSION,
    DimensionIndex,
    DocumentIdentity,
    IndexEntry,
    Region,
)

INDEX_SCHEMA_VERSION = 1
NAMESPACES_KEY = "NS"

IS_WINDOWS = os.name == "nt"
if not IS_WINDOWS:
    import fcntl
else:
    import msvcrt


class IndexStore:
    """Owns one cache record file and its sibling lock file."""

    def __init__(self, location: Path, gz_level: int = 0) -> None:
        self._location = location
        self._lock_path = location.with_name(location.name + ".lock")
        self._gz_level = gz_level

    @property
    def location(self) -> Path:
        """Return on-disk record path."""
        return self._location

    def read(self) -> IndexEntry | None:
        """Read the record under a shared lock; None when absent or unusable."""
        if not self._location.exists():
            return None
        with self._locked(exclusive=False):
            return self.read_unlocked()

    @contextmanager
    def exclusive(self) -> Iterator[None]:
        """Hold the exclusive lock covering a build and its write."""
        with self._locked(exclusive=True):
            yield

    def read_unlocked(self) -> IndexEntry | None:
        """Read the record; callers must already hold a lock."""
        try:
            raw = self._location.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as error:
            raise CacheIOError(
                message=f"Unable to read cache record ({error})",
                location=str(self._location),
            ) from error
        if not raw:
            return None
        return decode_entry(raw, compressed=self._gz_level > 0)

    def write_unlocked(self, entry: IndexEntry, identity: DocumentIdentity) -> None:
        """Atomically replace the record; callers must hold the exclusive lock."""
        payload = encode_entry(entry, identity, gz_level=self._gz_level)
        tmp = self._location.with_name(f"{self._location.name}.{os.getpid()}.tmp")
        try:
            self._location.parent.mkdir(parents=True, exist_ok=True)
            with tmp.open("wb") as handle:
                handle.write(payload)
                handle.flush()
                os.fsync(handle.fileno())
            tmp.replace(self._location)
        except OSError as error:
            tmp.unlink(missing_ok=True)
            raise CacheIOError(
                message=f"Unable to write cache record ({error})",
                location=str(self._location),
            ) from error

    @contextmanager
    def _locked(self, exclusive: bool) -> Iterator[None]:
        try:
            self._lock_path.parent.mkdir(parents=True, exist_ok=True)
            handle = self._lock_path.open("a+b")
        except OSError as error:
            raise CacheIOError(
                message=f"Unable to open cache lock ({error})",
                location=str(self._lock_path),
            ) from error
        try:
            _acquire(handle, exclusive=exclusive, location=self._lock_path)
            try:
                yield
            finally:
                _release(handle)
        finally:
            handle.close()


def _acquire(handle: IO[bytes], exclusive: bool, location: Path) -> None:
    try:
        if IS_WINDOWS:
            handle.seek(0)
            msvcrt.locking(handle.fileno(), msvcrt.LK_LOCK, 1)
        else:
            fcntl.flock(handle.fileno(), fcntl.LOCK_EX if exclusive else fcntl.LOCK_SH)
    except OSError as error:
        raise CacheIOError(
            message=f"Unable to lock cache ({error})",
            location=str(location),
        ) from error


def _release(handle: IO[bytes]) -> None:
    if IS_WINDOWS:
        handle.seek(0)
        msvcrt.locking(handle.fileno(), msvcrt.LK_UNLCK, 1)
    else:
        fcntl.flock(handle.fileno(), fcntl.LOCK_UN)


def encode_entry(entry: IndexEntry, identity: DocumentIdentity, gz_level: int = 0) -> bytes:
    """Serialize an entry into the versioned record layout."""
    roots: dict[str, dict[str, dict[str, list[list[int]]]]] = {}
    for root, dimensions in entry.roots.items():
        roots[root] = {
            dimension: {
                str(key): [[region.offset, region.length] for region in regions]
                for key, regions in index.items()
            }
            for dimension, index in dimensions.items()
        }
    record: dict[str, object] = {
        "schema_version": INDEX_SCHEMA_VERSION,
        "document": {
            "path": identity.path,
            "mtime_ns": identity.mtime_ns,
            "size": identity.size,
        },
        "roots": roots,
    }
    if entry.namespaces is not None:
        record[NAMESPACES_KEY] = dict(entry.namespaces)
    data = json.dumps(record, sort_keys=True).encode("utf-8")
    if gz_level > 0:
        return zlib.compress(data, gz_level)
    return data


def decode_entry(raw: bytes, compressed: bool = False) -> IndexEntry | None:
    """Parse a record; None when it is undecodable or from another schema version."""
    try:
        data = zlib.decompress(raw) if compressed else raw
        payload = json.loads(data.decode("utf-8"))
    except (zlib.error, UnicodeDecodeError, json.JSONDecodeError):
        return None
    if not isinstance(payload, dict):
        return None
    schema = payload.get("schema_version")
    if not isinstance(schema, int) or schema != INDEX_SCHEMA_VERSION:
        return None
    raw_roots = payload.get("roots")
    if not isinstance(raw_roots, dict):
        return None

    entry = IndexEntry()
    for root, dimensions in raw_roots.items():
        if not isinstance(root, str) or not isinstance(dimensions, dict):
            continue
        for dimension, raw_index in dimensions.items():
            if not isinstance(dimension, str) or not isinstance(raw_index, dict):
                continue
            index = _decode_index(dimension, raw_index)
            if index is None:
                continue
            entry.put(root, dimension, index)

    raw_namespaces = payload.get(NAMESPACES_KEY)
    if isinstance(raw_namespaces, dict):
        entry.namespaces = {
            prefix: uri
            for prefix, uri in raw_namespaces.items()
            if isinstance(prefix, str) and isinstance(uri, str)
        }
    return entry


def _decode_index(dimension: str, raw_index: dict[str, object]) -> DimensionIndex | None:
    buckets: dict[str, list[Region]] = {}
    for raw_key, raw_regions in raw_index.items():
        regions = _decode_regions(raw_regions)
        if regions is None:
            return None
        buckets[raw_key] = regions
    if dimension != NUMERIC_DIMENSION:
        return buckets
    if not all(key.isdigit() for key in buckets):
        return None
    return {int(key): buckets[key] for key in sorted(buckets, key=int)}


def _decode_regions(raw_regions: object) -> list[Region] | None:
    if not isinstance(raw_regions, list):
        return None
    regions: list[Region] = []
    for pair in raw_regions:
        if not isinstance(pair, list) or len(pair) != 2:
            return None
        offset, length = pair
        if not isinstance(offset, int) or not isinstance(length, int):
            return None
        if offset < 0 or length < 0:
            return None
        regions.append(Region(offset=offset, length=length))
    return regions
