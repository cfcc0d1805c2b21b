"""Structured JSONL index event log."""

from __future__ import annotations

import json
from collections import deque
from collections.abc import Iterator
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from pathlib import Path

EVENT_INDEX_BUILT = "index_built"
EVENT_INDEX_REUSED = "index_reused"
EVENT_CACHE_DEGRADED = "cache_degraded"


@dataclass(slots=True, frozen=True)
class IndexEvent:
    """One index lifecycle event for a document."""

    timestamp: str
    event: str
    document: str
    root: str | None
    dimension: str | None
    region_count: int | None
    duration_ms: int | None
    metadata: dict[str, object] = field(default_factory=dict)


def utc_timestamp() -> str:
    """Return an ISO-8601 UTC timestamp."""
    return datetime.now(tz=UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class JsonlEventLogger:
    """Append-only JSONL event logger and bounded reader."""

    def __init__(self, path: Path) -> None:
        self._path = path
        self._path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def path(self) -> Path:
        """Return on-disk JSONL path."""
        return self._path

    def append(self, event: IndexEvent) -> None:
        """Append an event as one JSON object per line."""
        with self._path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(asdict(event), sort_keys=True))
            handle.write("\n")

    def read(
        self,
        event: str | None = None,
        document: str | None = None,
        limit: int = 50,
    ) -> list[dict[str, object]]:
        """Return the most recent events, oldest first, optionally filtered."""
        if limit < 1:
            return []
        tail: deque[dict[str, object]] = deque(maxlen=limit)
        for record in self._records():
            if event is not None and record.get("event") != event:
                continue
            if document is not None and record.get("document") != document:
                continue
            tail.append(record)
        return list(tail)

    def _records(self) -> Iterator[dict[str, object]]:
        if not self._path.exists():
            return
        with self._path.open("r", encoding="utf-8") as handle:
            for line in handle:
                if not line.strip():
                    continue
                try:
                    record = json.loads(line)
                except json.JSONDecodeError:
                    continue
                if isinstance(record, dict):
                    yield record
