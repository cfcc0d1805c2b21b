from __future__ import annotations

import json
from pathlib import Path

from xml_indexing.logging import (
    EVENT_INDEX_BUILT,
    EVENT_INDEX_REUSED,
    IndexEvent,
    JsonlEventLogger,
    utc_timestamp,
)


def _event(name: str, root: str) -> IndexEvent:
    return IndexEvent(
        timestamp=utc_timestamp(),
        event=name,
        document="/data/catalog.xml",
        root=root,
        dimension="#",
        region_count=3,
        duration_ms=1,
        metadata={"namespace_count": 0},
    )


def test_events_are_one_json_object_per_line(tmp_path: Path) -> None:
    logger = JsonlEventLogger(tmp_path / "logs" / "events.jsonl")
    logger.append(_event(EVENT_INDEX_BUILT, "/catalog/item"))
    logger.append(_event(EVENT_INDEX_REUSED, "/catalog/item"))

    lines = logger.path.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 2
    record = json.loads(lines[0])
    assert set(record) == {
        "timestamp",
        "event",
        "document",
        "root",
        "dimension",
        "region_count",
        "duration_ms",
        "metadata",
    }
    assert record["timestamp"].endswith("Z")


def test_read_filters_and_bounds(tmp_path: Path) -> None:
    logger = JsonlEventLogger(tmp_path / "events.jsonl")
    for index in range(4):
        logger.append(_event(EVENT_INDEX_BUILT, f"/a/b{index}"))
    logger.append(_event(EVENT_INDEX_REUSED, "/a/b0"))

    built = logger.read(event=EVENT_INDEX_BUILT, limit=2)
    assert [record["root"] for record in built] == ["/a/b2", "/a/b3"]
    assert len(logger.read()) == 5
    assert logger.read(limit=0) == []


def test_unreadable_lines_are_skipped(tmp_path: Path) -> None:
    path = tmp_path / "events.jsonl"
    path.write_text('not json\n\n["list"]\n{"event": "index_built"}\n', encoding="utf-8")
    assert JsonlEventLogger(path).read() == [{"event": "index_built"}]


def test_read_filters_by_document(tmp_path: Path) -> None:
    logger = JsonlEventLogger(tmp_path / "events.jsonl")
    logger.append(_event(EVENT_INDEX_BUILT, "/a/b"))
    logger.append(
        IndexEvent(
            timestamp=utc_timestamp(),
            event=EVENT_INDEX_BUILT,
            document="/data/other.xml",
            root="/a/b",
            dimension="id",
            region_count=0,
            duration_ms=0,
        )
    )

    other = logger.read(document="/data/other.xml")
    assert len(other) == 1
    assert other[0]["dimension"] == "id"
    assert other[0]["metadata"] == {}
