"""Structured logging utilities."""

from .events import (
    EVENT_CACHE_DEGRADED,
    EVENT_INDEX_BUILT,
    EVENT_INDEX_REUSED,
    IndexEvent,
    JsonlEventLogger,
    utc_timestamp,
)

__all__ = [
    "EVENT_CACHE_DEGRADED",
    "EVENT_INDEX_BUILT",
    "EVENT_INDEX_REUSED",
    "IndexEvent",
    "JsonlEventLogger",
    "utc_timestamp",
]
