"""Error taxonomy shared by the scanner, the index cache and the reader.

These are mutable: errors raised inside the lock context managers get their
traceback reassigned by contextlib on the way out.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True, eq=False)
class ParseError(Exception):
    """Raised when the source document cannot be scanned or parsed."""

    message: str

    def __str__(self) -> str:
        return self.message


@dataclass(slots=True, eq=False)
class UnknownParserBehaviorError(Exception):
    """Raised when the parser self-test matches no known offset table."""

    message: str
    observed: str

    def __str__(self) -> str:
        return f"{self.message} (observed: {self.observed})"


@dataclass(slots=True, eq=False)
class CacheIOError(Exception):
    """Raised when the cache store cannot be read or written."""

    message: str
    location: str

    def __str__(self) -> str:
        return f"{self.message}: {self.location}"


@dataclass(slots=True, eq=False)
class FallbackEvaluationError(Exception):
    """Raised when the full XPath evaluator rejects or fails a query."""

    message: str
    query: str

    def __str__(self) -> str:
        return f"{self.message}: {self.query}"
