"""Indexed access to fragments of large XML documents."""

from .config import ConfigOverrides, ReaderConfig, default_config, load_effective_config
from .errors import CacheIOError, FallbackEvaluationError, ParseError, UnknownParserBehaviorError
from .index import Region
from .reader import Reader

__all__ = [
    "CacheIOError",
    "ConfigOverrides",
    "FallbackEvaluationError",
    "ParseError",
    "Reader",
    "ReaderConfig",
    "Region",
    "UnknownParserBehaviorError",
    "default_config",
    "load_effective_config",
]
