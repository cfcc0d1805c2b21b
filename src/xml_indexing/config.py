"""Configuration loading and deterministic merge order."""

from __future__ import annotations

import tempfile
import tomllib
from dataclasses import dataclass
from pathlib import Path

CONFIG_FILE_NAME = "xml_indexing.toml"
DSN_FILE_SCHEME = "file://"
DSN_PLACEHOLDER = "%s"
MAX_GZ_LEVEL = 9
DEFAULT_BUFFER_SIZE = 1024 * 1024
MAX_BUFFER_SIZE_CAP = 64 * 1024 * 1024


@dataclass(slots=True, frozen=True)
class ReaderConfig:
    """Fully merged reader configuration."""

    dsn: str
    gz_level: int
    buffer_size: int
    events_path: Path | None

    def store_location(self, key: str) -> Path:
        """Resolve the cache record path for one document identity key."""
        template = self.dsn[len(DSN_FILE_SCHEME) :]
        return Path(template.replace(DSN_PLACEHOLDER, key))

    def to_public_dict(self) -> dict[str, object]:
        """Return serializable config snapshot."""
        return {
            "cache": {
                "dsn": self.dsn,
                "gz_level": self.gz_level,
            },
            "scan": {
                "buffer_size": self.buffer_size,
            },
            "logging": {
                "events_path": str(self.events_path) if self.events_path is not None else None,
            },
        }


@dataclass(slots=True, frozen=True)
class ConfigOverrides:
    """Optional caller overrides applied at highest precedence."""

    dsn: str | None = None
    gz_level: int | None = None
    buffer_size: int | None = None
    events_path: Path | None = None


def default_dsn() -> str:
    """Default cache location: one .xi file per document in the system temp dir."""
    tmpdir = Path(tempfile.gettempdir()).as_posix()
    return f"{DSN_FILE_SCHEME}{tmpdir}/{DSN_PLACEHOLDER}.xi"


def default_config() -> ReaderConfig:
    """Build the default configuration."""
    return ReaderConfig(
        dsn=default_dsn(),
        gz_level=0,
        buffer_size=DEFAULT_BUFFER_SIZE,
        events_path=None,
    )


def load_config_file(path: Path) -> dict[str, object]:
    """Load an optional TOML config file."""
    if not path.exists():
        return {}
    with path.open("rb") as handle:
        payload = tomllib.load(handle)
    if not isinstance(payload, dict):
        raise ValueError(f"{path.name} must contain a top-level table.")
    return payload


def _get_table(payload: dict[str, object], key: str) -> dict[str, object]:
    value = payload.get(key, {})
    if not isinstance(value, dict):
        raise ValueError(f"Config section '{key}' must be a table.")
    return value


def merge_config(
    base: ReaderConfig, payload: dict[str, object], overrides: ConfigOverrides
) -> ReaderConfig:
    """Merge defaults, config file, then caller overrides."""
    cache_payload = _get_table(payload, "cache")
    scan_payload = _get_table(payload, "scan")
    logging_payload = _get_table(payload, "logging")

    dsn = base.dsn
    if "dsn" in cache_payload:
        dsn = _validate_dsn(cache_payload["dsn"], "cache.dsn")
    gz_level = _optional_gz_level(cache_payload.get("gz_level"), "cache.gz_level", base.gz_level)
    buffer_size = _optional_positive_int_with_cap(
        scan_payload.get("buffer_size"),
        "scan.buffer_size",
        base.buffer_size,
        MAX_BUFFER_SIZE_CAP,
    )
    events_path = base.events_path
    if "events_path" in logging_payload:
        raw_events_path = logging_payload["events_path"]
        if not isinstance(raw_events_path, str) or not raw_events_path:
            raise ValueError("Config field 'logging.events_path' must be a non-empty string.")
        events_path = Path(raw_events_path)

    merged = ReaderConfig(
        dsn=dsn,
        gz_level=gz_level,
        buffer_size=buffer_size,
        events_path=events_path,
    )
    return apply_overrides(merged, overrides)


def apply_overrides(config: ReaderConfig, overrides: ConfigOverrides) -> ReaderConfig:
    """Apply caller overrides at highest precedence."""
    dsn = config.dsn
    if overrides.dsn is not None:
        dsn = _validate_dsn(overrides.dsn, "overrides.dsn")
    return ReaderConfig(
        dsn=dsn,
        gz_level=_optional_gz_level(overrides.gz_level, "overrides.gz_level", config.gz_level),
        buffer_size=_optional_positive_int_with_cap(
            overrides.buffer_size,
            "overrides.buffer_size",
            config.buffer_size,
            MAX_BUFFER_SIZE_CAP,
        ),
        events_path=overrides.events_path or config.events_path,
    )


def load_effective_config(
    config_path: Path | None = None, overrides: ConfigOverrides | None = None
) -> ReaderConfig:
    """Load effective config using merge order defaults -> config file -> overrides."""
    payload = load_config_file(config_path) if config_path is not None else {}
    return merge_config(default_config(), payload, overrides or ConfigOverrides())


def _validate_dsn(value: object, name: str) -> str:
    if not isinstance(value, str) or not value.startswith(DSN_FILE_SCHEME):
        raise ValueError(f"Config field '{name}' must be a string starting with 'file://'.")
    if value.count(DSN_PLACEHOLDER) != 1:
        raise ValueError(f"Config field '{name}' must contain exactly one '%s' placeholder.")
    if len(value) == len(DSN_FILE_SCHEME) + len(DSN_PLACEHOLDER):
        raise ValueError(f"Config field '{name}' must name a path around '%s'.")
    return value


def _optional_gz_level(value: object, name: str, default: int) -> int:
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= MAX_GZ_LEVEL:
        raise ValueError(f"Config field '{name}' must be an integer between 0 and {MAX_GZ_LEVEL}.")
    return value


def _optional_positive_int_with_cap(
    value: object,
    name: str,
    default: int,
    cap: int | None,
) -> int:
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValueError(f"Config field '{name}' must be a positive integer.")
    if cap is not None and value > cap:
        raise ValueError(f"Config field '{name}' must be <= {cap}.")
    return value
