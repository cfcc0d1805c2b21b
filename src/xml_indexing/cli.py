"""Command line entrypoint: run one query and print a JSON envelope."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import TextIO

from xml_indexing.config import CONFIG_FILE_NAME, ConfigOverrides, load_effective_config
from xml_indexing.errors import FallbackEvaluationError, ParseError, UnknownParserBehaviorError
from xml_indexing.reader import Reader


def build_arg_parser() -> argparse.ArgumentParser:
    """Build argument parser for one query invocation."""
    parser = argparse.ArgumentParser(prog="xml-index")
    parser.add_argument("file")
    parser.add_argument("query")
    parser.add_argument("--offset", type=int, required=False, default=0)
    parser.add_argument("--limit", type=int, required=False, default=None)
    parser.add_argument("--config", required=False, default=None)
    parser.add_argument("--dsn", required=False, default=None)
    parser.add_argument("--gz-level", type=int, required=False, default=None)
    parser.add_argument("--buffer-size", type=int, required=False, default=None)
    parser.add_argument("--events-path", required=False, default=None)
    parser.add_argument("--namespaces", action="store_true")
    return parser


def success_response(result: dict[str, object], warnings: list[str]) -> dict[str, object]:
    """Build success envelope."""
    return {"ok": True, "result": result, "warnings": warnings}


def error_response(code: str, message: str) -> dict[str, object]:
    """Build explicit error envelope."""
    return {"ok": False, "result": {}, "warnings": [], "error": {"code": code, "message": message}}


def run(argv: list[str] | None = None, out_stream: TextIO | None = None) -> int:
    """Execute one query; write the envelope to out_stream and return the exit status."""
    args = build_arg_parser().parse_args(argv)
    stream = out_stream if out_stream is not None else sys.stdout
    response = _execute(args)
    stream.write(f"{json.dumps(response, sort_keys=True)}\n")
    stream.flush()
    return 0 if response["ok"] else 1


def main(argv: list[str] | None = None) -> int:
    """Entrypoint for the xml-index console script."""
    return run(argv)


def _execute(args: argparse.Namespace) -> dict[str, object]:
    document = Path(args.file)
    if not document.is_file():
        return error_response("FILE_NOT_FOUND", f"XML file not found: {args.file}")

    config_path = Path(args.config) if args.config is not None else Path(CONFIG_FILE_NAME)
    overrides = ConfigOverrides(
        dsn=args.dsn,
        gz_level=args.gz_level,
        buffer_size=args.buffer_size,
        events_path=Path(args.events_path) if args.events_path is not None else None,
    )
    try:
        config = load_effective_config(config_path=config_path, overrides=overrides)
    except ValueError as error:
        return error_response("INVALID_CONFIG", str(error))

    try:
        with Reader(document, config) as reader:
            count = reader.find(args.query)
            matches = reader.fetch_strings(offset=args.offset, limit=args.limit)
            result: dict[str, object] = {"count": count, "matches": matches}
            if args.namespaces:
                result["namespaces"] = reader.get_namespaces()
            warnings = list(reader.warnings)
    except ParseError as error:
        return error_response("PARSE_ERROR", str(error))
    except UnknownParserBehaviorError as error:
        return error_response("UNKNOWN_PARSER_BEHAVIOR", str(error))
    except FallbackEvaluationError as error:
        return error_response("FALLBACK_EVALUATION_ERROR", str(error))
    except ValueError as error:
        return error_response("INVALID_PARAMS", str(error))
    return success_response(result, warnings)


if __name__ == "__main__":
    raise SystemExit(main())
