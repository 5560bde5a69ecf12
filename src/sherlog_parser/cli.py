from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from collections.abc import Sequence
from dataclasses import replace
from pathlib import Path
from typing import Any

from sherlog_parser.core.config import resolve_engine_config
from sherlog_parser.core.errors import SherlogError
from sherlog_parser.core.log_service import iter_file_lines, parse_file
from sherlog_parser.core.patterns import load_pattern_export, to_custom_patterns
from sherlog_parser.tools.analysis import (
    cluster_errors_impl,
    detect_pattern_impl,
    extract_template_impl,
)

LOG_LEVEL_ENV = "SHERLOG_LOG_LEVEL"


def _configure_logging(verbose: bool) -> None:
    level_name = "DEBUG" if verbose else os.getenv(LOG_LEVEL_ENV, "WARNING").upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _positive_int(s: str) -> int:
    try:
        value = int(s)
    except ValueError as e:
        raise argparse.ArgumentTypeError("must be an integer") from e
    if value < 1:
        raise argparse.ArgumentTypeError("must be >= 1")
    return value


def _ratio(s: str) -> float:
    try:
        value = float(s)
    except ValueError as e:
        raise argparse.ArgumentTypeError("must be a number") from e
    if not 0.0 <= value <= 1.0:
        raise argparse.ArgumentTypeError("must be between 0 and 1")
    return value


def _emit(payload: Any) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False))


def _cmd_parse(args: argparse.Namespace) -> None:
    cfg = resolve_engine_config()
    if args.max_results is not None:
        cfg = replace(cfg, max_results=args.max_results)

    patterns = None
    if args.patterns:
        patterns = to_custom_patterns(load_pattern_export(args.patterns))

    result = asyncio.run(
        parse_file(
            Path(args.log_path),
            custom_patterns=patterns,
            config=cfg,
            stream=not args.no_stream,
            encoding=args.encoding,
        )
    )
    _emit(result.model_dump(mode="json"))


async def _read_messages(path: Path, encoding: str) -> list[str]:
    return [line async for line in iter_file_lines(path, encoding=encoding) if line.strip()]


def _cmd_cluster(args: argparse.Namespace) -> None:
    messages = asyncio.run(_read_messages(Path(args.path), args.encoding))
    _emit(cluster_errors_impl(messages=messages, threshold=args.threshold))


def _cmd_detect(args: argparse.Namespace) -> None:
    _emit(detect_pattern_impl(examples=args.examples))


def _cmd_template(args: argparse.Namespace) -> None:
    _emit(extract_template_impl(message=args.message))


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="sherlog",
        description="Parse logs into deduplicated error templates and learn custom patterns.",
    )
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging on stderr")
    sub = p.add_subparsers(dest="command", required=True)

    sp = sub.add_parser("parse", help="Parse a log file (plain or .gz)")
    sp.add_argument("log_path")
    sp.add_argument("--no-stream", action="store_true", help="Read the whole file, then parse")
    sp.add_argument("--max", dest="max_results", type=_positive_int, default=None, help="Max errors to return (default: no cap)")
    sp.add_argument("--patterns", default=None, help="Pattern export JSON applied before built-in detection")
    sp.add_argument("--encoding", default="utf-8")
    sp.set_defaults(func=_cmd_parse)

    dp = sub.add_parser("detect", help="Infer a pattern from example messages")
    dp.add_argument("examples", nargs="+")
    dp.set_defaults(func=_cmd_detect)

    cp = sub.add_parser("cluster", help="Group similar messages (one per line in PATH)")
    cp.add_argument("path")
    cp.add_argument("--threshold", type=_ratio, default=None, help="Similarity in [0, 1]")
    cp.add_argument("--encoding", default="utf-8")
    cp.set_defaults(func=_cmd_cluster)

    tp = sub.add_parser("template", help="Show the template and variables of one message")
    tp.add_argument("message")
    tp.set_defaults(func=_cmd_template)
    return p


def main(argv: Sequence[str] | None = None) -> None:
    args = _build_parser().parse_args(argv)
    _configure_logging(args.verbose)

    try:
        args.func(args)
    except FileNotFoundError as e:
        print(str(e), file=sys.stderr)
        raise SystemExit(2)
    except (SherlogError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        raise SystemExit(2)


if __name__ == "__main__":
    main()
