"""File reading helpers that feed the parsing engine.

This module is the main integration point between log files on disk and the
engine: it reads text with aiofiles (plain or gzip), feeds a
:class:`StreamingParser` line by line and yields to the event loop between
batches so large files do not block other tasks.
"""

from __future__ import annotations

import asyncio
import gzip
import logging
import time
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from pathlib import Path

import aiofiles
from aiofiles.threadpool import wrap

from .config import EngineConfig, resolve_engine_config
from .engine import StreamingParser, parse
from .errors import InputError
from .models import ParseResult
from .normalizer import PatternsArg, as_pattern_set

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int], None]


@asynccontextmanager
async def _open_text(path: Path, *, encoding: str, decode_errors: str):
    """Open a log file for async text reading (plain or gzip).

    Only ``\\n`` ends a line and no newline translation happens, so lines
    match the one-shot splitting of the same content.
    """
    if path.suffix.lower() == ".gz":
        f = gzip.open(path, mode="rt", encoding=encoding, errors=decode_errors, newline="\n")
        af = wrap(f)
        try:
            yield af
        finally:
            await af.close()
    else:
        async with aiofiles.open(
            path, encoding=encoding, errors=decode_errors, newline="\n"
        ) as f:
            yield f


def _require_file(log_path: str | Path) -> Path:
    path = Path(log_path)
    if not path.is_file():
        raise FileNotFoundError(f"Log file not found: {path}")
    return path


async def iter_file_lines(
    log_path: str | Path,
    *,
    encoding: str = "utf-8",
    decode_errors: str = "strict",
) -> AsyncIterator[str]:
    """Yield the physical lines of a file, without line terminators."""
    path = _require_file(log_path)
    try:
        async with _open_text(path, encoding=encoding, decode_errors=decode_errors) as f:
            async for line in f:
                yield line.rstrip("\r\n")
    except UnicodeDecodeError as exc:
        raise InputError(f"{path} is not valid {encoding} text: {exc}") from exc


async def read_text(
    log_path: str | Path,
    *,
    encoding: str = "utf-8",
    decode_errors: str = "strict",
) -> str:
    path = _require_file(log_path)
    try:
        async with _open_text(path, encoding=encoding, decode_errors=decode_errors) as f:
            return await f.read()
    except UnicodeDecodeError as exc:
        raise InputError(f"{path} is not valid {encoding} text: {exc}") from exc


async def parse_file(
    log_path: str | Path,
    *,
    custom_patterns: PatternsArg = None,
    config: EngineConfig | None = None,
    stream: bool = True,
    encoding: str = "utf-8",
    decode_errors: str = "strict",
    on_progress: ProgressCallback | None = None,
) -> ParseResult:
    """Parse a log file.

    With ``stream=True`` only the aggregation state is kept in memory; the
    file is fed in batches of ``config.stream_batch_lines`` lines with a
    cooperative yield after each batch. ``stream=False`` reads the whole file
    and uses the one-shot path (same result).

    Without an explicit ``config`` the environment overrides apply.
    """
    path = _require_file(log_path)
    cfg = config if config is not None else resolve_engine_config()
    patterns = as_pattern_set(custom_patterns)
    started = time.perf_counter()

    if not stream:
        text = await read_text(path, encoding=encoding, decode_errors=decode_errors)
        result = parse(text, custom_patterns=patterns, config=cfg)
    else:
        with StreamingParser(patterns, cfg) as parser:
            async for line in iter_file_lines(
                path, encoding=encoding, decode_errors=decode_errors
            ):
                parser.process_line(line)
                if parser.lines_processed % cfg.stream_batch_lines == 0:
                    if on_progress is not None:
                        on_progress(parser.lines_processed)
                    await asyncio.sleep(0)
            if on_progress is not None and parser.lines_processed % cfg.stream_batch_lines:
                on_progress(parser.lines_processed)
            result = parser.get_result()

    logger.info(
        "Parsed %s: %d lines, %d errors, %d templates in %.3fs",
        path,
        result.summary.total_lines,
        result.summary.total_errors,
        len(result.errors),
        time.perf_counter() - started,
    )
    return result
