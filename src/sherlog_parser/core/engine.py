"""Parsing engine: one-shot parse, streaming driver and the pattern engine.

The one-shot path is implemented by feeding a :class:`StreamingParser`, so both
paths produce identical results for the same lines.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Sequence
from types import TracebackType

from .aggregation import AggregationTable
from .config import EngineConfig
from .errors import InputError, InvalidState
from .fingerprint import fingerprint as _fingerprint
from .learning import DetectedPattern
from .learning import cluster_errors as _cluster_errors
from .learning import detect_pattern as _detect_pattern
from .models import ExtractedTemplate, LogLine, ParseResult, StreamState
from .normalizer import Normalizer, PatternsArg, as_pattern_set
from .patterns import EMPTY_PATTERN_SET, CustomPatternSet
from .traces import TraceAggregator

logger = logging.getLogger(__name__)


def iter_lines(content: str) -> Iterator[str]:
    """Split on ``\\n`` (``\\r\\n`` tolerated); a final newline adds no empty line."""
    if not content:
        return
    lines = content.split("\n")
    if lines[-1] == "":
        lines.pop()
    for line in lines:
        yield line[:-1] if line.endswith("\r") else line


def decode_content(content: str | bytes, encoding: str = "utf-8") -> str:
    if isinstance(content, str):
        return content
    if isinstance(content, (bytes, bytearray, memoryview)):
        try:
            return bytes(content).decode(encoding)
        except UnicodeDecodeError as exc:
            raise InputError(f"content is not valid {encoding} text: {exc}") from exc
        except LookupError as exc:
            raise InputError(f"unknown encoding: {encoding}") from exc
    raise InputError(f"content must be text or bytes, got {type(content).__name__}")


class StreamingParser:
    """Incremental parser with an explicit lifecycle.

    ``FRESH -> COLLECTING -> FINALIZED -> RELEASED``. ``process_line`` is valid
    while fresh or collecting, ``get_result`` exactly once before release,
    ``release`` any number of times. Memory is bounded by the number of
    distinct templates plus one open trace.

    The custom pattern set is captured when the parser is created, so
    changing an engine's patterns mid-stream does not affect it.
    """

    def __init__(
        self,
        custom_patterns: PatternsArg = None,
        config: EngineConfig | None = None,
    ) -> None:
        self._config = config or EngineConfig()
        self._normalizer: Normalizer | None = Normalizer(custom_patterns)
        self._aggregator: TraceAggregator | None = TraceAggregator()
        self._table: AggregationTable | None = AggregationTable()
        self._line_no = 0
        self._state = StreamState.FRESH

    @property
    def state(self) -> StreamState:
        return self._state

    @property
    def lines_processed(self) -> int:
        return self._line_no

    def _require(self, operation: str, *allowed: StreamState) -> None:
        if self._state not in allowed:
            logger.warning("Rejected %s() on a %s parser", operation, self._state.value)
            raise InvalidState(operation, self._state)

    def process_line(self, line: str) -> None:
        """Feed one physical line, in file order."""
        self._require("process_line", StreamState.FRESH, StreamState.COLLECTING)
        self._state = StreamState.COLLECTING

        self._line_no += 1
        self._table.count_line()
        raw = self._aggregator.feed(LogLine(self._line_no, line.rstrip("\r\n")))
        if raw is not None:
            self._table.add(raw, self._normalizer.extract(raw.message))

    def process_lines(self, lines: Iterable[str]) -> None:
        for line in lines:
            self.process_line(line)

    def get_result(self) -> ParseResult:
        """Close any open trace and return the final result (once)."""
        self._require("get_result", StreamState.FRESH, StreamState.COLLECTING)

        raw = self._aggregator.close()
        if raw is not None:
            self._table.add(raw, self._normalizer.extract(raw.message))
        result = self._table.finalize(self._config.max_results)
        self._state = StreamState.FINALIZED
        self._aggregator = None
        return result

    def release(self) -> None:
        """Drop all in-memory state. Safe to call more than once."""
        if self._state is StreamState.RELEASED:
            return
        logger.debug("Releasing parser after %d lines (%s)", self._line_no, self._state.value)
        self._aggregator = None
        self._table = None
        self._normalizer = None
        self._state = StreamState.RELEASED

    def __enter__(self) -> StreamingParser:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.release()


def parse(
    content: str | bytes,
    *,
    custom_patterns: PatternsArg = None,
    config: EngineConfig | None = None,
    encoding: str = "utf-8",
) -> ParseResult:
    """Parse a whole log in one call."""
    text = decode_content(content, encoding)
    with StreamingParser(custom_patterns, config) as stream:
        stream.process_lines(iter_lines(text))
        return stream.get_result()


class PatternEngine:
    """Engine instance holding a custom pattern set for subsequent parses.

    Patterns set here apply to every parse and stream started from this
    instance until :meth:`clear_custom_patterns` is called. Patterns passed
    directly to :meth:`parse` or :meth:`stream` take precedence over them.
    """

    def __init__(self, config: EngineConfig | None = None) -> None:
        self.config = config or EngineConfig()
        self._patterns: CustomPatternSet = EMPTY_PATTERN_SET

    @property
    def custom_patterns(self) -> CustomPatternSet:
        return self._patterns

    def set_custom_patterns(self, patterns: PatternsArg) -> None:
        self._patterns = as_pattern_set(patterns)
        logger.debug("Custom patterns set (%d rules)", len(self._patterns))

    def clear_custom_patterns(self) -> None:
        self._patterns = EMPTY_PATTERN_SET

    def _active(self, custom_patterns: PatternsArg) -> CustomPatternSet:
        return self._patterns if custom_patterns is None else as_pattern_set(custom_patterns)

    def parse(
        self,
        content: str | bytes,
        *,
        custom_patterns: PatternsArg = None,
        encoding: str = "utf-8",
    ) -> ParseResult:
        return parse(
            content,
            custom_patterns=self._active(custom_patterns),
            config=self.config,
            encoding=encoding,
        )

    def stream(self, custom_patterns: PatternsArg = None) -> StreamingParser:
        return StreamingParser(self._active(custom_patterns), self.config)

    def extract_template(self, message: str) -> ExtractedTemplate:
        return Normalizer(self._patterns).extract(message)

    def normalize(self, message: str) -> str:
        return self.extract_template(message).template

    def fingerprint(self, message_or_template: str) -> str:
        return _fingerprint(message_or_template, self._patterns)

    def detect_pattern(self, examples: Sequence[str]) -> DetectedPattern | None:
        return _detect_pattern(examples)

    def cluster_errors(
        self, messages: Sequence[str], threshold: float | None = None
    ) -> list[list[str]]:
        if threshold is None:
            threshold = self.config.cluster_threshold
        return _cluster_errors(messages, threshold)
