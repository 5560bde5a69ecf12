"""Trace aggregator.

Merges a head line with the continuation lines that follow it (stack frames,
``Caused by:`` chains, indented context) into one :class:`RawError`.

The aggregator is a two-state machine. While *idle* there is no open entry;
a head line opens one and moves it to *collecting*. While collecting,
continuation-shaped lines are appended verbatim, a new head line closes the
open entry and opens the next one, and any other non-blank line closes the
open entry. Blank lines are held back and only kept if another continuation
line follows them. :meth:`TraceAggregator.close` force-closes at end of input.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from .classifier import classify_line, classify_text, is_continuation, leading_timestamp
from .models import ClassifiedLine, ErrorType, LogLine, RawError, Severity

_PY_TRACEBACK_HEAD = "Traceback (most recent call last):"
_PY_CHAIN_MARKERS = (
    "During handling of the above exception",
    "The above exception was the direct cause",
)
_EXCEPTION_SUMMARY_RE = re.compile(
    r"^(?:[A-Za-z_]\w*\.)*[A-Z]\w*(?:Error|Exception|Exit|Interrupt|Warning)\b(?::.*)?$"
)

_PY_LOCATION_RE = re.compile(r'File "(?P<file>[^"]+)", line (?P<line>\d+)')
_PATH_LOCATION_RE = re.compile(
    r"(?P<file>"
    r"(?:[A-Za-z]:)?[\w./\\~@-]*[\w-]\.[A-Za-z]\w*"  # something.ext
    r"|(?:[A-Za-z]:)?[\w.~@-]*[/\\][\w./\\~@-]+"  # extensionless path
    r"):(?P<line>\d+)(?::(?P<column>\d+))?"
)

Location = tuple[str, int, int | None]


def extract_location(text: str) -> Location | None:
    """Return (file, line, column) from a ``path:line[:col]`` shape, if any."""
    m = _PY_LOCATION_RE.search(text)
    if m:
        return m.group("file"), int(m.group("line")), None
    m = _PATH_LOCATION_RE.search(text)
    if m:
        column = m.group("column")
        return m.group("file"), int(m.group("line")), int(column) if column else None
    return None


@dataclass(slots=True)
class _OpenEntry:
    head: ClassifiedLine
    message: str
    error_type: ErrorType
    severity: Severity
    trace: list[str] = field(default_factory=list)
    location: Location | None = None
    pending_blanks: int = 0
    python_traceback: bool = False
    chained: bool = False
    summarized: bool = False

    @classmethod
    def start(cls, head: ClassifiedLine) -> _OpenEntry:
        text = head.line.text
        return cls(
            head=head,
            message=text.strip(),
            error_type=head.error_type,
            severity=head.severity,
            python_traceback=text.startswith(_PY_TRACEBACK_HEAD),
        )

    def append(self, text: str) -> None:
        if self.pending_blanks:
            self.trace.extend([""] * self.pending_blanks)
            self.pending_blanks = 0
        self.trace.append(text)
        if self.location is None:
            self.location = extract_location(text)

    def absorb(self, text: str) -> bool:
        """Append ``text`` if it continues this entry; False means it does not."""
        if self.python_traceback:
            if self.chained and text.startswith(_PY_TRACEBACK_HEAD):
                self.chained = False
                self.summarized = False
                self.append(text)
                return True
            if not self.summarized and _EXCEPTION_SUMMARY_RE.match(text):
                # With chained tracebacks the last summary names the exception raised.
                self.summarized = True
                self.message = text.strip()
                classified = classify_text(text)
                if classified is not None:
                    self.error_type, self.severity = classified
                self.append(text)
                return True
        if not is_continuation(text):
            return False
        if self.python_traceback and text.startswith(_PY_CHAIN_MARKERS):
            self.chained = True
        self.append(text)
        return True

    def to_raw_error(self) -> RawError:
        head_text = self.head.line.text
        location = self.location or extract_location(head_text)
        file, line, column = location if location is not None else (None, None, None)
        return RawError(
            line_no=self.head.line.line_no,
            error_type=self.error_type,
            severity=self.severity,
            message=self.message,
            full_trace="\n".join([head_text, *self.trace]),
            file=file,
            line=line,
            column=column,
            timestamp=leading_timestamp(head_text),
        )


class TraceAggregator:
    """Turns classified lines into RawErrors, one open entry at a time."""

    def __init__(self) -> None:
        self._open: _OpenEntry | None = None

    @property
    def collecting(self) -> bool:
        return self._open is not None

    def feed(self, line: LogLine) -> RawError | None:
        """Consume one line; return the entry it closed, if any."""
        text = line.text
        entry = self._open

        if not text.strip():
            if entry is not None:
                entry.pending_blanks += 1
            return None

        if entry is not None and entry.absorb(text):
            return None

        closed = self.close()
        head = classify_line(line)
        if head is not None:
            self._open = _OpenEntry.start(head)
        return closed

    def close(self) -> RawError | None:
        """Force-close the open entry (end of input) and return it."""
        entry, self._open = self._open, None
        if entry is None:
            return None
        return entry.to_raw_error()
