"""Line classifier.

Decides whether a physical line starts a new log entry (a *head* line) and,
if so, which ErrorType and Severity it carries. Classification is lexical and
stateless; whether a line continues an open trace is decided by the trace
aggregator with :func:`is_continuation`.

Precedence:
  1. syslog ``<PRI>`` prefix
  2. explicit level token in the entry prefix (after an optional timestamp)
  3. error / warning keywords anywhere in the line
  4. a leading timestamp alone makes the line an info entry
"""

from __future__ import annotations

import re

from .models import ClassifiedLine, ErrorType, LogLine, Severity

_SYSLOG_PRI_RE = re.compile(r"^<(?P<pri>\d{1,3})>(?:\d\s+)?")

_TIMESTAMP_PREFIX_RE = re.compile(
    r"^\[?(?P<ts>"
    r"\d{4}-\d{2}-\d{2}[T ]\d{2}:\d{2}:\d{2}(?:[.,]\d{1,9})?(?:Z|[+-]\d{2}:?\d{2})?"
    r"|\d{4}/\d{2}/\d{2}[T ]\d{2}:\d{2}:\d{2}(?:[.,]\d{1,9})?"
    r"|[A-Z][a-z]{2}\s+\d{1,2}\s+\d{2}:\d{2}:\d{2}"
    r"|\d{2}:\d{2}:\d{2}(?:[.,]\d{1,9})?"
    r")\]?(?=\s|$|[\]|,:])"
)

_LEVEL_TOKENS: dict[str, ErrorType] = {
    "FATAL": ErrorType.ERROR,
    "CRITICAL": ErrorType.ERROR,
    "CRIT": ErrorType.ERROR,
    "EMERG": ErrorType.ERROR,
    "ALERT": ErrorType.ERROR,
    "PANIC": ErrorType.ERROR,
    "SEVERE": ErrorType.ERROR,
    "ERROR": ErrorType.ERROR,
    "ERR": ErrorType.ERROR,
    "WARNING": ErrorType.WARNING,
    "WARN": ErrorType.WARNING,
    "INFO": ErrorType.INFO,
    "NOTICE": ErrorType.INFO,
    "DEBUG": ErrorType.INFO,
    "TRACE": ErrorType.INFO,
    "VERBOSE": ErrorType.INFO,
}

# Level tokens must look like tags (uppercase, bracketed, "X:" or key=value), not prose.
_PREFIX_WINDOW = 4
_TOKEN_STRIP = "[]()<>{}:|,;-="

_ERROR_MARKER_RE = re.compile(
    r"(?:error|exception)s?\b"
    r"|\b(?:fatal|critical|panic|segfault)\b"
    r"|^Traceback \(most recent call last\)",
    re.IGNORECASE,
)
_WARNING_MARKER_RE = re.compile(r"\bwarn(?:ing)?s?\b", re.IGNORECASE)

_CRITICAL_RE = re.compile(
    r"\b(?:fatal|crit(?:ical)?|panic(?:ked)?|segfault|emerg(?:ency)?)\b|segmentation fault",
    re.IGNORECASE,
)
_HIGH_RE = re.compile(r"exception|\b(?:null|undefined|reference)\b", re.IGNORECASE)
_WARNING_ESCALATION_RE = re.compile(r"\b(?:severe|critical|fatal)\b", re.IGNORECASE)

_CONTINUATION_RES: tuple[re.Pattern[str], ...] = (
    re.compile(r"^\s+\S"),
    re.compile(r"^at\s+\S"),
    re.compile(r"^(?:Caused by|Suppressed):", re.IGNORECASE),
    re.compile(r"^\.\.\.\s*\d+\s+(?:more|common frames omitted)\b"),
    re.compile(r"^(?:#\d+|\[\s*\d+\s*\]|\[bt\])\s"),
    re.compile(r"^goroutine \d+ \[[^\]]*\]:?\s*$"),
    # go frames: main.main(), pkg.(*T).Run(0xc000...), created by ...
    re.compile(r"^[\w./-]+(?:\.\(\*?\w+\))?\.\w+\(.*\)$"),
    re.compile(r"^created by \S+"),
    re.compile(r"^>?\s*\d+\s*[|>]\s"),
    re.compile(
        r"^(?:During handling of the above exception"
        r"|The above exception was the direct cause of the following exception)"
    ),
)


def leading_timestamp(text: str) -> str | None:
    """Return the raw leading timestamp of a line (after an optional syslog PRI)."""
    m = _SYSLOG_PRI_RE.match(text)
    rest = text[m.end():] if m else text
    ts = _TIMESTAMP_PREFIX_RE.match(rest)
    return ts.group("ts") if ts else None


def is_continuation(text: str) -> bool:
    """True for lines shaped like stack frames or other trace continuations."""
    return any(r.match(text) for r in _CONTINUATION_RES)


def _level_from_pri(pri: int) -> ErrorType:
    sev = pri % 8  # 0..7
    if sev <= 3:
        return ErrorType.ERROR
    if sev == 4:
        return ErrorType.WARNING
    return ErrorType.INFO


def _level_token(token: str) -> ErrorType | None:
    tagged = token[:1] in "[(<" or token.endswith(":") or "=" in token
    if "=" in token:
        # level=error / severity=WARN
        token = token.rsplit("=", 1)[1]
    cleaned = token.strip(_TOKEN_STRIP)
    if not cleaned or not (tagged or cleaned.isupper()):
        return None
    return _LEVEL_TOKENS.get(cleaned.upper())


def _explicit_type(text: str) -> tuple[ErrorType | None, bool]:
    """Return (type from PRI or level tag, whether the line has an entry prefix)."""
    rest = text
    has_prefix = False

    pri = _SYSLOG_PRI_RE.match(rest)
    if pri:
        return _level_from_pri(int(pri.group("pri"))), True

    ts = _TIMESTAMP_PREFIX_RE.match(rest)
    if ts:
        has_prefix = True
        rest = rest[ts.end():]

    tokens = rest.split(None, _PREFIX_WINDOW)[:_PREFIX_WINDOW]
    if not has_prefix:
        tokens = tokens[:1]
    for token in tokens:
        level = _level_token(token)
        if level is not None:
            return level, True
    return None, has_prefix


def _keyword_type(text: str) -> ErrorType | None:
    if _ERROR_MARKER_RE.search(text):
        return ErrorType.ERROR
    if _WARNING_MARKER_RE.search(text):
        return ErrorType.WARNING
    return None


def severity_of(error_type: ErrorType, text: str) -> Severity:
    """Refine a type into a severity (total and deterministic)."""
    if error_type is ErrorType.ERROR:
        if _CRITICAL_RE.search(text):
            return Severity.CRITICAL
        if _HIGH_RE.search(text):
            return Severity.HIGH
        return Severity.MEDIUM
    if error_type is ErrorType.WARNING:
        if _WARNING_ESCALATION_RE.search(text):
            return Severity.MEDIUM
        return Severity.LOW
    return Severity.LOW


def classify_text(text: str) -> tuple[ErrorType, Severity] | None:
    """Classify raw text; None when it does not start a log entry."""
    if not text.strip():
        return None

    error_type, has_prefix = _explicit_type(text)
    if error_type is None:
        error_type = _keyword_type(text)
    if error_type is None:
        if not has_prefix:
            return None
        error_type = ErrorType.INFO
    return error_type, severity_of(error_type, text)


def classify_line(line: LogLine) -> ClassifiedLine | None:
    """Classify a physical line, or return None if it is not a head line."""
    out = classify_text(line.text)
    if out is None:
        return None
    error_type, severity = out
    return ClassifiedLine(line=line, error_type=error_type, severity=severity)
