"""Aggregation table: fingerprint -> accumulating ParsedError.

First occurrence wins for every representative field; later occurrences
only bump the count. Output is sorted by occurrences (descending) with ties
in first-seen order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from pydantic import ValidationError

from .errors import MalformedResult
from .fingerprint import error_id, fingerprint_template
from .models import (
    ErrorType,
    ExtractedTemplate,
    LogStats,
    ParsedError,
    ParseResult,
    RawError,
)

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class _Slot:
    first: RawError
    extracted: ExtractedTemplate
    fingerprint: str
    occurrences: int = 1

    def to_parsed_error(self) -> ParsedError:
        raw = self.first
        return ParsedError(
            id=error_id(self.fingerprint),
            type=raw.error_type,
            severity=raw.severity,
            message=raw.message,
            template=self.extracted.template,
            variables=list(self.extracted.variables),
            full_trace=raw.full_trace,
            file=raw.file,
            line=raw.line,
            column=raw.column,
            timestamp=raw.timestamp,
            occurrences=self.occurrences,
            fingerprint=self.fingerprint,
            first_line=raw.line_no,
        )


class AggregationTable:
    """Per-pass state: counters plus one slot per distinct fingerprint."""

    def __init__(self) -> None:
        # dicts keep insertion order, which is the tie-break order.
        self._slots: dict[str, _Slot] = {}
        self._error_fingerprints: set[str] = set()
        self._pattern_hits: dict[str, int] = {}
        self.total_lines = 0
        self._totals = {t: 0 for t in ErrorType}

    def __len__(self) -> int:
        return len(self._slots)

    def count_line(self) -> None:
        self.total_lines += 1

    def add(self, raw: RawError, extracted: ExtractedTemplate) -> str:
        """Record one RawError; return its fingerprint."""
        fp = fingerprint_template(extracted.template)
        slot = self._slots.get(fp)
        if slot is None:
            self._slots[fp] = _Slot(first=raw, extracted=extracted, fingerprint=fp)
        else:
            slot.occurrences += 1

        self._totals[raw.error_type] += 1
        if raw.error_type is ErrorType.ERROR:
            self._error_fingerprints.add(fp)
        if extracted.custom_expression is not None:
            key = extracted.custom_expression
            self._pattern_hits[key] = self._pattern_hits.get(key, 0) + 1
        return fp

    def summary(self) -> LogStats:
        return LogStats(
            total_lines=self.total_lines,
            total_errors=self._totals[ErrorType.ERROR],
            total_warnings=self._totals[ErrorType.WARNING],
            total_info=self._totals[ErrorType.INFO],
            unique_errors=len(self._error_fingerprints),
        )

    def finalize(self, max_results: int | None = None) -> ParseResult:
        """Build the sorted result; raises MalformedResult on broken invariants."""
        slots = sorted(self._slots.values(), key=lambda s: -s.occurrences)
        self._check(slots)
        if max_results is not None:
            slots = slots[:max_results]

        try:
            result = ParseResult(
                summary=self.summary(),
                errors=[s.to_parsed_error() for s in slots],
                pattern_hits=dict(self._pattern_hits),
            )
        except ValidationError as exc:
            raise MalformedResult(f"parse result failed validation: {exc}") from exc

        logger.debug(
            "Aggregated %d entries into %d templates over %d lines",
            sum(self._totals.values()),
            len(self._slots),
            self.total_lines,
        )
        return result

    def _check(self, slots: list[_Slot]) -> None:
        entries = sum(self._totals.values())
        occurrences = sum(s.occurrences for s in slots)
        if occurrences != entries:
            raise MalformedResult(
                f"occurrences ({occurrences}) do not add up to counted entries ({entries})"
            )
        if len(self._error_fingerprints) > len(slots):
            raise MalformedResult("unique_errors exceeds the number of aggregated templates")
        if entries > self.total_lines:
            raise MalformedResult(
                f"more entries ({entries}) than input lines ({self.total_lines})"
            )
