"""Variable matchers and the left-to-right scanner built from them.

Matchers are tried in precedence order at every scan position, so a UUID is
claimed before its digit groups can be read as numeric ids and an IP address
before its octets can. New variable classes are added by passing a different
matcher sequence to :class:`VariableScanner`.
"""

from __future__ import annotations

import re
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from typing import Protocol

from .models import VariableType


class VariableMatcher(Protocol):
    """Matcher interface: a regex fragment plus the placeholder it maps to."""

    @property
    def var_type(self) -> VariableType: ...

    @property
    def placeholder(self) -> str: ...

    @property
    def pattern(self) -> str: ...


@dataclass(frozen=True, slots=True)
class RegexMatcher:
    """Matcher backed by a regex fragment (no capturing groups, scoped flags only)."""

    var_type: VariableType
    placeholder: str
    pattern: str


TIMESTAMP_MATCHER = RegexMatcher(
    VariableType.TIMESTAMP,
    "{TIMESTAMP}",
    r"\b(?:\d{4}-\d{2}-\d{2}[T ]\d{2}:\d{2}:\d{2}(?:[.,]\d{1,9})?(?:Z|[+-]\d{2}:?\d{2})?"
    r"|\d{4}/\d{2}/\d{2}[T ]\d{2}:\d{2}:\d{2}(?:[.,]\d{1,9})?"
    r"|(?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)\s+\d{1,2}\s+\d{2}:\d{2}:\d{2}"
    r"|\d{2}:\d{2}:\d{2}(?:[.,]\d{1,9})?)(?!\d)",
)
UUID_MATCHER = RegexMatcher(
    VariableType.UUID,
    "{UUID}",
    r"\b(?i:[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12})\b",
)
IP_MATCHER = RegexMatcher(
    VariableType.IP_ADDRESS,
    "{IP}",
    r"\b(?:\d{1,3}\.){3}\d{1,3}\b",
)
HEX_MATCHER = RegexMatcher(
    VariableType.HEX,
    "{HEX}",
    r"\b0[xX][0-9a-fA-F]+\b",
)
NUMERIC_ID_MATCHER = RegexMatcher(
    VariableType.NUMERIC_ID,
    "{ID}",
    r"\b\d+\b",
)

DEFAULT_MATCHERS: tuple[VariableMatcher, ...] = (
    TIMESTAMP_MATCHER,
    UUID_MATCHER,
    IP_MATCHER,
    HEX_MATCHER,
    NUMERIC_ID_MATCHER,
)


class VariableScanner:
    """Find variable substrings, leftmost first, highest-precedence matcher first."""

    def __init__(self, matchers: Sequence[VariableMatcher] = DEFAULT_MATCHERS) -> None:
        if not matchers:
            raise ValueError("at least one matcher is required")
        self._matchers = tuple(matchers)
        self._names = tuple(f"m{i}" for i in range(len(self._matchers)))
        self._regex = re.compile(
            "|".join(f"(?P<{name}>{m.pattern})" for name, m in zip(self._names, self._matchers))
        )

    @property
    def matchers(self) -> tuple[VariableMatcher, ...]:
        return self._matchers

    def scan(self, text: str) -> Iterator[tuple[int, int, VariableMatcher]]:
        """Yield (start, end, matcher) for each variable, left to right, non-overlapping."""
        for m in self._regex.finditer(text):
            if m.start() == m.end():
                continue
            for name, matcher in zip(self._names, self._matchers):
                if m.group(name) is not None:
                    yield m.start(), m.end(), matcher
                    break


def describe_matchers(matchers: Sequence[VariableMatcher] = DEFAULT_MATCHERS) -> list[dict[str, str]]:
    """Return the matcher table in precedence order (JSON-serializable)."""
    return [
        {"var_type": m.var_type.value, "placeholder": m.placeholder, "pattern": m.pattern}
        for m in matchers
    ]
