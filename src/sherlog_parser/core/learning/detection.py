"""Infer a template and matching expression from example messages.

The non-whitespace tokens of the examples are folded into the subsequence they
all share (pairwise LCS). Every example is then cut at those common tokens. A
gap that holds text in any example becomes a placeholder, named after what it
captured, and a lazy capture group in the expression; whitespace around the
varying text stays literal. Gaps that are whitespace in every example are
separators.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence

from pydantic import BaseModel, ConfigDict, Field

from ..errors import InputError, InsufficientExamples, NoPatternFound
from ..patterns import CustomPattern
from .alignment import lcs_pairs, word_spans

logger = logging.getLogger(__name__)

MIN_EXAMPLES = 2

_UUID_RE = re.compile(
    r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}", re.IGNORECASE
)
_IP_RE = re.compile(r"(?:\d{1,3}\.){3}\d{1,3}")
_INT_RE = re.compile(r"\d+")
# leading whitespace, varying text, trailing whitespace
_EDGES_RE = re.compile(r"(\s*)(.*?)(\s*)", re.DOTALL)

# [\s\S] so a variable part may span lines
_REQUIRED_GROUP = r"([\s\S]+?)"
_OPTIONAL_GROUP = r"([\s\S]*?)"


class DetectedPattern(BaseModel):
    """A template inferred from examples."""

    model_config = ConfigDict(frozen=True)

    template: str
    matching_expression: str
    confidence: float = Field(ge=0.0, le=1.0)
    variable_segments: list[str] = Field(default_factory=list)
    common_parts: list[str] = Field(default_factory=list)

    def to_custom_pattern(self, priority: int = 0) -> CustomPattern:
        return CustomPattern(
            expression=self.matching_expression, template=self.template, priority=priority
        )


def _placeholder(values: Sequence[str]) -> str:
    present = [v for v in values if v]
    if all(_UUID_RE.fullmatch(v) for v in present):
        return "{UUID}"
    if all(_IP_RE.fullmatch(v) for v in present):
        return "{IP}"
    if all(_INT_RE.fullmatch(v) for v in present):
        return "{N}"
    return "{VAR}"


def _whitespace(values: Sequence[str]) -> tuple[str, str]:
    """Template text and expression for whitespace that sits between literals."""
    if len(set(values)) == 1:
        return values[0], re.escape(values[0])
    return " ", r"\s+" if all(values) else r"\s*"


def _gaps(common: list[str], text: str) -> list[str]:
    """Text between consecutive common tokens (len(common) + 1 segments)."""
    spans = word_spans(text)
    segments: list[str] = []
    start = 0
    for _, j in lcs_pairs(common, [word for word, _, _ in spans]):
        _, begin, end = spans[j]
        segments.append(text[start:begin])
        start = end
    segments.append(text[start:])
    return segments


def _distinct(examples: Sequence[str]) -> list[str]:
    seen: dict[str, None] = {}
    for example in examples:
        if not isinstance(example, str):
            raise InputError(f"examples must be strings, got {type(example).__name__}")
        seen.setdefault(example, None)
    return list(seen)


def detect(examples: Sequence[str], min_examples: int = MIN_EXAMPLES) -> DetectedPattern:
    """Infer a pattern; raises InsufficientExamples or NoPatternFound."""
    if isinstance(examples, str):
        raise InputError("examples must be a list of strings")
    required = max(MIN_EXAMPLES, min_examples)
    distinct = _distinct(examples)
    if len(distinct) < required:
        raise InsufficientExamples(len(distinct), required)

    word_lists = [[word for word, _, _ in word_spans(e)] for e in distinct]
    common = word_lists[0]
    for words in word_lists[1:]:
        common = [common[i] for i, _ in lcs_pairs(common, words)]

    if not any(any(ch.isalnum() for ch in tok) for tok in common):
        raise NoPatternFound("examples share no common structure")

    # columns[k] holds gap k of every example
    columns = list(zip(*(_gaps(common, e) for e in distinct)))

    template_parts: list[str] = []
    regex_parts: list[str] = ["^"]
    literal_parts: list[str] = []
    values: list[list[str]] = [[] for _ in distinct]
    for k, column in enumerate(columns):
        edges = [_EDGES_RE.fullmatch(gap).groups() for gap in column]
        cores = [core for _, core, _ in edges]
        if any(cores):
            lead_text, lead_regex = _whitespace([lead for lead, _, _ in edges])
            trail_text, trail_regex = _whitespace([trail for _, _, trail in edges])
            template_parts += [lead_text, _placeholder(cores), trail_text]
            regex_parts += [
                lead_regex,
                _REQUIRED_GROUP if all(cores) else _OPTIONAL_GROUP,
                trail_regex,
            ]
            literal_parts.append(" ")
            for i, core in enumerate(cores):
                values[i].append(core)
        else:
            text, regex = _whitespace(column)
            template_parts.append(text)
            regex_parts.append(regex)
            literal_parts.append(text)
        if k < len(common):
            template_parts.append(common[k])
            regex_parts.append(re.escape(common[k]))
            literal_parts.append(common[k])
    regex_parts.append("$")

    # example-major order, each value once
    variable_segments: list[str] = []
    for row in values:
        for value in row:
            if value and value not in variable_segments:
                variable_segments.append(value)

    scores = [len(common) / len(words) for words in word_lists]
    confidence = sum(scores) / len(scores)

    return DetectedPattern(
        template="".join(template_parts),
        matching_expression="".join(regex_parts),
        confidence=confidence,
        variable_segments=variable_segments,
        common_parts="".join(literal_parts).split(),
    )


def detect_pattern(examples: Sequence[str]) -> DetectedPattern | None:
    """Like :func:`detect`, but returns None when no pattern can be formed."""
    try:
        return detect(examples)
    except (InsufficientExamples, NoPatternFound) as exc:
        logger.debug("Pattern detection rejected: %s", exc)
        return None
