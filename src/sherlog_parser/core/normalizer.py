"""Normalizer / template extractor.

Replaces variable substrings of a message with placeholders. Two messages
that differ only in the values at variable positions produce byte-identical
templates.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from .models import ExtractedTemplate, Variable
from .patterns import EMPTY_PATTERN_SET, CustomPattern, CustomPatternSet
from .variables import VariableScanner

PatternsArg = CustomPatternSet | Iterable[CustomPattern | Mapping[str, Any]] | None


def as_pattern_set(patterns: PatternsArg) -> CustomPatternSet:
    """Accept a compiled set, an iterable of rules/mappings, or None."""
    if patterns is None:
        return EMPTY_PATTERN_SET
    if isinstance(patterns, CustomPatternSet):
        return patterns
    return CustomPatternSet(patterns)


_DEFAULT_SCANNER = VariableScanner()


class Normalizer:
    """Custom patterns first (highest priority wins), then the built-in scan."""

    def __init__(
        self,
        custom_patterns: PatternsArg = None,
        scanner: VariableScanner | None = None,
    ) -> None:
        self._custom = as_pattern_set(custom_patterns)
        self._scanner = scanner or _DEFAULT_SCANNER

    @property
    def custom_patterns(self) -> CustomPatternSet:
        return self._custom

    def extract(self, message: str) -> ExtractedTemplate:
        if self._custom:
            custom = self._custom.match(message)
            if custom is not None:
                return custom
        return self._scan(message)

    def normalize(self, message: str) -> str:
        return self.extract(message).template

    def _scan(self, message: str) -> ExtractedTemplate:
        parts: list[str] = []
        variables: list[Variable] = []
        pos = 0
        for start, end, matcher in self._scanner.scan(message):
            parts.append(message[pos:start])
            parts.append(matcher.placeholder)
            variables.append(
                Variable(
                    placeholder=matcher.placeholder,
                    value=message[start:end],
                    var_type=matcher.var_type,
                )
            )
            pos = end
        if not variables:
            return ExtractedTemplate(template=message)
        parts.append(message[pos:])
        return ExtractedTemplate(template="".join(parts), variables=tuple(variables))


_DEFAULT_NORMALIZER = Normalizer()


def extract_template(message: str, custom_patterns: PatternsArg = None) -> ExtractedTemplate:
    if custom_patterns is None:
        return _DEFAULT_NORMALIZER.extract(message)
    return Normalizer(custom_patterns).extract(message)


def normalize(message: str, custom_patterns: PatternsArg = None) -> str:
    return extract_template(message, custom_patterns).template
