"""Custom (user-taught) pattern rules.

A custom pattern pairs a matching expression with the template it stands for.
During a parse the rules are tried against each message, highest priority
first, before the built-in variable scan. The first rule whose expression
matches the whole message supplies the template; its capture groups become
the variables.

Learned patterns are owned by whatever stores them. This module only reads
the export document ``{"version": 1, "exported_at": ..., "patterns": [...]}``
and converts entries into rules.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import InputError
from .models import ExtractedTemplate, Variable, VariableType

_PLACEHOLDER_RE = re.compile(r"\{[A-Za-z_][A-Za-z0-9_]*\}")
DEFAULT_PLACEHOLDER = "{VAR}"


@dataclass(frozen=True, slots=True)
class CustomPattern:
    """Rule shape consumed at parse time."""

    expression: str
    template: str
    priority: int = 0


@dataclass(frozen=True, slots=True)
class _CompiledPattern:
    rule: CustomPattern
    regex: re.Pattern[str]
    placeholders: tuple[str, ...]


def _coerce(item: CustomPattern | Mapping[str, Any]) -> CustomPattern:
    if isinstance(item, CustomPattern):
        return item
    if not isinstance(item, Mapping):
        raise InputError(f"custom pattern must be a mapping, got {type(item).__name__}")

    expression = item.get("expression", item.get("regex"))
    template = item.get("template")
    if not isinstance(expression, str) or not expression:
        raise InputError("custom pattern needs a non-empty 'expression'")
    if not isinstance(template, str) or not template:
        raise InputError("custom pattern needs a non-empty 'template'")

    priority = item.get("priority", 0)
    if isinstance(priority, bool) or not isinstance(priority, int):
        raise InputError("custom pattern 'priority' must be an integer")
    return CustomPattern(expression=expression, template=template, priority=priority)


class CustomPatternSet:
    """Compiled rules ordered by priority (descending; ties keep input order)."""

    def __init__(self, patterns: Iterable[CustomPattern | Mapping[str, Any]] = ()) -> None:
        compiled: list[_CompiledPattern] = []
        for item in patterns:
            rule = _coerce(item)
            try:
                regex = re.compile(rule.expression)
            except re.error as exc:
                raise InputError(
                    f"invalid custom pattern expression {rule.expression!r}: {exc}"
                ) from exc
            compiled.append(
                _CompiledPattern(
                    rule=rule,
                    regex=regex,
                    placeholders=tuple(_PLACEHOLDER_RE.findall(rule.template)),
                )
            )
        # sorted() is stable, so equal priorities keep their input order.
        self._rules = tuple(sorted(compiled, key=lambda c: -c.rule.priority))

    def __len__(self) -> int:
        return len(self._rules)

    def __bool__(self) -> bool:
        return bool(self._rules)

    def __iter__(self) -> Iterator[CustomPattern]:
        return (c.rule for c in self._rules)

    def match(self, message: str) -> ExtractedTemplate | None:
        """Return the extraction of the first rule that matches the whole message."""
        for c in self._rules:
            m = c.regex.fullmatch(message)
            if m is None:
                continue
            variables: list[Variable] = []
            for i, value in enumerate(m.groups()):
                if value is None:
                    continue
                placeholder = c.placeholders[i] if i < len(c.placeholders) else DEFAULT_PLACEHOLDER
                variables.append(
                    Variable(placeholder=placeholder, value=value, var_type=VariableType.CUSTOM)
                )
            return ExtractedTemplate(
                template=c.rule.template,
                variables=tuple(variables),
                custom_expression=c.rule.expression,
            )
        return None


EMPTY_PATTERN_SET = CustomPatternSet()


class LearnedPattern(BaseModel):
    """A named rule as stored by a pattern library."""

    model_config = ConfigDict(populate_by_name=True)

    id: str | None = None
    name: str
    template: str
    regex: str
    examples: list[str] = Field(default_factory=list)
    confidence: float = Field(ge=0.0, le=1.0)
    created_at: datetime | None = Field(default=None, alias="createdAt")
    applied_count: int = Field(default=0, ge=0, alias="appliedCount")

    def to_custom_pattern(self, priority: int = 0) -> CustomPattern:
        return CustomPattern(expression=self.regex, template=self.template, priority=priority)


class PatternExport(BaseModel):
    """Export document of a pattern library."""

    model_config = ConfigDict(populate_by_name=True)

    version: int = 1
    exported_at: datetime | None = Field(default=None, alias="exportedAt")
    patterns: list[LearnedPattern] = Field(default_factory=list)


def to_custom_patterns(learned: Iterable[LearnedPattern]) -> list[CustomPattern]:
    """Convert learned patterns to rules; earlier entries get higher priority."""
    items = list(learned)
    return [p.to_custom_pattern(priority=len(items) - i) for i, p in enumerate(items)]


def load_pattern_export(path: str | Path) -> list[LearnedPattern]:
    """Read a pattern export document (or a bare JSON list of patterns)."""
    p = Path(path)
    if not p.is_file():
        raise FileNotFoundError(f"Pattern file not found: {p}")

    raw = p.read_text(encoding="utf-8")
    try:
        if raw.lstrip().startswith("["):
            return PatternExport.model_validate_json(f'{{"patterns": {raw}}}').patterns
        return PatternExport.model_validate_json(raw).patterns
    except ValidationError as exc:
        raise InputError(f"Invalid pattern file {p}: {exc}") from exc
