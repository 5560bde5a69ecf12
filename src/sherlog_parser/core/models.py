"""Core data models for log parsing and error aggregation."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ErrorType(str, Enum):
    """Coarse classification of a head line."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class Severity(str, Enum):
    """Refinement of ErrorType; info lines are never critical."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class VariableType(str, Enum):
    """Token classes the normalizer can extract from a message."""

    TIMESTAMP = "timestamp"
    UUID = "uuid"
    IP_ADDRESS = "ip_address"
    HEX = "hex"
    NUMERIC_ID = "numeric_id"
    CUSTOM = "custom"


class StreamState(str, Enum):
    """Lifecycle of a StreamingParser."""

    FRESH = "fresh"
    COLLECTING = "collecting"
    FINALIZED = "finalized"
    RELEASED = "released"


@dataclass(frozen=True, slots=True)
class LogLine:
    """One physical line (1-based line number, no trailing newline)."""

    line_no: int
    text: str


@dataclass(frozen=True, slots=True)
class ClassifiedLine:
    """A head line with its computed type and severity."""

    line: LogLine
    error_type: ErrorType
    severity: Severity


@dataclass(frozen=True, slots=True)
class Variable:
    """A variable substring extracted from a message."""

    placeholder: str
    value: str
    var_type: VariableType


@dataclass(frozen=True, slots=True)
class ExtractedTemplate:
    """Result of template extraction for a single message."""

    template: str
    variables: tuple[Variable, ...] = ()
    custom_expression: str | None = None  # set when a custom pattern produced it


@dataclass(frozen=True, slots=True)
class RawError:
    """One logical entry: a head line plus its aggregated continuation lines."""

    line_no: int
    error_type: ErrorType
    severity: Severity
    message: str
    full_trace: str
    file: str | None = None
    line: int | None = None
    column: int | None = None
    timestamp: str | None = None  # raw text of the leading timestamp, if any


class ParsedError(BaseModel):
    """Aggregate of every RawError sharing one fingerprint."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Stable id derived from the fingerprint.")
    type: ErrorType
    severity: Severity
    message: str = Field(description="Message of the first occurrence.")
    template: str = Field(description="Message with variables replaced by placeholders.")
    variables: list[Variable] = Field(default_factory=list)
    full_trace: str
    file: str | None = None
    line: int | None = None
    column: int | None = None
    timestamp: str | None = None
    occurrences: int = Field(ge=1)
    fingerprint: str
    first_line: int = Field(ge=1, description="Line number of the first occurrence.")


class LogStats(BaseModel):
    """Per-pass counters."""

    model_config = ConfigDict(frozen=True)

    total_lines: int = Field(ge=0)
    total_errors: int = Field(ge=0)
    total_warnings: int = Field(ge=0)
    total_info: int = Field(ge=0)
    unique_errors: int = Field(ge=0, description="Distinct fingerprints among type=error.")


class ParseResult(BaseModel):
    """Output of a one-shot or streaming parse."""

    model_config = ConfigDict(frozen=True)

    summary: LogStats
    errors: list[ParsedError] = Field(default_factory=list)
    pattern_hits: dict[str, int] = Field(
        default_factory=dict,
        description="Custom pattern expression -> number of entries it matched.",
    )

