"""MCP tool implementations.

This module contains the *implementation* behind the exposed MCP tools and
the CLI. Keep this layer thin: validate inputs, translate them into core
calls, and return JSON-serializable data structures.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import replace
from typing import Any

from pydantic import ValidationError

from sherlog_parser.core.config import EngineConfig, resolve_engine_config
from sherlog_parser.core.engine import parse
from sherlog_parser.core.errors import InsufficientExamples, MalformedResult, NoPatternFound
from sherlog_parser.core.fingerprint import error_id, fingerprint_template
from sherlog_parser.core.learning import cluster_errors, detect
from sherlog_parser.core.log_service import parse_file
from sherlog_parser.core.models import ParseResult, Variable
from sherlog_parser.core.normalizer import extract_template
from sherlog_parser.core.patterns import CustomPatternSet

DEFAULT_LIMIT = 200
HARD_LIMIT = 5000


def _resolve_config(max_results: int | None) -> EngineConfig:
    """Apply env overrides, then the tool's result cap."""
    cfg = resolve_engine_config()
    limit = max_results if max_results is not None else cfg.max_results
    if limit is None:
        limit = DEFAULT_LIMIT
    if limit <= 0:
        raise ValueError("max_results must be > 0")
    if limit > HARD_LIMIT:
        limit = HARD_LIMIT
    return replace(cfg, max_results=limit)


def _patterns(custom_patterns: Sequence[Mapping[str, Any]] | None) -> CustomPatternSet | None:
    if not custom_patterns:
        return None
    return CustomPatternSet(custom_patterns)


def _variable_to_dict(v: Variable) -> dict[str, str]:
    return {"placeholder": v.placeholder, "value": v.value, "var_type": v.var_type.value}


def _result_to_dict(result: ParseResult) -> dict[str, Any]:
    """Serialize a result and validate the payload against its own schema."""
    payload = result.model_dump(mode="json")
    try:
        ParseResult.model_validate(payload)
    except ValidationError as exc:
        raise MalformedResult(f"serialized parse result is invalid: {exc}") from exc
    payload["returned"] = len(payload["errors"])
    return payload


async def parse_log_file_impl(
    *,
    log_path: str,
    stream: bool = True,
    max_results: int | None = None,
    custom_patterns: Sequence[Mapping[str, Any]] | None = None,
) -> dict[str, Any]:
    """Implementation for the `parse_log_file` MCP tool."""
    result = await parse_file(
        log_path,
        custom_patterns=_patterns(custom_patterns),
        config=_resolve_config(max_results),
        stream=stream,
    )
    return _result_to_dict(result)


def parse_log_text_impl(
    *,
    content: str,
    max_results: int | None = None,
    custom_patterns: Sequence[Mapping[str, Any]] | None = None,
) -> dict[str, Any]:
    """Implementation for the `parse_log_text` MCP tool."""
    result = parse(
        content,
        custom_patterns=_patterns(custom_patterns),
        config=_resolve_config(max_results),
    )
    return _result_to_dict(result)


def detect_pattern_impl(*, examples: Sequence[str]) -> dict[str, Any]:
    """Implementation for the `detect_pattern` MCP tool.

    Recoverable failures come back as ``{"pattern": None, "reason": ...}``.
    """
    try:
        detected = detect(list(examples))
    except (InsufficientExamples, NoPatternFound) as exc:
        return {"pattern": None, "reason": str(exc)}
    return {"pattern": detected.model_dump(), "reason": None}


def cluster_errors_impl(
    *,
    messages: Sequence[str],
    threshold: float | None = None,
) -> dict[str, Any]:
    """Implementation for the `cluster_errors` MCP tool."""
    if threshold is None:
        threshold = resolve_engine_config().cluster_threshold
    clusters = cluster_errors(list(messages), threshold)
    return {"count": len(clusters), "threshold": threshold, "clusters": clusters}


def extract_template_impl(
    *,
    message: str,
    custom_patterns: Sequence[Mapping[str, Any]] | None = None,
) -> dict[str, Any]:
    """Implementation for the `extract_template` MCP tool."""
    extracted = extract_template(message, _patterns(custom_patterns))
    fp = fingerprint_template(extracted.template)
    return {
        "template": extracted.template,
        "variables": [_variable_to_dict(v) for v in extracted.variables],
        "custom_expression": extracted.custom_expression,
        "fingerprint": fp,
        "id": error_id(fp),
    }
