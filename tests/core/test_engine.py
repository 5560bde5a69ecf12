from __future__ import annotations

from collections import Counter

import pytest

from sherlog_parser.core.config import EngineConfig
from sherlog_parser.core.engine import PatternEngine, iter_lines, parse
from sherlog_parser.core.errors import InputError
from sherlog_parser.core.models import LogStats, Variable, VariableType


def test_mixed_levels_summary_and_template() -> None:
    result = parse("ERROR: Failed to connect to 192.168.1.5\nWARN: disk at 91%\nINFO: started")

    assert result.summary == LogStats(
        total_lines=3, total_errors=1, total_warnings=1, total_info=1, unique_errors=1
    )
    err = result.errors[0]
    assert err.template == "ERROR: Failed to connect to {IP}"
    assert err.variables == [Variable("{IP}", "192.168.1.5", VariableType.IP_ADDRESS)]


def test_repeated_error_with_varying_id_collapses() -> None:
    content = "\n".join(f"ERROR: timeout for request id {i}" for i in range(100))
    result = parse(content)

    assert result.summary.unique_errors == 1
    assert len(result.errors) == 1
    assert result.errors[0].occurrences == 100
    assert result.errors[0].template == "ERROR: timeout for request id {ID}"


def test_reparse_is_identical(mixed_log_text: str) -> None:
    first = parse(mixed_log_text)
    second = parse(mixed_log_text)

    assert first.summary == second.summary
    assert Counter((e.fingerprint, e.occurrences) for e in first.errors) == Counter(
        (e.fingerprint, e.occurrences) for e in second.errors
    )
    assert first == second


def test_mixed_log_counts(mixed_log_text: str) -> None:
    result = parse(mixed_log_text)

    assert result.summary == LogStats(
        total_lines=11, total_errors=5, total_warnings=1, total_info=1, unique_errors=3
    )
    top = result.errors[0]
    assert top.template == "{TIMESTAMP} ERROR upstream timeout for request {ID}"
    assert top.occurrences == 3
    assert top.first_line == 3
    assert top.message == "2025-12-30T08:12:04Z ERROR upstream timeout for request 7731"
    assert [e.first_line for e in result.errors] == [3, 1, 2, 5, 10]

    trace = result.errors[3]
    assert trace.file == "Worker.java"
    assert trace.line == 42
    assert "Caused by: java.lang.NullPointerException" in trace.full_trace


def test_line_splitting() -> None:
    assert list(iter_lines("")) == []
    assert list(iter_lines("a\nb\n")) == ["a", "b"]
    assert list(iter_lines("a\r\nb")) == ["a", "b"]
    assert list(iter_lines("a\n\nb")) == ["a", "", "b"]


def test_blank_lines_count_towards_total_lines() -> None:
    result = parse("ERROR a\n\n\nINFO b\n")
    assert result.summary.total_lines == 4


def test_empty_content() -> None:
    result = parse("")
    assert result.summary == LogStats(
        total_lines=0, total_errors=0, total_warnings=0, total_info=0, unique_errors=0
    )
    assert result.errors == []


def test_bytes_content_is_decoded() -> None:
    result = parse("ERROR: café closed\n".encode("utf-8"))
    assert result.errors[0].message == "ERROR: café closed"


def test_undecodable_content_raises_input_error() -> None:
    with pytest.raises(InputError, match="not valid utf-8"):
        parse(b"ERROR \xff\xfe broken\n")
    with pytest.raises(InputError, match="text or bytes"):
        parse(42)  # type: ignore[arg-type]


def test_custom_patterns_are_passed_per_call() -> None:
    content = "ERROR Job 1 failed on web-1\nERROR Job 2 failed on web-2\n"
    patterns = [
        {
            "expression": r"ERROR Job (\d+) failed on (\S+)",
            "template": "ERROR Job {JOB} failed on {HOST}",
            "priority": 10,
        }
    ]

    result = parse(content, custom_patterns=patterns)
    assert result.errors[0].template == "ERROR Job {JOB} failed on {HOST}"
    assert result.errors[0].occurrences == 2
    assert result.pattern_hits == {r"ERROR Job (\d+) failed on (\S+)": 2}

    plain = parse(content)
    assert plain.errors[0].template == "ERROR Job {ID} failed on web-{ID}"
    assert plain.pattern_hits == {}


def test_max_results_from_config() -> None:
    content = "ERROR alpha\nERROR beta\nERROR gamma\n"
    result = parse(content, config=EngineConfig(max_results=1))
    assert len(result.errors) == 1
    assert result.summary.unique_errors == 3


def test_engine_custom_pattern_control() -> None:
    engine = PatternEngine()
    content = "ERROR Job 5 failed\n"

    engine.set_custom_patterns([{"expression": r"ERROR Job (\d+) failed", "template": "JOB {N}"}])
    assert engine.parse(content).errors[0].template == "JOB {N}"
    assert engine.normalize("ERROR Job 9 failed") == "JOB {N}"

    engine.clear_custom_patterns()
    assert engine.parse(content).errors[0].template == "ERROR Job {ID} failed"
    assert len(engine.custom_patterns) == 0


def test_engine_explicit_patterns_override_instance_patterns() -> None:
    engine = PatternEngine()
    engine.set_custom_patterns([{"expression": r"ERROR (.+)", "template": "A {X}"}])

    result = engine.parse("ERROR x\n", custom_patterns=[{"expression": r"ERROR (.+)", "template": "B {X}"}])
    assert result.errors[0].template == "B {X}"


def test_engine_introspection_helpers() -> None:
    engine = PatternEngine(EngineConfig(cluster_threshold=0.9))

    out = engine.extract_template("ERROR: Failed to connect to 10.0.0.1")
    assert out.template == "ERROR: Failed to connect to {IP}"
    assert engine.fingerprint("ERROR: Failed to connect to 10.0.0.1") == engine.fingerprint(
        "ERROR: Failed to connect to {IP}"
    )
    assert engine.detect_pattern(["only one"]) is None
    assert engine.cluster_errors(["abcdefghij", "abcdefghik"]) == [["abcdefghij", "abcdefghik"]]
