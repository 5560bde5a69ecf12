from __future__ import annotations

from sherlog_parser.core.models import ErrorType, LogLine, RawError, Severity
from sherlog_parser.core.traces import TraceAggregator, extract_location


def _aggregate(lines: list[str]) -> list[RawError]:
    agg = TraceAggregator()
    out: list[RawError] = []
    for no, text in enumerate(lines, start=1):
        raw = agg.feed(LogLine(no, text))
        if raw is not None:
            out.append(raw)
    raw = agg.close()
    if raw is not None:
        out.append(raw)
    return out


def test_java_trace_is_merged_into_one_entry() -> None:
    errors = _aggregate(
        [
            "2025-12-30T08:12:06Z ERROR Unhandled exception in worker 3",
            "    at com.example.Worker.run(Worker.java:42)",
            "    at java.base/java.lang.Thread.run(Thread.java:833)",
            "Caused by: java.lang.NullPointerException: job was null",
            "    ... 2 more",
            "2025-12-30T08:12:07Z FATAL database unavailable",
        ]
    )

    assert len(errors) == 2
    first = errors[0]
    assert first.line_no == 1
    assert first.message == "2025-12-30T08:12:06Z ERROR Unhandled exception in worker 3"
    assert first.severity == Severity.HIGH
    assert first.full_trace.count("\n") == 4
    assert (first.file, first.line, first.column) == ("Worker.java", 42, None)
    assert first.timestamp == "2025-12-30T08:12:06Z"

    assert errors[1].line_no == 6
    assert errors[1].severity == Severity.CRITICAL


def test_new_head_closes_open_entry() -> None:
    errors = _aggregate(["ERROR first", "ERROR second", "WARN third"])
    assert [e.message for e in errors] == ["ERROR first", "ERROR second", "WARN third"]
    assert all(e.full_trace == e.message for e in errors)


def test_plain_line_closes_entry_and_is_not_kept() -> None:
    errors = _aggregate(["ERROR boom", "", "    at a.b(C.java:1)", "", "plain text", "    indented"])
    assert len(errors) == 1
    assert errors[0].full_trace == "ERROR boom\n\n    at a.b(C.java:1)"


def test_lines_before_first_head_are_ignored() -> None:
    errors = _aggregate(["    stray frame", "plain", "ERROR boom"])
    assert len(errors) == 1
    assert errors[0].line_no == 3


def test_python_traceback_uses_exception_summary() -> None:
    errors = _aggregate(
        [
            "Traceback (most recent call last):",
            '  File "/srv/app/main.py", line 12, in <module>',
            "    run()",
            "ValueError: bad input",
            "INFO done",
        ]
    )

    assert len(errors) == 2
    tb = errors[0]
    assert tb.message == "ValueError: bad input"
    assert tb.error_type == ErrorType.ERROR
    assert (tb.file, tb.line) == ("/srv/app/main.py", 12)
    assert tb.full_trace.endswith("ValueError: bad input")
    assert errors[1].error_type == ErrorType.INFO


def test_chained_python_traceback_stays_one_entry() -> None:
    errors = _aggregate(
        [
            "Traceback (most recent call last):",
            '  File "a.py", line 1, in <module>',
            "KeyError: 'x'",
            "",
            "During handling of the above exception, another exception occurred:",
            "",
            "Traceback (most recent call last):",
            '  File "a.py", line 3, in <module>',
            "RuntimeError: lookup failed",
        ]
    )

    assert len(errors) == 1
    assert errors[0].message == "RuntimeError: lookup failed"
    assert errors[0].line == 1


def test_go_panic_location() -> None:
    errors = _aggregate(
        [
            "panic: runtime error: invalid memory address",
            "",
            "goroutine 1 [running]:",
            "main.main()",
            "\t/home/u/app/main.go:15 +0x1d",
            "exit status 2",
        ]
    )

    assert len(errors) == 1
    assert errors[0].severity == Severity.CRITICAL
    assert (errors[0].file, errors[0].line) == ("/home/u/app/main.go", 15)


def test_location_falls_back_to_head_line() -> None:
    errors = _aggregate(["ERROR failed at src/main.rs:10:5"])
    assert (errors[0].file, errors[0].line, errors[0].column) == ("src/main.rs", 10, 5)


def test_extract_location_shapes() -> None:
    assert extract_location("    at Object.<anonymous> (/app/index.js:10:5)") == (
        "/app/index.js",
        10,
        5,
    )
    assert extract_location('  File "x.py", line 3, in f') == ("x.py", 3, None)
    assert extract_location("no location here") is None


def test_collecting_flag() -> None:
    agg = TraceAggregator()
    assert not agg.collecting
    agg.feed(LogLine(1, "ERROR boom"))
    assert agg.collecting
    assert agg.close() is not None
    assert not agg.collecting
    assert agg.close() is None
