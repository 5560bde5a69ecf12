from __future__ import annotations

import json
from pathlib import Path

import pytest

from sherlog_parser.cli import main as cli_main
from sherlog_parser.core.errors import InputError
from sherlog_parser.tools.analysis import (
    HARD_LIMIT,
    cluster_errors_impl,
    detect_pattern_impl,
    extract_template_impl,
    parse_log_file_impl,
    parse_log_text_impl,
)


@pytest.mark.asyncio
async def test_parse_log_file_impl(tmp_path: Path, write_log) -> None:
    log = tmp_path / "app.log"
    write_log(log)

    out = await parse_log_file_impl(log_path=str(log))

    assert out["summary"]["total_lines"] == 11
    assert out["summary"]["unique_errors"] == 3
    assert out["returned"] == 5
    top = out["errors"][0]
    assert top["type"] == "error"
    assert top["severity"] == "medium"
    assert top["occurrences"] == 3
    assert top["variables"][0] == {
        "placeholder": "{TIMESTAMP}",
        "value": "2025-12-30T08:12:04Z",
        "var_type": "timestamp",
    }
    json.dumps(out)


def test_parse_log_text_impl_limits() -> None:
    content = "ERROR alpha\nERROR beta\nERROR gamma\n"

    out = parse_log_text_impl(content=content, max_results=2)
    assert out["returned"] == 2
    assert out["summary"]["unique_errors"] == 3

    with pytest.raises(ValueError, match="max_results"):
        parse_log_text_impl(content=content, max_results=0)

    out = parse_log_text_impl(content=content, max_results=HARD_LIMIT + 1)
    assert out["returned"] == 3


def test_parse_log_text_impl_custom_patterns() -> None:
    out = parse_log_text_impl(
        content="ERROR Job 1 failed\n",
        custom_patterns=[{"expression": r"ERROR Job (\d+) failed", "template": "JOB {N}"}],
    )
    assert out["errors"][0]["template"] == "JOB {N}"
    assert out["pattern_hits"] == {r"ERROR Job (\d+) failed": 1}

    with pytest.raises(InputError):
        parse_log_text_impl(
            content="ERROR x\n",
            custom_patterns=[{"expression": "(", "template": "x"}],
        )


def test_detect_pattern_impl() -> None:
    out = detect_pattern_impl(
        examples=["Connection refused on port 8080", "Connection refused on port 9090"]
    )
    assert out["reason"] is None
    assert out["pattern"]["template"] == "Connection refused on port {N}"

    out = detect_pattern_impl(examples=["abc", "completely unrelated text"])
    assert out["pattern"] is None
    assert out["reason"]

    out = detect_pattern_impl(examples=["one"])
    assert out["pattern"] is None
    assert "at least 2" in out["reason"]


def test_cluster_errors_impl(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SHERLOG_CLUSTER_THRESHOLD", "1")
    out = cluster_errors_impl(messages=["disk 1 full", "disk 2 full"])
    assert out["threshold"] == 1.0
    assert out["count"] == 2

    out = cluster_errors_impl(messages=["disk 1 full", "disk 2 full"], threshold=0.8)
    assert out["clusters"] == [["disk 1 full", "disk 2 full"]]


def test_extract_template_impl() -> None:
    out = extract_template_impl(message="ERROR: Failed to connect to 192.168.1.5")
    assert out["template"] == "ERROR: Failed to connect to {IP}"
    assert out["variables"] == [
        {"placeholder": "{IP}", "value": "192.168.1.5", "var_type": "ip_address"}
    ]
    assert out["id"] == out["fingerprint"][:16]
    assert out["custom_expression"] is None


def test_cli_parse_outputs_json(tmp_path: Path, write_log, capsys) -> None:
    log = tmp_path / "app.log"
    write_log(log)

    cli_main(["parse", str(log), "--max", "2"])

    out = json.loads(capsys.readouterr().out)
    assert len(out["errors"]) == 2
    assert out["summary"]["total_errors"] == 5


def test_cli_template_and_detect(capsys) -> None:
    cli_main(["template", "ERROR: timeout for request id 42"])
    assert json.loads(capsys.readouterr().out)["template"] == "ERROR: timeout for request id {ID}"

    cli_main(["detect", "retry 1 of 5", "retry 2 of 5"])
    assert json.loads(capsys.readouterr().out)["pattern"]["template"] == "retry {N} of 5"


def test_cli_cluster_reads_messages(tmp_path: Path, capsys) -> None:
    path = tmp_path / "messages.txt"
    path.write_text("disk 1 full\n\ndisk 2 full\nsomething else entirely\n", encoding="utf-8")

    cli_main(["cluster", str(path), "--threshold", "0.8"])

    out = json.loads(capsys.readouterr().out)
    assert out["clusters"] == [["disk 1 full", "disk 2 full"], ["something else entirely"]]


def test_cli_missing_file_exits_2(tmp_path: Path, capsys) -> None:
    with pytest.raises(SystemExit) as exc_info:
        cli_main(["parse", str(tmp_path / "missing.log")])
    assert exc_info.value.code == 2
    assert "not found" in capsys.readouterr().err


def test_cli_patterns_file(tmp_path: Path, capsys) -> None:
    log = tmp_path / "app.log"
    log.write_text("ERROR Job 1 failed\nERROR Job 2 failed\n", encoding="utf-8")
    patterns = tmp_path / "patterns.json"
    patterns.write_text(
        json.dumps(
            {
                "version": 1,
                "patterns": [
                    {
                        "name": "jobs",
                        "template": "ERROR Job {N} failed",
                        "regex": "^ERROR Job (.+?) failed$",
                        "confidence": 0.75,
                    }
                ],
            }
        ),
        encoding="utf-8",
    )

    cli_main(["parse", str(log), "--patterns", str(patterns)])

    out = json.loads(capsys.readouterr().out)
    assert out["errors"][0]["template"] == "ERROR Job {N} failed"
    assert out["pattern_hits"] == {"^ERROR Job (.+?) failed$": 2}
