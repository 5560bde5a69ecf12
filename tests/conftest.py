from __future__ import annotations

import gzip
from collections.abc import Callable
from pathlib import Path

import pytest

MIXED_LOG_LINES = [
    "2025-12-30T08:12:01Z INFO service started on port 8080",
    "2025-12-30T08:12:03Z WARN retrying request 7731 to 10.0.0.12",
    "2025-12-30T08:12:04Z ERROR upstream timeout for request 7731",
    "2025-12-30T08:12:05Z ERROR upstream timeout for request 7790",
    "2025-12-30T08:12:06Z ERROR Unhandled exception in worker 3",
    "    at com.example.Worker.run(Worker.java:42)",
    "    at java.base/java.lang.Thread.run(Thread.java:833)",
    "Caused by: java.lang.NullPointerException: job was null",
    "    ... 2 more",
    "2025-12-30T08:12:07Z FATAL database unavailable",
    "2025-12-30T08:12:09Z ERROR upstream timeout for request 8112",
]


@pytest.fixture
def mixed_log_text() -> str:
    return "\n".join(MIXED_LOG_LINES) + "\n"


@pytest.fixture
def write_log() -> Callable[[Path], None]:
    def _write(path: Path) -> None:
        path.write_text("\n".join(MIXED_LOG_LINES) + "\n", encoding="utf-8")

    return _write


@pytest.fixture
def write_gz_log() -> Callable[[Path], None]:
    def _write(path: Path) -> None:
        with gzip.open(path, mode="wt", encoding="utf-8") as f:
            f.write("\n".join(MIXED_LOG_LINES) + "\n")

    return _write


@pytest.fixture
def write_bytes() -> Callable[[Path, list[bytes]], None]:
    def _write(path: Path, lines: list[bytes]) -> None:
        path.write_bytes(b"".join(line + b"\n" for line in lines))

    return _write
