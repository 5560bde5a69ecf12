"""Engine configuration with optional environment overrides."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace

ENV_MAX_RESULTS = "SHERLOG_MAX_RESULTS"
ENV_STREAM_BATCH_LINES = "SHERLOG_STREAM_BATCH_LINES"
ENV_CLUSTER_THRESHOLD = "SHERLOG_CLUSTER_THRESHOLD"


@dataclass(frozen=True, slots=True)
class EngineConfig:
    # Cap on returned errors; summary counters are never truncated.
    max_results: int | None = None

    # Lines fed to a StreamingParser between cooperative yields.
    stream_batch_lines: int = 1000

    cluster_threshold: float = 0.8

    def __post_init__(self) -> None:
        if self.max_results is not None and self.max_results < 1:
            raise ValueError("max_results must be >= 1")
        if self.stream_batch_lines < 1:
            raise ValueError("stream_batch_lines must be >= 1")
        if not 0.0 <= self.cluster_threshold <= 1.0:
            raise ValueError("cluster_threshold must be between 0 and 1")


def _env_int(name: str, *, minimum: int) -> int | None:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return None
    try:
        value = int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer") from exc
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum}")
    return value


def _env_ratio(name: str) -> float | None:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return None
    try:
        value = float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number") from exc
    if not 0.0 <= value <= 1.0:
        raise ValueError(f"{name} must be between 0 and 1")
    return value


def resolve_engine_config(cfg: EngineConfig | None = None) -> EngineConfig:
    """Return config with optional env overrides applied."""
    if cfg is None:
        cfg = EngineConfig()

    overrides: dict[str, object] = {}

    max_results = _env_int(ENV_MAX_RESULTS, minimum=1)
    if max_results is not None:
        overrides["max_results"] = max_results

    batch = _env_int(ENV_STREAM_BATCH_LINES, minimum=1)
    if batch is not None:
        overrides["stream_batch_lines"] = batch

    threshold = _env_ratio(ENV_CLUSTER_THRESHOLD)
    if threshold is not None:
        overrides["cluster_threshold"] = threshold

    if not overrides:
        return cfg
    return replace(cfg, **overrides)
